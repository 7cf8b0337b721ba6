"""School administration package.

Organized by feature modules (users, students, fees, transport, ...) with a thin
Flask controller layer on top of service/repository layers.
"""
