"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import Role, View

MIN_PASSWORD_LENGTH = 6
DEFAULT_LIST_LIMIT = 200
DEFAULT_NOTIFICATION_LIMIT = 50
DEFAULT_PICKUP_PASS_MAX_AGE = 600
UNKNOWN_STUDENT_NAME = "Unknown"

# Sidebar order; each view lists the roles that see it when no explicit permissions are set.
DEFAULT_VIEW_ROLES: dict[View, tuple[Role, ...]] = {
    View.DASHBOARD: (Role.ADMIN, Role.MANAGER, Role.TEACHER),
    View.STUDENTS: (Role.ADMIN, Role.MANAGER, Role.TEACHER),
    View.ATTENDANCE: (Role.ADMIN, Role.MANAGER, Role.TEACHER),
    View.REPORTS_ARCHIVE: (Role.ADMIN, Role.MANAGER, Role.TEACHER),
    View.DIRECTORY: (Role.ADMIN, Role.MANAGER, Role.TEACHER),
    View.AI_PLANNER: (Role.ADMIN, Role.MANAGER, Role.TEACHER),
    View.FEES: (Role.ADMIN, Role.MANAGER, Role.TEACHER),
    View.TRANSPORT: (Role.ADMIN, Role.MANAGER),
    View.CLASSES: (Role.ADMIN, Role.MANAGER),
    View.USERS: (Role.ADMIN,),
    View.LOGIN_HISTORY: (Role.ADMIN,),
    View.DATABASE: (Role.ADMIN, Role.MANAGER),
    View.PARENT_VIEW: (Role.PARENT,),
}

TEACHER_PERMISSIONS: tuple[View, ...] = (
    View.DASHBOARD,
    View.STUDENTS,
    View.ATTENDANCE,
    View.REPORTS_ARCHIVE,
    View.DIRECTORY,
    View.AI_PLANNER,
)

STAFF_ROLES = frozenset({Role.ADMIN, Role.MANAGER})
