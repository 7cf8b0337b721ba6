from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "admin"
    MANAGER = "manager"
    TEACHER = "teacher"
    PARENT = "parent"


class StudentStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    PENDING = "Pending"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    BANK_TRANSFER = "Bank Transfer"
    CARD = "Card"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ALERT = "alert"


class View(str, Enum):
    """Screen ids. A user's permission list is a list of these values."""

    DASHBOARD = "dashboard"
    STUDENTS = "students"
    ATTENDANCE = "attendance"
    REPORTS_ARCHIVE = "reports-archive"
    DIRECTORY = "directory"
    AI_PLANNER = "ai-planner"
    CLASSES = "classes"
    USERS = "users"
    DATABASE = "database"
    PARENT_VIEW = "parent-view"
    FEES = "fees"
    TRANSPORT = "transport"
    LOGIN_HISTORY = "login-history"
    PROFILE = "profile"
