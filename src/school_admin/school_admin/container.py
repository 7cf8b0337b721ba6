from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .classes.mysql_class_repository import MySQLClassRepository
from .classes.repository import ClassRepository
from .classes.service import ClassService
from .core.constants import DEFAULT_PICKUP_PASS_MAX_AGE
from .database.connection import DBConfig, DatabaseConnection
from .directory.service import DirectoryService
from .fees.mysql_fee_repository import MySQLFeeRepository
from .fees.repository import FeeRepository
from .fees.service import FeeService
from .login_history.mysql_login_log_repository import MySQLLoginLogRepository
from .login_history.repository import LoginLogRepository
from .login_history.service import LoginHistoryService
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .pickup.mysql_gate_scan_repository import MySQLGateScanRepository
from .pickup.repository import GateScanRepository
from .pickup.service import PickupService
from .profile.service import ProfileService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .students.service import StudentService
from .transport.mysql_route_repository import MySQLRouteRepository
from .transport.repository import RouteRepository
from .transport.service import TransportService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, TeacherService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    students_repo: StudentRepository
    classes_repo: ClassRepository
    fees_repo: FeeRepository
    routes_repo: RouteRepository
    notifications_repo: NotificationRepository
    login_logs_repo: LoginLogRepository
    gate_scans_repo: GateScanRepository

    auth_service: AuthService
    user_service: UserService
    teacher_service: TeacherService
    login_history_service: LoginHistoryService
    profile_service: ProfileService
    student_service: StudentService
    class_service: ClassService
    directory_service: DirectoryService
    notification_service: NotificationService
    fee_service: FeeService
    transport_service: TransportService
    pickup_service: PickupService


def assemble_container(
    *,
    users_repo: UserRepository,
    students_repo: StudentRepository,
    classes_repo: ClassRepository,
    fees_repo: FeeRepository,
    routes_repo: RouteRepository,
    notifications_repo: NotificationRepository,
    login_logs_repo: LoginLogRepository,
    gate_scans_repo: GateScanRepository,
    secret_key: str,
    pickup_max_age: int = DEFAULT_PICKUP_PASS_MAX_AGE,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services on top of any repository implementations (MySQL or in-memory)."""
    login_history_service = LoginHistoryService(login_logs_repo)
    notification_service = NotificationService(notifications_repo, users_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        students_repo=students_repo,
        classes_repo=classes_repo,
        fees_repo=fees_repo,
        routes_repo=routes_repo,
        notifications_repo=notifications_repo,
        login_logs_repo=login_logs_repo,
        gate_scans_repo=gate_scans_repo,
        auth_service=AuthService(users_repo, login_history_service),
        user_service=UserService(users_repo, students_repo, classes_repo),
        teacher_service=TeacherService(users_repo, classes_repo),
        login_history_service=login_history_service,
        profile_service=ProfileService(users_repo),
        student_service=StudentService(students_repo),
        class_service=ClassService(classes_repo, students_repo, users_repo),
        directory_service=DirectoryService(students_repo, users_repo),
        notification_service=notification_service,
        fee_service=FeeService(fees_repo, students_repo, notification_service),
        transport_service=TransportService(routes_repo, students_repo, notification_service),
        pickup_service=PickupService(
            gate_scans_repo,
            students_repo,
            users_repo,
            notification_service,
            secret_key=secret_key,
            max_age=pickup_max_age,
        ),
    )


def build_container(
    *,
    db_config: dict,
    secret_key: str,
    pickup_max_age: int = DEFAULT_PICKUP_PASS_MAX_AGE,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble_container(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        students_repo=MySQLStudentRepository(conn),
        classes_repo=MySQLClassRepository(conn),
        fees_repo=MySQLFeeRepository(conn),
        routes_repo=MySQLRouteRepository(conn),
        notifications_repo=MySQLNotificationRepository(conn),
        login_logs_repo=MySQLLoginLogRepository(conn),
        gate_scans_repo=MySQLGateScanRepository(conn),
        secret_key=secret_key,
        pickup_max_age=pickup_max_age,
    )
