from __future__ import annotations

import logging
import secrets
from datetime import datetime
from typing import Optional, Sequence

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_LIST_LIMIT, DEFAULT_PICKUP_PASS_MAX_AGE
from ..core.enums import NotificationType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..notifications.service import NotificationService
from ..students.repository import StudentRepository
from ..users.model import User
from ..users.repository import UserRepository
from .model import GateScan
from .qr import make_qr_png
from .repository import GateScanRepository

logger = logging.getLogger(__name__)

_SALT = "pickup-pass"
SCANNER_ROLES = frozenset({Role.ADMIN, Role.MANAGER, Role.TEACHER})


class PickupService:
    """Signed pickup passes for parents and the gate-side verification.

    A pass carries {sid, pid, ts, nonce}. The signature is checked with
    itsdangerous; the age is checked against `ts` so callers can pin `now`.
    """

    def __init__(
        self,
        scans: GateScanRepository,
        students: StudentRepository,
        users: UserRepository,
        notifications: NotificationService,
        *,
        secret_key: str,
        max_age: int = DEFAULT_PICKUP_PASS_MAX_AGE,
    ):
        self._scans = scans
        self._students = students
        self._users = users
        self._notifications = notifications
        self._serializer = URLSafeTimedSerializer(secret_key, salt=_SALT)
        self._max_age = int(max_age)

    @property
    def max_age(self) -> int:
        return self._max_age

    def issue_pass(self, parent: User, student_id: int, *, now: Optional[datetime] = None) -> dict:
        sid = int(student_id)
        if parent.role != Role.PARENT or sid not in parent.linked_student_ids:
            raise AuthorizationError("You can only issue a pass for your own child")
        student = self._students.get_by_id(sid)
        if not student:
            raise NotFoundError("Student not found")

        now = now or now_local()
        payload = {"sid": sid, "pid": parent.user_id, "ts": int(now.timestamp()), "nonce": secrets.token_hex(8)}
        return {
            "token": self._serializer.dumps(payload),
            "student_id": sid,
            "student_name": student.name,
            "issued_at": now.strftime("%Y-%m-%d %H:%M:%S"),
            "expires_in": self._max_age,
        }

    def qr_png(self, token: str) -> bytes:
        return make_qr_png(token)

    def _load(self, token: str, now: datetime) -> dict:
        token = (token or "").strip()
        if not token:
            raise ValidationError("Pass is required")
        try:
            payload = self._serializer.loads(token, max_age=self._max_age)
        except SignatureExpired:
            raise ValidationError("Pass has expired")
        except BadSignature:
            raise ValidationError("Invalid pass")

        try:
            sid, pid, ts = int(payload["sid"]), int(payload["pid"]), int(payload["ts"])
        except (KeyError, TypeError, ValueError):
            raise ValidationError("Invalid pass")

        age = now.timestamp() - ts
        if age > self._max_age:
            raise ValidationError("Pass has expired")
        if age < -60:
            raise ValidationError("Invalid pass")
        return {"sid": sid, "pid": pid}

    def verify_and_record(self, token: str, *, scanned_by: User, now: Optional[datetime] = None) -> dict:
        if scanned_by.role not in SCANNER_ROLES:
            raise AuthorizationError("You do not have permission to scan passes")

        now = now or now_local()
        data = self._load(token, now)

        student = self._students.get_by_id(data["sid"])
        if not student:
            raise ValidationError("Student not found")
        parent = self._users.get_by_id(data["pid"])
        if not parent or not parent.is_active or student.student_id not in parent.linked_student_ids:
            raise ValidationError("Parent is not authorized to pick up this student")

        scan_id = self._scans.add(
            student_id=student.student_id,
            parent_id=parent.user_id,
            scanned_at=now,
            scanned_by=scanned_by.full_name,
        )
        logger.info("Gate scan %s: student=%s parent=%s", scan_id, student.student_id, parent.user_id)

        self._notifications.add(
            parent.user_id,
            "Pickup confirmed",
            f"{student.name} was handed over at {now.strftime('%H:%M')}",
            NotificationType.SUCCESS,
            now=now,
        )
        return {
            "scan_id": scan_id,
            "student": student.to_dict(),
            "parent_name": parent.full_name,
            "scanned_at": now.strftime("%Y-%m-%d %H:%M:%S"),
        }

    def recent_scans(self, *, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[GateScan]:
        return self._scans.list_recent(limit=limit)
