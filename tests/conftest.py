from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.school_admin.school_admin.classes.model import ClassGroup
from src.school_admin.school_admin.container import assemble_container
from src.school_admin.school_admin.core.enums import Role
from src.school_admin.school_admin.fees.model import FeeRecord, PaymentTransaction
from src.school_admin.school_admin.login_history.model import LoginLog
from src.school_admin.school_admin.main import create_app
from src.school_admin.school_admin.notifications.model import AppNotification
from src.school_admin.school_admin.pickup.model import GateScan
from src.school_admin.school_admin.students.model import Student, StudentInput
from src.school_admin.school_admin.transport.model import BusRoute
from src.school_admin.school_admin.users.model import User, UserDraft

TEST_SECRET = "test-secret"


class InMemoryUsers:
    def __init__(self):
        self._users: dict[int, User] = {}
        self._next_id = 1

    def get_by_id(self, user_id):
        return self._users.get(int(user_id))

    def get_by_username(self, username):
        key = (username or "").strip().lower()
        for u in self._users.values():
            if u.username.lower() == key:
                return u
        return None

    def list_all(self):
        return sorted(self._users.values(), key=lambda u: u.full_name)

    def list_by_roles(self, roles):
        return [u for u in self.list_all() if u.role in roles]

    def list_parents_of(self, student_id):
        return [u for u in self.list_all() if int(student_id) in u.linked_student_ids]

    def create_user(self, draft: UserDraft) -> int:
        uid = self._next_id
        self._next_id += 1
        self._users[uid] = User(
            user_id=uid,
            full_name=draft.full_name,
            username=draft.username,
            password_hash=draft.password_hash,
            role=draft.role,
            permissions=tuple(draft.permissions),
            email=draft.email,
            phone=draft.phone,
            interests=tuple(draft.interests),
            avatar=draft.avatar,
            salary=draft.salary,
            linked_student_ids=tuple(draft.linked_student_ids),
        )
        return uid

    def update_user(self, user_id, draft: UserDraft) -> bool:
        old = self._users.get(int(user_id))
        if not old:
            return False
        self._users[old.user_id] = replace(
            old,
            full_name=draft.full_name,
            username=draft.username,
            password_hash=draft.password_hash,
            role=draft.role,
            permissions=tuple(draft.permissions),
            email=draft.email,
            phone=draft.phone,
            interests=tuple(draft.interests),
            avatar=draft.avatar,
            salary=draft.salary,
            linked_student_ids=tuple(draft.linked_student_ids),
        )
        return True

    def update_profile(self, user_id, *, full_name, email, phone, interests, avatar) -> bool:
        old = self._users.get(int(user_id))
        if not old:
            return False
        self._users[old.user_id] = replace(
            old, full_name=full_name, email=email, phone=phone, interests=tuple(interests), avatar=avatar
        )
        return True

    def set_password_hash(self, user_id, password_hash) -> bool:
        return self._patch(user_id, password_hash=password_hash)

    def set_permissions(self, user_id, permissions) -> bool:
        return self._patch(user_id, permissions=tuple(permissions))

    def set_linked_students(self, user_id, student_ids) -> bool:
        return self._patch(user_id, linked_student_ids=tuple(student_ids))

    def set_active(self, user_id, active: bool) -> bool:
        return self._patch(user_id, is_active=active)

    def _patch(self, user_id, **changes) -> bool:
        old = self._users.get(int(user_id))
        if not old:
            return False
        self._users[old.user_id] = replace(old, **changes)
        return True

    def delete_by_id(self, user_id) -> bool:
        return self._users.pop(int(user_id), None) is not None

    def count_by_role(self, role) -> int:
        return sum(1 for u in self._users.values() if u.role == role and u.is_active)

    def drop_student(self, student_id: int) -> None:
        for u in list(self._users.values()):
            if student_id in u.linked_student_ids:
                self._patch(u.user_id, linked_student_ids=tuple(s for s in u.linked_student_ids if s != student_id))


class InMemoryStudents:
    def __init__(self):
        self._students: dict[int, Student] = {}
        self._next_id = 1
        self.on_delete = []

    def get_by_id(self, student_id):
        return self._students.get(int(student_id))

    def get_many(self, student_ids):
        return [self._students[int(s)] for s in student_ids if int(s) in self._students]

    def list_all(self):
        return sorted(self._students.values(), key=lambda s: s.name)

    def create(self, data: StudentInput) -> int:
        sid = self._next_id
        self._next_id += 1
        self._students[sid] = Student(student_id=sid, **vars(data))
        return sid

    def update(self, student_id, data: StudentInput) -> bool:
        if int(student_id) not in self._students:
            return False
        self._students[int(student_id)] = Student(student_id=int(student_id), **vars(data))
        return True

    def delete(self, student_id) -> bool:
        if self._students.pop(int(student_id), None) is None:
            return False
        for hook in self.on_delete:
            hook(int(student_id))
        return True

    def count_by_class(self):
        out: dict[str, int] = {}
        for s in self._students.values():
            out[s.class_group] = out.get(s.class_group, 0) + 1
        return out


class InMemoryClasses:
    def __init__(self):
        self._classes: dict[int, ClassGroup] = {}
        self._next_id = 1

    def get_by_id(self, class_id):
        return self._classes.get(int(class_id))

    def get_by_name(self, name):
        for c in self._classes.values():
            if c.name.lower() == name.strip().lower():
                return c
        return None

    def list_all(self):
        return sorted(self._classes.values(), key=lambda c: c.name)

    def create(self, *, name, age_range, capacity, teacher_id) -> int:
        cid = self._next_id
        self._next_id += 1
        self._classes[cid] = ClassGroup(cid, name, age_range, capacity, teacher_id)
        return cid

    def update(self, class_id, *, name, age_range, capacity, teacher_id) -> bool:
        if int(class_id) not in self._classes:
            return False
        self._classes[int(class_id)] = ClassGroup(int(class_id), name, age_range, capacity, teacher_id)
        return True

    def delete(self, class_id) -> bool:
        return self._classes.pop(int(class_id), None) is not None

    def set_teacher(self, class_id, teacher_id) -> bool:
        c = self._classes.get(int(class_id))
        if not c:
            return False
        self._classes[c.class_id] = replace(c, teacher_id=teacher_id)
        return True

    def unassign_teacher(self, teacher_id) -> int:
        n = 0
        for c in list(self._classes.values()):
            if c.teacher_id == teacher_id:
                self._classes[c.class_id] = replace(c, teacher_id=None)
                n += 1
        return n


class InMemoryFees:
    def __init__(self):
        self._records: dict[int, FeeRecord] = {}
        self._next_record = 1
        self._next_tx = 1

    def get_by_student(self, student_id):
        for r in self._records.values():
            if r.student_id == int(student_id):
                return r
        return None

    def list_all(self):
        return list(self._records.values())

    def create_record(self, student_id, *, monthly_amount) -> int:
        rid = self._next_record
        self._next_record += 1
        self._records[rid] = FeeRecord(rid, int(student_id), monthly_amount, Decimal("0"), Decimal("0"))
        return rid

    def set_monthly_amount(self, record_id, amount) -> None:
        r = self._records[int(record_id)]
        self._records[r.record_id] = replace(r, monthly_amount=amount)

    def add_transaction(self, record_id, *, paid_on, amount, method, for_month, note, recorded_by) -> int:
        r = self._records[int(record_id)]
        tx = PaymentTransaction(
            transaction_id=self._next_tx,
            record_id=r.record_id,
            student_id=r.student_id,
            paid_on=paid_on,
            amount=amount,
            method=method,
            for_month=for_month,
            note=note,
            recorded_by=recorded_by,
        )
        self._next_tx += 1
        self._records[r.record_id] = replace(
            r,
            paid_amount=r.paid_amount + amount,
            last_payment_date=paid_on,
            history=(tx,) + r.history,
        )
        return tx.transaction_id

    def get_transaction(self, transaction_id):
        for r in self._records.values():
            for t in r.history:
                if t.transaction_id == int(transaction_id):
                    return t
        return None

    def delete_transaction(self, record_id, transaction_id):
        r = self._records.get(int(record_id))
        if not r:
            return None
        tx = next((t for t in r.history if t.transaction_id == int(transaction_id)), None)
        if not tx:
            return None
        self._records[r.record_id] = replace(
            r,
            paid_amount=r.paid_amount - tx.amount,
            history=tuple(t for t in r.history if t.transaction_id != tx.transaction_id),
        )
        return tx.amount


class InMemoryRoutes:
    def __init__(self):
        self._routes: dict[int, BusRoute] = {}
        self._next_id = 1

    def get_by_id(self, route_id):
        return self._routes.get(int(route_id))

    def list_all(self):
        return sorted(self._routes.values(), key=lambda r: r.name)

    def list_for_student(self, student_id):
        return [r for r in self.list_all() if int(student_id) in r.student_ids]

    def create(self, *, name, driver_name, supervisor_name, student_ids) -> int:
        rid = self._next_id
        self._next_id += 1
        self._routes[rid] = BusRoute(rid, name, driver_name, supervisor_name, tuple(student_ids))
        return rid

    def update(self, route_id, *, name, driver_name, supervisor_name, student_ids) -> bool:
        if int(route_id) not in self._routes:
            return False
        self._routes[int(route_id)] = BusRoute(int(route_id), name, driver_name, supervisor_name, tuple(student_ids))
        return True

    def set_students(self, route_id, student_ids) -> bool:
        r = self._routes.get(int(route_id))
        if not r:
            return False
        self._routes[r.route_id] = replace(r, student_ids=tuple(student_ids))
        return True

    def delete(self, route_id) -> bool:
        return self._routes.pop(int(route_id), None) is not None

    def drop_student(self, student_id: int) -> None:
        for r in list(self._routes.values()):
            if student_id in r.student_ids:
                self.set_students(r.route_id, [s for s in r.student_ids if s != student_id])


class InMemoryNotifications:
    def __init__(self):
        self.items: list[AppNotification] = []
        self._next_id = 1

    def add(self, *, user_ids, title, message, type, created_at):
        ids = []
        for uid in user_ids:
            n = AppNotification(self._next_id, int(uid), title, message, type, False, created_at)
            self._next_id += 1
            self.items.append(n)
            ids.append(n.notification_id)
        return ids

    def list_for_user(self, user_id, *, limit):
        mine = [n for n in self.items if n.user_id == int(user_id)]
        return sorted(mine, key=lambda n: n.notification_id, reverse=True)[:limit]

    def list_after(self, user_id, *, after_id, limit):
        mine = [n for n in self.items if n.user_id == int(user_id) and n.notification_id > after_id]
        return sorted(mine, key=lambda n: n.notification_id)[:limit]

    def count_unread(self, user_id):
        return sum(1 for n in self.items if n.user_id == int(user_id) and not n.is_read)

    def mark_read(self, user_id, notification_id) -> bool:
        for i, n in enumerate(self.items):
            if n.notification_id == int(notification_id) and n.user_id == int(user_id):
                self.items[i] = replace(n, is_read=True)
                return True
        return False

    def mark_all_read(self, user_id) -> int:
        count = 0
        for i, n in enumerate(self.items):
            if n.user_id == int(user_id) and not n.is_read:
                self.items[i] = replace(n, is_read=True)
                count += 1
        return count


class InMemoryLoginLogs:
    def __init__(self):
        self.logs: list[LoginLog] = []

    def add(self, *, user_id, user_name, user_role, logged_at, device) -> int:
        log = LoginLog(len(self.logs) + 1, user_id, user_name, user_role, logged_at, device)
        self.logs.append(log)
        return log.log_id

    def list_recent(self, *, limit=200):
        return sorted(self.logs, key=lambda x: (x.logged_at, x.log_id), reverse=True)[:limit]

    def clear(self) -> int:
        n = len(self.logs)
        self.logs.clear()
        return n


class InMemoryGateScans:
    def __init__(self):
        self.scans: list[GateScan] = []

    def add(self, *, student_id, parent_id, scanned_at, scanned_by) -> int:
        scan = GateScan(len(self.scans) + 1, student_id, parent_id, scanned_at, scanned_by)
        self.scans.append(scan)
        return scan.scan_id

    def list_recent(self, *, limit):
        return sorted(self.scans, key=lambda s: (s.scanned_at, s.scan_id), reverse=True)[:limit]


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 16, 9, 30, 0)


@pytest.fixture
def repos():
    users = InMemoryUsers()
    students = InMemoryStudents()
    routes = InMemoryRoutes()
    # Mirrors ON DELETE CASCADE on parent_students / route_students.
    students.on_delete += [users.drop_student, routes.drop_student]
    return SimpleNamespace(
        users=users,
        students=students,
        classes=InMemoryClasses(),
        fees=InMemoryFees(),
        routes=routes,
        notifications=InMemoryNotifications(),
        login_logs=InMemoryLoginLogs(),
        gate_scans=InMemoryGateScans(),
    )


@pytest.fixture
def container(repos):
    return assemble_container(
        users_repo=repos.users,
        students_repo=repos.students,
        classes_repo=repos.classes,
        fees_repo=repos.fees,
        routes_repo=repos.routes,
        notifications_repo=repos.notifications,
        login_logs_repo=repos.login_logs,
        gate_scans_repo=repos.gate_scans,
        secret_key=TEST_SECRET,
        pickup_max_age=600,
    )


@pytest.fixture
def add_user(repos):
    def _add(
        username: str,
        role: Role,
        *,
        password: str = "secret1",
        full_name: Optional[str] = None,
        permissions=(),
        linked_student_ids=(),
        phone: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        uid = repos.users.create_user(
            UserDraft(
                full_name=full_name or username.title(),
                username=username,
                password_hash=generate_password_hash(password),
                role=role,
                permissions=list(permissions),
                phone=phone,
                email=email,
                linked_student_ids=list(linked_student_ids),
            )
        )
        return repos.users.get_by_id(uid)

    return _add


@pytest.fixture
def add_student(repos):
    def _add(name: str, class_group: str = "Sunflowers", **fields) -> Student:
        sid = repos.students.create(StudentInput(name=name, class_group=class_group, **fields))
        return repos.students.get_by_id(sid)

    return _add


@pytest.fixture
def app(container):
    app = create_app(container=container, settings_module="config.testing")
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(username: str, password: str = "secret1"):
        res = client.post("/api/login", json={"username": username, "password": password})
        assert res.status_code == 200, res.get_json()
        return res.get_json()

    return _login
