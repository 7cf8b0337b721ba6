from __future__ import annotations

from decimal import Decimal

import pytest
from werkzeug.security import check_password_hash

from src.school_admin.school_admin.core.enums import Role
from src.school_admin.school_admin.core.exceptions import AuthorizationError, NotFoundError, ValidationError


def test_create_account_hashes_password_and_keeps_permission_order(container, repos):
    uid = container.user_service.create_account(
        current_role=Role.ADMIN,
        full_name="Mr. Hassan",
        username="manager",
        password="manager123",
        role="manager",
        permissions=["fees", "dashboard", "fees"],
        salary="4500.5",
    )

    u = repos.users.get_by_id(uid)
    assert u.role == Role.MANAGER
    assert u.password_hash != "manager123"
    assert check_password_hash(u.password_hash, "manager123")
    assert u.permissions == ("fees", "dashboard")
    assert u.salary == Decimal("4500.50")


@pytest.mark.parametrize(
    "fields, message",
    [
        ({"full_name": ""}, "Full name is required"),
        ({"username": "   "}, "Username is required"),
        ({"password": ""}, "Password is required"),
        ({"password": "12345"}, "at least 6"),
        ({"role": "janitor"}, "Invalid role"),
        ({"permissions": ["chat"]}, "Unknown permission"),
    ],
)
def test_create_account_validation(container, fields, message):
    data = dict(full_name="A", username="a", password="secret1", role="teacher")
    data.update(fields)
    with pytest.raises(ValidationError, match=message):
        container.user_service.create_account(current_role=Role.ADMIN, **data)


def test_duplicate_username_is_case_insensitive(container, add_user):
    add_user("Noura", Role.TEACHER)
    with pytest.raises(ValidationError, match="already exists"):
        container.user_service.create_account(
            current_role=Role.ADMIN, full_name="X", username=" noura ", password="secret1", role="teacher"
        )


def test_only_admin_creates_users(container):
    with pytest.raises(AuthorizationError):
        container.user_service.create_account(
            current_role=Role.MANAGER, full_name="X", username="x", password="secret1", role="teacher"
        )


def test_parent_links_must_point_to_existing_students(container, add_student):
    s = add_student("Omar")
    uid = container.user_service.create_account(
        current_role=Role.ADMIN,
        full_name="Mohamed Ali",
        username="parent1",
        password="parent123",
        role="parent",
        linked_student_ids=[s.student_id, s.student_id],
    )
    assert container.user_service.get(uid).linked_student_ids == (s.student_id,)

    with pytest.raises(ValidationError, match="Student not found"):
        container.user_service.link_students(current_role=Role.ADMIN, user_id=uid, student_ids=[999])


def test_link_students_rejects_non_parents(container, add_user, add_student):
    t = add_user("teacher1", Role.TEACHER)
    s = add_student("Omar")
    with pytest.raises(ValidationError, match="Only parent"):
        container.user_service.link_students(current_role=Role.ADMIN, user_id=t.user_id, student_ids=[s.student_id])


def test_update_blank_password_keeps_hash(container, repos, add_user):
    u = add_user("teacher1", Role.TEACHER, password="teacher123")

    container.user_service.update_account(
        current_role=Role.ADMIN,
        user_id=u.user_id,
        full_name="Ms. Noura",
        username="teacher1",
        role="teacher",
        password="",
    )

    updated = repos.users.get_by_id(u.user_id)
    assert updated.full_name == "Ms. Noura"
    assert updated.password_hash == u.password_hash


def test_update_duplicate_check_ignores_self_but_not_others(container, add_user):
    a = add_user("alpha", Role.TEACHER)
    add_user("beta", Role.TEACHER)

    container.user_service.update_account(
        current_role=Role.ADMIN, user_id=a.user_id, full_name="Alpha", username="ALPHA", role="teacher"
    )
    with pytest.raises(ValidationError):
        container.user_service.update_account(
            current_role=Role.ADMIN, user_id=a.user_id, full_name="Alpha", username="beta", role="teacher"
        )


def test_delete_rules(container, add_user):
    admin = add_user("admin", Role.ADMIN)
    other = add_user("teacher1", Role.TEACHER)

    with pytest.raises(ValidationError, match="your own"):
        container.user_service.delete_user(current_role=Role.ADMIN, current_user_id=admin.user_id, user_id=admin.user_id)

    second_admin = add_user("admin2", Role.ADMIN)
    container.user_service.delete_user(
        current_role=Role.ADMIN, current_user_id=second_admin.user_id, user_id=admin.user_id
    )
    with pytest.raises(ValidationError, match="last admin"):
        container.user_service.delete_user(
            current_role=Role.ADMIN, current_user_id=other.user_id, user_id=second_admin.user_id
        )

    with pytest.raises(NotFoundError):
        container.user_service.delete_user(current_role=Role.ADMIN, current_user_id=second_admin.user_id, user_id=404)


def test_deleting_teacher_unassigns_classes(container, repos, add_user):
    admin = add_user("admin", Role.ADMIN)
    t = add_user("teacher1", Role.TEACHER)
    cid = repos.classes.create(name="Sunflowers", age_range="3-4", capacity=20, teacher_id=t.user_id)

    container.user_service.delete_user(current_role=Role.ADMIN, current_user_id=admin.user_id, user_id=t.user_id)

    assert repos.classes.get_by_id(cid).teacher_id is None


def test_set_permissions_validates_views(container, add_user):
    t = add_user("teacher1", Role.TEACHER)
    assert container.user_service.set_permissions(
        current_role=Role.ADMIN, user_id=t.user_id, permissions=["students", "fees"]
    ) == ["students", "fees"]
    with pytest.raises(ValidationError):
        container.user_service.set_permissions(current_role=Role.ADMIN, user_id=t.user_id, permissions=["gallery"])
    with pytest.raises(AuthorizationError):
        container.user_service.set_permissions(current_role=Role.TEACHER, user_id=t.user_id, permissions=[])


def test_search_matches_name_or_username(container, add_user):
    add_user("teacher1", Role.TEACHER, full_name="Ms. Noura")
    add_user("parent1", Role.PARENT, full_name="Mohamed Ali")

    assert [u.username for u in container.user_service.search("noura")] == ["teacher1"]
    assert [u.username for u in container.user_service.search("PARENT")] == ["parent1"]
    assert len(container.user_service.search("")) == 2
    assert [u.username for u in container.user_service.search(None, role="parent")] == ["parent1"]


def test_last_admin_cannot_be_demoted(container, repos, add_user):
    admin = add_user("admin", Role.ADMIN, full_name="Ms. Fatima")
    svc = container.user_service

    with pytest.raises(ValidationError, match="last admin"):
        svc.update_account(
            current_role=Role.ADMIN, user_id=admin.user_id, full_name="Ms. Fatima", username="admin", role="teacher"
        )
    assert repos.users.count_by_role(Role.ADMIN) == 1

    add_user("admin2", Role.ADMIN)
    svc.update_account(
        current_role=Role.ADMIN, user_id=admin.user_id, full_name="Ms. Fatima", username="admin", role="manager"
    )
    assert repos.users.get_by_id(admin.user_id).role == Role.MANAGER
