from __future__ import annotations

import pytest

from src.school_admin.school_admin.core.enums import Role
from src.school_admin.school_admin.core.exceptions import AuthenticationError


def test_authenticate_is_case_insensitive_and_logs_login(container, repos, add_user, fixed_now):
    add_user("teacher1", Role.TEACHER, password="teacher123", full_name="Ms. Noura")

    s = container.auth_service.authenticate("  TEACHER1 ", "teacher123", device="pytest-agent", now=fixed_now)

    assert s.username == "teacher1"
    assert s.role == Role.TEACHER
    assert len(repos.login_logs.logs) == 1
    log = repos.login_logs.logs[0]
    assert log.user_name == "Ms. Noura"
    assert log.logged_at == fixed_now
    assert log.device == "pytest-agent"


def test_wrong_password_is_rejected_without_log(container, repos, add_user):
    add_user("admin", Role.ADMIN, password="admin123")

    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("admin", "nope")
    assert repos.login_logs.logs == []


def test_unknown_and_inactive_users_are_rejected(container, repos, add_user):
    u = add_user("parent1", Role.PARENT, password="parent123")
    repos.users.set_active(u.user_id, False)

    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("parent1", "parent123")
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("ghost", "whatever")


def test_placeholder_hash_does_not_crash(container, repos, add_user):
    u = add_user("legacy", Role.TEACHER)
    repos.users.set_password_hash(u.user_id, "CHANGE_ME")

    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("legacy", "CHANGE_ME")
