from __future__ import annotations

import pytest

from src.school_admin.school_admin.core.enums import Role, StudentStatus
from src.school_admin.school_admin.core.exceptions import AuthorizationError, NotFoundError, ValidationError


def test_create_and_update(container, repos):
    svc = container.student_service
    sid = svc.create(current_role=Role.MANAGER, name=" Omar Ali ", class_group="Sunflowers", age="5", phone=" ")

    s = repos.students.get_by_id(sid)
    assert (s.name, s.age, s.phone, s.status) == ("Omar Ali", 5, None, StudentStatus.ACTIVE)

    svc.update(current_role=Role.ADMIN, student_id=sid, name="Omar Ali", class_group="Tulips", status="Inactive")
    s = repos.students.get_by_id(sid)
    assert (s.class_group, s.status, s.age) == ("Tulips", StudentStatus.INACTIVE, None)


@pytest.mark.parametrize(
    "fields, message",
    [
        ({"name": "", "class_group": "Tulips"}, "Name is required"),
        ({"name": "A", "class_group": " "}, "Class is required"),
        ({"name": "A", "class_group": "Tulips", "age": "five"}, "Age must be a number"),
        ({"name": "A", "class_group": "Tulips", "age": 40}, "out of range"),
        ({"name": "A", "class_group": "Tulips", "status": "Graduated"}, "Invalid student status"),
    ],
)
def test_create_validation(container, fields, message):
    with pytest.raises(ValidationError, match=message):
        container.student_service.create(current_role=Role.ADMIN, **fields)


def test_teachers_cannot_write(container, add_student):
    s = add_student("Omar Ali")
    svc = container.student_service
    with pytest.raises(AuthorizationError):
        svc.create(current_role=Role.TEACHER, name="A", class_group="B")
    with pytest.raises(AuthorizationError):
        svc.delete(current_role=Role.TEACHER, student_id=s.student_id)


def test_delete_cascades_links_and_routes(container, repos, add_user, add_student):
    s = add_student("Omar Ali")
    parent = add_user("parent1", Role.PARENT, linked_student_ids=[s.student_id])
    rid = repos.routes.create(name="North", driver_name="", supervisor_name="", student_ids=[s.student_id])

    container.student_service.delete(current_role=Role.ADMIN, student_id=s.student_id)

    assert repos.users.get_by_id(parent.user_id).linked_student_ids == ()
    assert repos.routes.get_by_id(rid).student_ids == ()
    with pytest.raises(NotFoundError):
        container.student_service.delete(current_role=Role.ADMIN, student_id=s.student_id)


def test_parents_only_see_their_children(container, add_user, add_student):
    omar = add_student("Omar Ali")
    add_student("Layla Hassan")
    parent = add_user("parent1", Role.PARENT, linked_student_ids=[omar.student_id])
    lonely = add_user("parent2", Role.PARENT)
    teacher = add_user("teacher1", Role.TEACHER)
    svc = container.student_service

    assert [s.name for s in svc.visible_to(parent)] == ["Omar Ali"]
    assert svc.visible_to(lonely) == []
    assert len(svc.visible_to(teacher)) == 2
    with pytest.raises(AuthorizationError):
        svc.get_visible(lonely, omar.student_id)


def test_search_filters(container, add_user, add_student):
    add_student("Omar Ali", parent_name="Mohamed Ali")
    add_student("Layla Hassan", class_group="Tulips", status=StudentStatus.PENDING)
    admin = add_user("admin", Role.ADMIN)
    svc = container.student_service

    assert [s.name for s in svc.search(admin, term="mohamed")] == ["Omar Ali"]
    assert [s.name for s in svc.search(admin, class_group="Tulips")] == ["Layla Hassan"]
    assert [s.name for s in svc.search(admin, status="Active")] == ["Omar Ali"]
