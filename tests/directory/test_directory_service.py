from __future__ import annotations

import pytest

from src.school_admin.school_admin.core.enums import Role
from src.school_admin.school_admin.core.exceptions import NotFoundError
from src.school_admin.school_admin.directory.service import contact_links


def test_contact_links():
    assert contact_links("050 123  4567", "a@b.c") == {"tel": "tel:0501234567", "mailto": "mailto:a@b.c"}
    assert contact_links(None, "") == {"tel": None, "mailto": None}


@pytest.fixture
def people(add_user, add_student):
    omar = add_student("Omar Ali", phone="050 111", email="omar@example.com")
    layla = add_student("Layla Hassan", phone="050 222")
    add_user("admin", Role.ADMIN, full_name="Ms. Fatima")
    add_user("teacher1", Role.TEACHER, full_name="Ms. Noura", phone="055 9")
    add_user("manager", Role.MANAGER, full_name="Mr. Hassan")
    add_user("parent1", Role.PARENT, full_name="Mohamed Ali", linked_student_ids=[omar.student_id])
    return omar, layla


def test_students_tab_search(container, people):
    svc = container.directory_service
    assert [s["name"] for s in svc.students("OMAR@")] == ["Omar Ali"]
    assert [s["name"] for s in svc.students("050 2")] == ["Layla Hassan"]
    assert svc.students("omar")[0]["tel"] == "tel:050111"


def test_teachers_tab_covers_teachers_and_admins(container, people):
    names = [t["name"] for t in container.directory_service.teachers()]
    assert names == ["Ms. Fatima", "Ms. Noura"]


def test_parents_tab_lists_linked_student_names(container, repos, people):
    omar, _ = people
    (row,) = container.directory_service.parents()
    assert row["linked_students"] == ["Omar Ali"]

    # A dangling link renders as "-".
    parent = repos.users.get_by_username("parent1")
    repos.users.set_linked_students(parent.user_id, [omar.student_id, 999])
    assert container.directory_service.parents("mohamed")[0]["linked_students"] == ["Omar Ali", "-"]


def test_summary_and_tab_dispatch(container, people):
    svc = container.directory_service
    assert svc.summary() == {"students": 2, "teachers": 2, "parents": 1}
    assert len(svc.tab("parents")) == 1
    with pytest.raises(NotFoundError):
        svc.tab("staff")
