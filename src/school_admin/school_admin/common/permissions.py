"""Screen-level access rules.

`is_allowed` guards individual screens/endpoints, `menu_for` decides what the
sidebar shows. They differ for parents: a parent can be granted extra screens
through explicit permissions, but the menu only ever lists the parent view.
"""

from __future__ import annotations

from typing import Sequence

from ..core.constants import DEFAULT_VIEW_ROLES
from ..core.enums import Role, View
from ..users.model import User


def is_allowed(user: User | None, view: View) -> bool:
    if not user:
        return False
    if view == View.PROFILE:
        return True
    if user.role == Role.ADMIN:
        return True
    if user.role == Role.PARENT:
        if view in (View.PARENT_VIEW, View.DASHBOARD):
            return True
        return view.value in user.permissions

    if user.permissions:
        return view.value in user.permissions
    return user.role in DEFAULT_VIEW_ROLES.get(view, ())


def menu_for(user: User | None) -> Sequence[View]:
    if not user:
        return []

    def visible(view: View) -> bool:
        if user.role == Role.ADMIN:
            return view != View.PARENT_VIEW
        if user.role == Role.PARENT:
            return view == View.PARENT_VIEW
        if user.permissions:
            return view.value in user.permissions
        return user.role in DEFAULT_VIEW_ROLES[view]

    return [v for v in DEFAULT_VIEW_ROLES if visible(v)]


def default_view(user: User) -> View:
    if user.role in (Role.ADMIN, Role.PARENT):
        return View.DASHBOARD
    for p in user.permissions:
        try:
            return View(p)
        except ValueError:
            continue
    return View.DASHBOARD
