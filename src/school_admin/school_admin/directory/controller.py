from __future__ import annotations

from flask import Flask, request

from ..common.http import Guards, ok
from ..core.enums import View
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.users_repo)

    @app.route("/api/directory", endpoint="directory_summary")
    @guards.requires(View.DIRECTORY)
    def directory_summary():
        return ok(counts=container.directory_service.summary())

    @app.route("/api/directory/<tab>", endpoint="directory_tab")
    @guards.requires(View.DIRECTORY)
    def directory_tab(tab: str):
        return ok(tab=tab, items=container.directory_service.tab(tab, request.args.get("q")))
