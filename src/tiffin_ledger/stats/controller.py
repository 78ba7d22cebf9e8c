from __future__ import annotations

from flask import Flask

from ..common.http import ok
from ..container import Container
from ..users.controller import build_admin_required


def register(app: Flask, container: Container) -> None:
    admin_required = build_admin_required(container)

    @app.route("/api/stats/monthly-revenue", methods=["GET"], endpoint="monthly_revenue")
    @admin_required
    def monthly_revenue():
        return ok(None, revenue=container.stats_service.monthly_revenue())
