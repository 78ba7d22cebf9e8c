from __future__ import annotations

from flask import Flask

from ..common.http import json_body, ok
from ..container import Container
from ..users.controller import build_admin_required
from .model import MemberAccount

# Request body keys (camelCase, as sent by the front-end) -> service field names.
_FIELD_NAMES = {
    "name": "name",
    "hostelName": "hostel_name",
    "collegeName": "college_name",
    "whatsappNumber": "whatsapp_number",
    "subscriptionAmount": "subscription_amount",
    "maxCredits": "max_credits",
    "remainingCredits": "remaining_credits",
}


def member_json(m: MemberAccount) -> dict:
    return {
        "id": m.member_id,
        "name": m.name,
        "hostelName": m.hostel_name,
        "collegeName": m.college_name,
        "whatsappNumber": m.whatsapp_number,
        "subscriptionAmount": m.subscription_amount,
        "maxCredits": m.max_credits,
        "remainingCredits": m.remaining_credits,
        "totalPaid": m.total_paid,
        "paymentHistory": [
            {"amount": p.amount, "paidAt": p.paid_at, "description": p.description} for p in m.payment_history
        ],
        "createdAt": m.created_at,
    }


def register(app: Flask, container: Container) -> None:
    admin_required = build_admin_required(container)
    members = container.member_service

    @app.route("/api/members", methods=["GET"], endpoint="list_members")
    @admin_required
    def list_members():
        rows = [member_json(m) for m in members.list_members()]
        return ok(rows, count=len(rows))

    @app.route("/api/members", methods=["POST"], endpoint="add_member")
    @admin_required
    def add_member():
        data = json_body()
        member = members.register(
            name=data.get("name"),
            hostel_name=data.get("hostelName"),
            college_name=data.get("collegeName"),
            whatsapp_number=data.get("whatsappNumber"),
            subscription_amount=data.get("subscriptionAmount"),
            max_credits=data.get("maxCredits"),
        )
        return ok(member_json(member), status=201)

    # Fixed paths are registered before the <int:member_id> ones.
    @app.route("/api/members/exhausted", methods=["GET"], endpoint="exhausted_members")
    @admin_required
    def exhausted_members():
        rows = [member_json(m) for m in members.list_exhausted()]
        return ok(rows, count=len(rows))

    @app.route("/api/members/reset-credits", methods=["PUT"], endpoint="reset_credits")
    @admin_required
    def reset_credits():
        rows = [member_json(m) for m in members.reset_all_credits()]
        return ok(rows, message="Tiffin counts reset successfully")

    @app.route("/api/members/<int:member_id>", methods=["GET"], endpoint="get_member")
    @admin_required
    def get_member(member_id: int):
        return ok(member_json(members.get(member_id)))

    @app.route("/api/members/<int:member_id>", methods=["PUT"], endpoint="update_member")
    @admin_required
    def update_member(member_id: int):
        data = json_body()
        changes = {_FIELD_NAMES.get(key, key): value for key, value in data.items()}
        return ok(member_json(members.update(member_id, changes)))

    @app.route("/api/members/<int:member_id>", methods=["DELETE"], endpoint="delete_member")
    @admin_required
    def delete_member(member_id: int):
        members.delete(member_id)
        return ok({})

    @app.route("/api/members/<int:member_id>/reactivate", methods=["PUT"], endpoint="reactivate_member")
    @admin_required
    def reactivate_member(member_id: int):
        data = json_body()
        member = members.reactivate(
            member_id,
            subscription_amount=data.get("subscriptionAmount"),
            max_credits=data.get("maxCredits"),
        )
        return ok(member_json(member), message="Member reactivated successfully")

    @app.route("/api/members/<int:member_id>/payment", methods=["POST"], endpoint="record_payment")
    @admin_required
    def record_payment(member_id: int):
        data = json_body()
        member = members.record_payment(member_id, amount=data.get("amount"), description=data.get("description"))
        return ok(member_json(member))
