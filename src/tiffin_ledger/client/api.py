from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..core.enums import Meal
from .session import ClientSession

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status: Optional[int], kind: str, message: str):
        super().__init__(message)
        self.status = status
        self.kind = kind
        self.message = message


class MessApiClient:
    """Thin httpx wrapper over the REST API.

    A 401 from any call clears the given session before ``ApiError`` is raised,
    so the caller only has to send the user back to the login screen.
    """

    def __init__(
        self,
        base_url: str,
        session: ClientSession,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.session = session
        self._http = httpx.Client(base_url=base_url.rstrip("/"), transport=transport, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "MessApiClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        headers = dict(kwargs.pop("headers", {}) or {})
        headers.update(self.session.auth_headers())
        try:
            response = self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise ApiError(None, "network", str(exc) or "Network error") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code == 401:
            self.session.clear()

        if response.is_error:
            error = body.get("error") if isinstance(body, dict) else None
            error = error if isinstance(error, dict) else {}
            raise ApiError(
                response.status_code,
                str(error.get("kind") or "http_error"),
                str(error.get("message") or response.reason_phrase or "Request failed"),
            )
        return body

    def login(self, username: str, password: str) -> Dict[str, Any]:
        body = self._request("POST", "/api/auth/login", json={"username": username, "password": password})
        data = body["data"]
        self.session.token = data["token"]
        self.session.user = dict(data.get("user") or {})
        return data

    def logout(self) -> None:
        self.session.clear()

    def set_meal_presence(self, member_id: int, att_date: date, meal: Meal, status: bool) -> Dict[str, Any]:
        body = self._request(
            "PUT",
            f"/api/attendance/{int(member_id)}/{att_date.isoformat()}/{Meal(meal).value}",
            json={"status": bool(status)},
        )
        return body["data"]

    def bulk_attendance(self, att_date: date, members: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        body = self._request("POST", "/api/attendance", json={"date": att_date.isoformat(), "members": list(members)})
        return body["data"]

    def attendance_for_date(self, att_date: date) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/attendance/{att_date.isoformat()}")["data"]

    def attendance_for_member(self, member_id: int) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/attendance/member/{int(member_id)}")["data"]

    def list_members(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/members")["data"]

    def exhausted_members(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/members/exhausted")["data"]

    def reactivate(self, member_id: int, *, subscription_amount: float, max_credits: int) -> Dict[str, Any]:
        body = self._request(
            "PUT",
            f"/api/members/{int(member_id)}/reactivate",
            json={"subscriptionAmount": subscription_amount, "maxCredits": max_credits},
        )
        return body["data"]

    def record_payment(self, member_id: int, *, amount: float, description: str = "") -> Dict[str, Any]:
        body = self._request(
            "POST",
            f"/api/members/{int(member_id)}/payment",
            json={"amount": amount, "description": description},
        )
        return body["data"]
