"""
Test doubles and payload builders for the fake billing API.
"""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx


BASE_URL = "http://billing.test/api"


class FakeBillingApi:
    """Records every request and answers from a (method, path) routing table."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.routes: Dict[Tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}

    def add(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        json_body: Any = None,
        content: Optional[bytes] = None,
    ) -> None:
        def responder(request: httpx.Request) -> httpx.Response:
            if content is not None:
                return httpx.Response(status_code, content=content)
            if json_body is None:
                return httpx.Response(status_code)
            return httpx.Response(status_code, json=json_body)

        self.routes[(method.upper(), path)] = responder

    def fail(self, method: str, path: str, exc: Exception) -> None:
        def responder(request: httpx.Request) -> httpx.Response:
            raise exc

        self.routes[(method.upper(), path)] = responder

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api")
        responder = self.routes.get((request.method, path))
        if responder is None:
            return httpx.Response(404, json={"error": f"No route for {request.method} {path}"})
        return responder(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


def user_payload(role: str = "billing_clerk", user_id: str = "u-1") -> Dict[str, Any]:
    return {
        "id": user_id,
        "email": f"{role}@stlukes.ng",
        "role": role,
        "full_name": "Ada Obi",
        "is_active": True,
        "created_at": "2024-01-05T10:00:00Z",
    }


def invoice_payload(status: str = "draft", **overrides: Any) -> Dict[str, Any]:
    payload = {
        "id": "inv-1",
        "invoice_number": "INV-20240105-0042",
        "patient_id": "pat-1",
        "doctor_id": "doc-1",
        "created_by": "u-1",
        "status": status,
        "subtotal": 130,
        "tax_amount": 10,
        "discount_amount": 6.5,
        "total_amount": 133.5,
        "discount_reason": "Staff",
        "notes": "",
        "finalized_at": None,
        "created_at": "2024-01-05T10:00:00Z",
        "updated_at": "2024-01-05T10:00:00Z",
    }
    payload.update(overrides)
    return payload
