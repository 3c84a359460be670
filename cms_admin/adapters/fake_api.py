from __future__ import annotations

import json
from collections import defaultdict, deque
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

import httpx

from cms_admin.domain.resources import NAME_FIELDS, STATS_PATH

COLLECTION_ROUTES: dict[str, str] = {
    "/api/certificates": "certificates",
    "/api/services": "services",
    "/api/team": "team",
}
DELETE_ROUTES: dict[str, str] = {
    "/api/delete-certificate/": "certificates",
    "/api/delete-service/": "services",
    "/api/delete-team-member/": "team",
}
UPDATABLE_COLLECTIONS = {"certificates", "services"}


@dataclass
class Fault:
    status_code: int = 500
    error: str | None = "internal error"
    raw_body: bytes | None = None
    disconnect: bool = False


@dataclass
class RecordedRequest:
    method: str
    path: str
    body: Any


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _json(status_code: int, body: Any) -> httpx.Response:
    return httpx.Response(status_code, json=body)


def _error(status_code: int, message: str) -> httpx.Response:
    return _json(status_code, {"error": message})


class FakeCmsApi:
    """In-memory stand-in for the company website API."""

    def __init__(self) -> None:
        self._collections: dict[str, list[dict[str, Any]]] = {
            "certificates": [],
            "services": [],
            "team": [],
        }
        self._faults: dict[tuple[str, str], deque[Fault]] = defaultdict(deque)
        self._next_id = 1
        self.requests: list[RecordedRequest] = []
        self.messages = 0
        self.unread_messages = 0
        self.projects = 0
        self.clients = 0

    def _assign_id(self) -> str:
        record_id = str(self._next_id)
        self._next_id += 1
        return record_id

    def add(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        now = _now_iso()
        stored = {**record, "created_at": now, "updated_at": now}
        stored["id"] = str(record["id"]) if "id" in record else self._assign_id()
        self._collections[collection].append(stored)
        return dict(stored)

    def records(self, collection: str) -> list[dict[str, Any]]:
        return [dict(item) for item in self._collections[collection]]

    def fail_next(
        self,
        method: str,
        path: str,
        *,
        status_code: int = 500,
        error: str | None = "internal error",
        raw_body: bytes | None = None,
    ) -> None:
        self._faults[(method.upper(), path)].append(
            Fault(status_code=status_code, error=error, raw_body=raw_body)
        )

    def disconnect_next(self, method: str, path: str) -> None:
        self._faults[(method.upper(), path)].append(Fault(disconnect=True))

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def _pop_fault(self, method: str, path: str) -> Fault | None:
        queue = self._faults.get((method, path))
        if not queue:
            return None
        return queue.popleft()

    def handle(self, request: httpx.Request) -> httpx.Response:
        method = request.method.upper()
        path = request.url.path
        body: Any = None
        if request.content:
            try:
                body = json.loads(request.content)
            except ValueError:
                return _error(400, "invalid json body")
        self.requests.append(RecordedRequest(method=method, path=path, body=body))

        fault = self._pop_fault(method, path)
        if fault is not None:
            if fault.disconnect:
                raise httpx.ConnectError("connection refused", request=request)
            if fault.raw_body is not None:
                return httpx.Response(fault.status_code, content=fault.raw_body)
            return _json(fault.status_code, {"error": fault.error} if fault.error else {})

        if path == STATS_PATH and method == "GET":
            return _json(200, self._stats())
        if path in COLLECTION_ROUTES:
            return self._collection_route(method, COLLECTION_ROUTES[path], body)
        if path in DELETE_ROUTES and method == "POST":
            return self._delete(DELETE_ROUTES[path], body)
        prefix, _, record_id = path.rpartition("/")
        collection = COLLECTION_ROUTES.get(prefix)
        if collection in UPDATABLE_COLLECTIONS and method == "PUT" and record_id:
            return self._update(collection, record_id, body)
        return _error(404, "not found")

    def _collection_route(self, method: str, collection: str, body: Any) -> httpx.Response:
        if method == "GET":
            return _json(200, self.records(collection))
        if method != "POST":
            return _error(405, "method not allowed")
        if not isinstance(body, dict):
            return _error(400, "json object expected")
        if any(not body.get(name) for name in NAME_FIELDS):
            return _error(400, "name fields are required")
        fields = {key: value for key, value in body.items() if key != "id"}
        return _json(201, self.add(collection, fields))

    def _update(self, collection: str, record_id: str, body: Any) -> httpx.Response:
        if not isinstance(body, dict):
            return _error(400, "json object expected")
        for index, item in enumerate(self._collections[collection]):
            if item["id"] != record_id:
                continue
            fields = {key: value for key, value in body.items() if key not in {"id", "created_at"}}
            updated = {**item, **fields, "updated_at": _now_iso()}
            self._collections[collection][index] = updated
            return _json(200, dict(updated))
        return _error(404, f"{collection} record not found")

    def _delete(self, collection: str, body: Any) -> httpx.Response:
        record_id = str(body.get("id", "")) if isinstance(body, dict) else ""
        if not record_id:
            return _error(400, "id is required")
        remaining = [item for item in self._collections[collection] if item["id"] != record_id]
        if len(remaining) == len(self._collections[collection]):
            return _error(404, f"{collection} record not found")
        self._collections[collection] = remaining
        return _json(200, {"success": True, "id": record_id})

    def _stats(self) -> dict[str, int]:
        return {
            "services": len(self._collections["services"]),
            "certificates": len(self._collections["certificates"]),
            "teamMembers": len(self._collections["team"]),
            "messages": self.messages,
            "unreadMessages": self.unread_messages,
            "projects": self.projects,
            "clients": self.clients,
        }


def seed_demo_content(api: FakeCmsApi) -> FakeCmsApi:
    api.add(
        "services",
        {
            "name_en": "Cloud Migration",
            "name_ar": "الترحيل السحابي",
            "name_ro": "Migrare în cloud",
            "description_en": "Move workloads to managed cloud platforms.",
            "description_ar": "نقل الأنظمة إلى المنصات السحابية.",
            "description_ro": "Mutarea aplicațiilor în cloud.",
            "icon": "Cloud",
            "image_url": "",
        },
    )
    api.add(
        "certificates",
        {
            "name_en": "ISO 27001",
            "name_ar": "آيزو 27001",
            "name_ro": "ISO 27001",
            "description_en": "Information security management.",
            "description_ar": "إدارة أمن المعلومات.",
            "description_ro": "Managementul securității informației.",
            "image_url": "",
            "issued_date": "2024-01-15",
            "expiry_date": "2027-01-15",
        },
    )
    api.add(
        "team",
        {
            "name_en": "Ana Popescu",
            "name_ar": "آنا بوبيسكو",
            "name_ro": "Ana Popescu",
            "position_en": "Lead Engineer",
            "position_ar": "مهندسة رئيسية",
            "position_ro": "Inginer principal",
            "bio_en": "",
            "bio_ar": "",
            "bio_ro": "",
            "email": "ana@example.com",
            "phone": "",
            "image_url": "",
            "linkedin_url": "",
            "experience_years": 9,
        },
    )
    api.unread_messages = 2
    api.messages = 5
    return api


@lru_cache(maxsize=1)
def get_fake_api() -> FakeCmsApi:
    return seed_demo_content(FakeCmsApi())
