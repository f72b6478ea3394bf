"""Fake Airtable backend served through httpx.MockTransport."""

import asyncio
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote

import httpx

BASE_PATH = "/v0/appTest"


def make_records(prefix: str, count: int, start: int = 0) -> List[Dict[str, Any]]:
    return [
        {"id": f"rec{prefix}{i:03d}", "fields": {"Name": f"{prefix} {i:03d}"}}
        for i in range(start, start + count)
    ]


class FakeAirtable:
    """Serves list pages keyed by offset and single records keyed by (table, id)."""

    def __init__(self):
        self.pages: Dict[str, Tuple[List[Dict[str, Any]], Optional[str]]] = {}
        self.records: Dict[Tuple[str, str], Dict[str, Any]] = {}
        # Queued overrides returned before the normal response, per path
        self.failures: Dict[str, List[httpx.Response]] = {}
        self.requests: List[httpx.Request] = []
        self.gate: Optional[asyncio.Event] = None

    def add_page(self, cursor: str, records: List[Dict[str, Any]], next_offset: Optional[str] = None):
        self.pages[cursor] = (records, next_offset)

    def add_reference(self, table: str, record_id: str, name: Optional[str]):
        fields = {} if name is None else {"Name": name}
        self.records[(table, record_id)] = {"id": record_id, "fields": fields}

    def fail_next(self, path: str, response: httpx.Response):
        self.failures.setdefault(path, []).append(response)

    def requests_to(self, table: str) -> List[httpx.Request]:
        prefix = f"{BASE_PATH}/{table}"
        return [r for r in self.requests if unquote(r.url.path).startswith(prefix)]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport())

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()

        path = unquote(request.url.path)
        queued = self.failures.get(path)
        if queued:
            return queued.pop(0)

        parts = path[len(BASE_PATH) + 1:].split("/")
        if len(parts) == 1:
            cursor = request.url.params.get("offset", "")
            if cursor not in self.pages:
                return httpx.Response(422, json={"error": "LIST_RECORDS_ITERATOR_NOT_AVAILABLE"})
            records, next_offset = self.pages[cursor]
            body: Dict[str, Any] = {"records": records}
            if next_offset:
                body["offset"] = next_offset
            return httpx.Response(200, json=body)

        table, record_id = parts[0], parts[1]
        record = self.records.get((table, record_id))
        if record is None:
            return httpx.Response(404, json={"error": "NOT_FOUND"})
        return httpx.Response(200, json=record)
