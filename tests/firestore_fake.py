"""In-memory Firestore REST and Identity Toolkit backend for tests.

Served through ``httpx.MockTransport`` so the real REST clients (queries,
batches, transactions, admin calls) run unchanged against it. Supports the
subset of the APIs the application uses: document get/patch/delete/create,
runQuery with field/unary/composite AND filters, orderBy, select and limit,
beginTransaction/commit/rollback, and the accounts endpoints.
"""

from __future__ import annotations

import itertools
import json
from datetime import datetime
from types import SimpleNamespace
from typing import Any
from urllib.parse import unquote

import httpx

from stallsync.infrastructure.firebase._rest_client import FirestoreRESTClient
from stallsync.infrastructure.firebase._rest_encoding import _decode_value, encode_fields
from stallsync.infrastructure.firebase.client import FirebaseHandle
from stallsync.infrastructure.firebase.identity import FirebaseIdentityAdmin

PROJECT_ID = "stallsync-test"
_DOCS_PREFIX = f"projects/{PROJECT_ID}/databases/(default)/documents"


def _error(status_code: int, status: str, message: str = "") -> httpx.Response:
    return httpx.Response(
        status_code, json={"error": {"code": status_code, "status": status, "message": message}}
    )


def _field(path: str) -> str:
    return path.strip("`")


def _sort_key(value: Any) -> tuple:
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, (int, float)):
        return (2, value)
    if isinstance(value, datetime):
        return (3, value.timestamp())
    return (4, str(value))


class FakeFirestore:
    """Documents stored as encoded ``fields`` maps, keyed by (collection, id)."""

    def __init__(self) -> None:
        self.docs: dict[str, dict[str, dict[str, Any]]] = {}
        self.update_times: dict[tuple[str, str], str] = {}
        self.commits = 0
        self.abort_next_commits = 0
        self.unreachable = False
        self.queries: list[dict[str, Any]] = []
        self._clock = itertools.count(1)
        self._txn_ids = itertools.count(1)

    # Direct access for arranging and asserting

    def put(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self.docs.setdefault(collection, {})[doc_id] = encode_fields(data)
        self._touch(collection, doc_id)

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        fields = self.docs.get(collection, {}).get(doc_id)
        if fields is None:
            return None
        return {k: _decode_value(v) for k, v in fields.items()}

    def all(self, collection: str) -> dict[str, dict[str, Any]]:
        return {doc_id: self.get(collection, doc_id) for doc_id in self.docs.get(collection, {})}

    def delete(self, collection: str, doc_id: str) -> None:
        self.docs.get(collection, {}).pop(doc_id, None)

    def count(self, collection: str) -> int:
        return len(self.docs.get(collection, {}))

    def _touch(self, collection: str, doc_id: str) -> None:
        self.update_times[(collection, doc_id)] = f"2024-01-01T00:00:{next(self._clock):06d}Z"

    def _resource(self, collection: str, doc_id: str, fields: dict | None = None) -> dict:
        stored = self.docs[collection][doc_id]
        return {
            "name": f"{_DOCS_PREFIX}/{collection}/{doc_id}",
            "fields": stored if fields is None else fields,
            "updateTime": self.update_times.get((collection, doc_id)),
        }

    # Request handling

    def handle(self, request: httpx.Request) -> httpx.Response:
        if self.unreachable:
            raise httpx.ConnectError("firestore unreachable", request=request)
        path = unquote(request.url.path)
        marker = f"/v1/{_DOCS_PREFIX}"
        if marker not in path:
            return _error(404, "NOT_FOUND", f"Unknown path {path}")
        tail = path.split(marker, 1)[1]
        body = json.loads(request.content) if request.content else {}
        if tail == ":runQuery":
            return self._run_query(body)
        if tail == ":beginTransaction":
            return httpx.Response(200, json={"transaction": f"txn-{next(self._txn_ids)}"})
        if tail == ":rollback":
            return httpx.Response(200, json={})
        if tail == ":commit":
            return self._commit(body.get("writes", []))
        parts = tail.strip("/").split("/")
        if len(parts) == 1 and request.method == "POST":
            return self._create(parts[0], request.url.params.get("documentId"), body)
        if len(parts) != 2:
            return _error(400, "INVALID_ARGUMENT", f"Unsupported path {path}")
        collection, doc_id = parts
        if request.method == "GET":
            if doc_id not in self.docs.get(collection, {}):
                return _error(404, "NOT_FOUND", "Document not found")
            return httpx.Response(200, json=self._resource(collection, doc_id))
        if request.method == "DELETE":
            self.docs.get(collection, {}).pop(doc_id, None)
            return httpx.Response(200, json={})
        if request.method == "PATCH":
            mask = [_field(p) for p in request.url.params.get_list("updateMask.fieldPaths")]
            must_exist = request.url.params.get("currentDocument.exists") == "true"
            exists = doc_id in self.docs.get(collection, {})
            if must_exist and not exists:
                return _error(404, "NOT_FOUND", "Document not found")
            self._write(collection, doc_id, body.get("fields", {}), mask or None)
            return httpx.Response(200, json=self._resource(collection, doc_id))
        return _error(405, "UNIMPLEMENTED", request.method)

    def _write(
        self, collection: str, doc_id: str, fields: dict[str, Any], mask: list[str] | None
    ) -> None:
        coll = self.docs.setdefault(collection, {})
        if mask is None:
            coll[doc_id] = dict(fields)
        else:
            merged = dict(coll.get(doc_id, {}))
            for name in mask:
                if name in fields:
                    merged[name] = fields[name]
                else:
                    merged.pop(name, None)
            coll[doc_id] = merged
        self._touch(collection, doc_id)

    def _create(self, collection: str, doc_id: str | None, body: dict) -> httpx.Response:
        if doc_id is None:
            return _error(400, "INVALID_ARGUMENT", "documentId is required")
        if doc_id in self.docs.get(collection, {}):
            return _error(409, "ALREADY_EXISTS", "Document already exists")
        self._write(collection, doc_id, body.get("fields", {}), None)
        return httpx.Response(200, json=self._resource(collection, doc_id))

    @staticmethod
    def _split(name: str) -> tuple[str, str]:
        collection, doc_id = name.split(f"{_DOCS_PREFIX}/", 1)[1].split("/")
        return collection, doc_id

    def _commit(self, writes: list[dict[str, Any]]) -> httpx.Response:
        if self.abort_next_commits:
            self.abort_next_commits -= 1
            return _error(409, "ABORTED", "Transaction contention")
        snapshot = {c: dict(docs) for c, docs in self.docs.items()}
        for write in writes:
            if "delete" in write:
                collection, doc_id = self._split(write["delete"])
                self.docs.get(collection, {}).pop(doc_id, None)
                continue
            update = write["update"]
            collection, doc_id = self._split(update["name"])
            exists = doc_id in self.docs.get(collection, {})
            precondition = write.get("currentDocument", {}).get("exists")
            if precondition is False and exists:
                self.docs = snapshot
                return _error(409, "ALREADY_EXISTS", f"{collection}/{doc_id} exists")
            if precondition is True and not exists:
                self.docs = snapshot
                return _error(404, "NOT_FOUND", f"{collection}/{doc_id} not found")
            mask = write.get("updateMask", {}).get("fieldPaths")
            self._write(
                collection, doc_id, update.get("fields", {}),
                [_field(p) for p in mask] if mask is not None else None,
            )
        self.commits += 1
        return httpx.Response(200, json={"writeResults": [{} for _ in writes]})

    def _matches(self, fields: dict[str, Any], where: dict | None, doc_id: str) -> bool:
        if not where:
            return True
        if "compositeFilter" in where:
            return all(self._matches(fields, f, doc_id) for f in where["compositeFilter"]["filters"])
        if "unaryFilter" in where:
            f = where["unaryFilter"]
            name = _field(f["field"]["fieldPath"])
            if name not in fields:
                return False
            return (_decode_value(fields[name]) is None) == (f["op"] == "IS_NULL")
        f = where["fieldFilter"]
        name = _field(f["field"]["fieldPath"])
        if name not in fields:
            return False
        actual = _decode_value(fields[name])
        expected = _decode_value(f["value"])
        op = f["op"]
        if op == "EQUAL":
            return actual == expected
        if op == "NOT_EQUAL":
            return actual != expected
        if op == "IN":
            return actual in expected
        if op == "ARRAY_CONTAINS":
            return isinstance(actual, list) and expected in actual
        if actual is None or _sort_key(actual)[0] != _sort_key(expected)[0]:
            return False
        return {
            "LESS_THAN": actual < expected,
            "LESS_THAN_OR_EQUAL": actual <= expected,
            "GREATER_THAN": actual > expected,
            "GREATER_THAN_OR_EQUAL": actual >= expected,
        }[op]

    def _run_query(self, body: dict[str, Any]) -> httpx.Response:
        query = body["structuredQuery"]
        self.queries.append(query)
        collection = query["from"][0]["collectionId"]
        docs = self.docs.get(collection, {})
        matched = [
            doc_id for doc_id in sorted(docs)
            if self._matches(docs[doc_id], query.get("where"), doc_id)
        ]
        for order in reversed(query.get("orderBy", [])):
            name = _field(order["field"]["fieldPath"])
            if name == "__name__":
                key = lambda d: d  # noqa: E731
            else:
                key = lambda d, n=name: _sort_key(_decode_value(docs[d].get(n, {"nullValue": None})))  # noqa: E731
            matched.sort(key=key, reverse=order.get("direction") == "DESCENDING")
        matched = matched[query.get("offset", 0):]
        if query.get("limit"):
            matched = matched[: query["limit"]]
        selected = query.get("select")
        out = []
        for doc_id in matched:
            fields = None
            if selected is not None:
                names = {_field(f["fieldPath"]) for f in selected.get("fields", [])}
                fields = {k: v for k, v in docs[doc_id].items() if k in names}
            out.append({"document": self._resource(collection, doc_id, fields)})
        return httpx.Response(200, json=out or [{"readTime": "2024-01-01T00:00:00Z"}])


class FakeIdentityToolkit:
    """Firebase Auth accounts keyed by uid; emails are unique."""

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.deny_permissions = False
        self._ids = itertools.count(1)

    def add(self, uid: str, email: str, display_name: str = "") -> None:
        self.users[uid] = {"localId": uid, "email": email, "displayName": display_name}

    def handle(self, request: httpx.Request) -> httpx.Response:
        if self.deny_permissions:
            return _error(403, "PERMISSION_DENIED", "PERMISSION_DENIED : Caller lacks firebaseauth.users.delete")
        action = request.url.path.rsplit("/", 1)[-1]
        body = json.loads(request.content) if request.content else {}
        if action == "accounts":
            if any(u["email"] == body.get("email") for u in self.users.values()):
                return _error(400, "INVALID_ARGUMENT", "EMAIL_EXISTS")
            uid = f"uid-{next(self._ids)}"
            self.add(uid, body["email"], body.get("displayName", ""))
            return httpx.Response(200, json=self.users[uid])
        if action == "accounts:delete":
            if self.users.pop(body["localId"], None) is None:
                return _error(400, "INVALID_ARGUMENT", "USER_NOT_FOUND")
            return httpx.Response(200, json={})
        if action == "accounts:update":
            user = self.users.get(body["localId"])
            if user is None:
                return _error(400, "INVALID_ARGUMENT", "USER_NOT_FOUND")
            user["disabled"] = bool(body.get("disableUser"))
            return httpx.Response(200, json=user)
        return _error(404, "NOT_FOUND", action)


class FakeFirebase:
    """Both fakes behind one transport, plus a handle wired to them."""

    def __init__(self) -> None:
        self.firestore = FakeFirestore()
        self.auth = FakeIdentityToolkit()
        self.transport = httpx.MockTransport(self._route)
        self.http = httpx.AsyncClient(transport=self.transport)

    def _route(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "identitytoolkit.googleapis.com":
            return self.auth.handle(request)
        return self.firestore.handle(request)

    def handle(self) -> FirebaseHandle:
        credentials = SimpleNamespace(valid=True, token="test-access-token")
        http = self.http
        return FirebaseHandle(
            project_id=PROJECT_ID,
            firestore=FirestoreRESTClient(PROJECT_ID, credentials, http_client=http),
            identity=FirebaseIdentityAdmin(PROJECT_ID, credentials, http_client=http),
        )

    async def aclose(self) -> None:
        await self.http.aclose()
