"""Thin Firestore REST API client (no firebase-admin).

Uses google-auth for service account tokens and Firestore REST v1.
All HTTP calls use httpx.AsyncClient so they do not block the event loop.
The surface mirrors the Firestore SDK for the operations we use:
documents, multi-filter queries, write batches and read-write transactions.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, TypeVar
from urllib.parse import quote

import httpx

from stallsync.infrastructure.exceptions import (
    DocumentExistsError,
    DocumentMissingError,
    TransactionAbortedError,
    UpstreamPermissionException,
    UpstreamServiceException,
)
from stallsync.infrastructure.firebase._rest_encoding import (
    _encode_value,
    decode_document,
    encode_document,
    encode_fields,
    field_path,
)
from stallsync.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)

# cloud-platform also covers the Identity Toolkit admin endpoints.
SERVICE_ACCOUNT_SCOPES = [
    "https://www.googleapis.com/auth/datastore",
    "https://www.googleapis.com/auth/cloud-platform",
]
_BASE = "https://firestore.googleapis.com/v1"

MAX_WRITES_PER_COMMIT = 500
MAX_IN_VALUES = 30

T = TypeVar("T")


def _get_credentials(key_dict: dict):
    """Return google.oauth2.service_account.Credentials for Firestore and Identity Toolkit."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=SERVICE_ACCOUNT_SCOPES
    )


def _get_access_token(credentials) -> str:
    """Service account access token; refresh failures surface as UpstreamServiceException."""
    from google.auth import exceptions as google_auth_exceptions
    from google.auth.transport.requests import Request

    if not credentials.valid:
        try:
            credentials.refresh(Request())
        except google_auth_exceptions.GoogleAuthError as e:
            raise UpstreamServiceException(
                "Google OAuth2", "Could not obtain a service account access token", reason=str(e)
            ) from e
    return credentials.token


def _error_status(resp: httpx.Response) -> tuple[str | None, str | None]:
    """Return (status, message) from a Google API error body, if parseable."""
    try:
        err = resp.json().get("error") or {}
    except (ValueError, AttributeError):
        return None, None
    if not isinstance(err, dict):
        return None, None
    return err.get("status"), err.get("message")


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    access_token: str | None = None,
    *,
    params: list[tuple[str, str]] | dict[str, str] | None = None,
    missing_ok: bool = True,
) -> Any:
    """Perform an async request to the Firestore REST API.

    404 returns None when missing_ok, else raises DocumentMissingError.
    409 raises TransactionAbortedError (ABORTED) or DocumentExistsError.
    """
    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    if method not in ("GET", "PATCH", "POST", "DELETE"):
        raise ValueError(f"Unsupported method: {method!r}")
    try:
        resp = await client.request(method, url, headers=headers, json=body, params=params)
    except httpx.TransportError as e:
        logger.error("Firestore %s %s unreachable: %s", method, url, e)
        raise UpstreamServiceException(
            "Cloud Firestore", "Cloud Firestore is unreachable", reason=type(e).__name__
        ) from e
    if resp.status_code in (200, 204):
        if method == "DELETE":
            return {}
        raw = resp.content
        return json.loads(raw.decode()) if raw else {}
    status, message = _error_status(resp)
    if resp.status_code == 404:
        if missing_ok:
            return None
        raise DocumentMissingError(message)
    if resp.status_code == 409:
        if status == "ABORTED":
            raise TransactionAbortedError()
        raise DocumentExistsError(message)
    if resp.status_code in (401, 403):
        raise UpstreamPermissionException("Cloud Firestore", status)
    logger.error(
        "Firestore %s %s failed: status=%d reason=%s", method, url, resp.status_code, status
    )
    raise UpstreamServiceException(
        "Cloud Firestore",
        message or f"Firestore request failed with status {resp.status_code}",
        status_code=resp.status_code,
        reason=status,
    )


class DocumentSnapshot:
    """Snapshot of a document (id + data + server update time)."""

    def __init__(self, id_: str, data: dict, update_time: str | None = None):
        self.id = id_
        self._data = data
        self.update_time = update_time

    def to_dict(self) -> dict:
        return self._data

    @classmethod
    def from_resource(cls, doc: dict) -> "DocumentSnapshot":
        name = doc.get("name", "")
        return cls(
            name.rsplit("/", 1)[-1] if name else "",
            decode_document(doc),
            doc.get("updateTime"),
        )


class DocumentReference:
    """Reference to a single document; matches firestore API style."""

    def __init__(self, client: "FirestoreRESTClient", path: str):
        self._client = client
        self._path = path

    @property
    def id(self) -> str:
        return self._path.rsplit("/", 1)[-1]

    @property
    def path(self) -> str:
        """Full resource name (projects/.../documents/<collection>/<id>)."""
        return self._path

    async def set(self, data: dict[str, Any], merge: bool = False) -> None:
        """Create or overwrite the document; with merge only the given fields change."""
        params = (
            [("updateMask.fieldPaths", field_path(k)) for k in data] if merge else None
        )
        await _request_async(
            self._client._http,
            f"{_BASE}/{self._path}",
            method="PATCH",
            body=encode_document(data),
            access_token=await self._client.get_token(),
            params=params,
        )

    async def update(self, data: dict[str, Any]) -> None:
        """Merge fields into an existing document; DocumentMissingError if absent."""
        params = [("updateMask.fieldPaths", field_path(k)) for k in data]
        params.append(("currentDocument.exists", "true"))
        await _request_async(
            self._client._http,
            f"{_BASE}/{self._path}",
            method="PATCH",
            body=encode_document(data),
            access_token=await self._client.get_token(),
            params=params,
            missing_ok=False,
        )

    async def get(self, transaction: str | None = None) -> DocumentSnapshot | None:
        """Fetch the document; returns None if not found."""
        out = await _request_async(
            self._client._http,
            f"{_BASE}/{self._path}",
            access_token=await self._client.get_token(),
            params={"transaction": transaction} if transaction else None,
        )
        if not out:
            return None
        return DocumentSnapshot.from_resource(out)

    async def delete(self) -> None:
        """Delete the document. Idempotent if document is already missing (404)."""
        await _request_async(
            self._client._http,
            f"{_BASE}/{self._path}",
            method="DELETE",
            access_token=await self._client.get_token(),
        )


_OP_MAP: dict[str, str] = {
    "==": "EQUAL",
    "!=": "NOT_EQUAL",
    "<": "LESS_THAN",
    "<=": "LESS_THAN_OR_EQUAL",
    ">": "GREATER_THAN",
    ">=": "GREATER_THAN_OR_EQUAL",
    "in": "IN",
    "not-in": "NOT_IN",
    "array_contains": "ARRAY_CONTAINS",
    "array-contains": "ARRAY_CONTAINS",
    "array_contains_any": "ARRAY_CONTAINS_ANY",
    "array-contains-any": "ARRAY_CONTAINS_ANY",
}


def _encode_filter(field: str, op: str, value: Any) -> dict:
    rest_op = _OP_MAP.get(op, op)
    if value is None and rest_op in ("EQUAL", "NOT_EQUAL"):
        return {
            "unaryFilter": {
                "field": {"fieldPath": field_path(field)},
                "op": "IS_NULL" if rest_op == "EQUAL" else "IS_NOT_NULL",
            }
        }
    return {
        "fieldFilter": {
            "field": {"fieldPath": field_path(field)},
            "op": rest_op,
            "value": _encode_value(value),
        }
    }


class _Query:
    """Immutable query builder; every builder call returns a new query.

    Runs via runQuery (filters, order, offset and limit applied on the server).
    ``in`` filters with more than 30 values are split into several queries
    whose results are concatenated; order and limit then hold per chunk.
    """

    def __init__(self, client: "FirestoreRESTClient", parent: str, collection_id: str):
        self._client = client
        self._parent = parent
        self._collection_id = collection_id
        self._filters: tuple[tuple[str, str, Any], ...] = ()
        self._orders: tuple[tuple[str, str], ...] = ()
        self._fields: tuple[str, ...] | None = None
        self._offset = 0
        self._limit: int | None = None

    def _clone(self, **changes: Any) -> "_Query":
        q = _Query(self._client, self._parent, self._collection_id)
        q._filters = self._filters
        q._orders = self._orders
        q._fields = self._fields
        q._offset = self._offset
        q._limit = self._limit
        for key, value in changes.items():
            setattr(q, f"_{key}", value)
        return q

    @property
    def collection_id(self) -> str:
        return self._collection_id

    def where(self, field: str, op: str, value: Any) -> "_Query":
        return self._clone(filters=self._filters + ((field, op, value),))

    def order_by(self, field: str, direction: str = "ASCENDING") -> "_Query":
        return self._clone(orders=self._orders + ((field, direction),))

    def select(self, *fields: str) -> "_Query":
        """Project only the given fields; ``select()`` returns ids only."""
        return self._clone(fields=tuple(fields) or ("__name__",))

    def offset(self, n: int) -> "_Query":
        return self._clone(offset=n)

    def limit(self, n: int | None) -> "_Query":
        return self._clone(limit=n)

    def _structured(self, filters: tuple[tuple[str, str, Any], ...]) -> dict[str, Any]:
        structured: dict[str, Any] = {"from": [{"collectionId": self._collection_id}]}
        encoded = [_encode_filter(f, op, v) for f, op, v in filters]
        if len(encoded) == 1:
            structured["where"] = encoded[0]
        elif encoded:
            structured["where"] = {"compositeFilter": {"op": "AND", "filters": encoded}}
        if self._orders:
            structured["orderBy"] = [
                {"field": {"fieldPath": field_path(f)}, "direction": d}
                for f, d in self._orders
            ]
        if self._fields is not None:
            structured["select"] = {
                "fields": [{"fieldPath": field_path(f)} for f in self._fields]
            }
        if self._offset:
            structured["offset"] = self._offset
        if self._limit:
            structured["limit"] = self._limit
        return structured

    def _filter_sets(self) -> list[tuple[tuple[str, str, Any], ...]]:
        for idx, (field, op, value) in enumerate(self._filters):
            if _OP_MAP.get(op, op) == "IN" and len(value) > MAX_IN_VALUES:
                values = list(value)
                return [
                    self._filters[:idx]
                    + ((field, op, values[i : i + MAX_IN_VALUES]),)
                    + self._filters[idx + 1 :]
                    for i in range(0, len(values), MAX_IN_VALUES)
                ]
        return [self._filters]

    async def stream(self, transaction: str | None = None) -> AsyncIterator[DocumentSnapshot]:
        """Execute the query and yield document snapshots."""
        url = f"{_BASE}/{self._parent}:runQuery"
        for filters in self._filter_sets():
            body: dict[str, Any] = {"structuredQuery": self._structured(filters)}
            if transaction:
                body["transaction"] = transaction
            resp = await _request_async(
                self._client._http,
                url,
                method="POST",
                body=body,
                access_token=await self._client.get_token(),
            )
            items = resp if isinstance(resp, list) else ([resp] if resp else [])
            for item in items:
                if "document" in item:
                    yield DocumentSnapshot.from_resource(item["document"])

    async def get(self, transaction: str | None = None) -> list[DocumentSnapshot]:
        return [snap async for snap in self.stream(transaction=transaction)]


class CollectionReference(_Query):
    """Reference to a top-level collection; also the unfiltered query over it."""

    def __init__(self, client: "FirestoreRESTClient", path: str):
        path = path.rstrip("/")
        parent, collection_id = path.rsplit("/", 1)
        super().__init__(client, parent, collection_id)
        self._path = path

    def document(self, document_id: str | None = None) -> DocumentReference:
        """Reference to a document; a new CUID is used when no id is given."""
        return DocumentReference(self._client, f"{self._path}/{document_id or generate_cuid()}")

    async def create(self, document_id: str, data: dict[str, Any]) -> None:
        """Create a document with the given ID (DocumentExistsError if it exists)."""
        url = f"{_BASE}/{self._path}?documentId={quote(document_id, safe='')}"
        await _request_async(
            self._client._http,
            url,
            method="POST",
            body=encode_document(data),
            access_token=await self._client.get_token(),
        )

    async def add(self, data: dict[str, Any]) -> DocumentReference:
        """Create a document with a generated id and return its reference."""
        ref = self.document()
        await self.create(ref.id, data)
        return ref


class WriteBatch:
    """Buffered writes committed atomically in one ``documents:commit`` call."""

    def __init__(self, client: "FirestoreRESTClient") -> None:
        self._client = client
        self._writes: list[dict[str, Any]] = []

    def __len__(self) -> int:
        return len(self._writes)

    def _add(self, write: dict[str, Any]) -> None:
        if len(self._writes) >= MAX_WRITES_PER_COMMIT:
            raise ValueError(
                f"A Firestore commit accepts at most {MAX_WRITES_PER_COMMIT} writes"
            )
        self._writes.append(write)

    def set(self, ref: DocumentReference, data: dict[str, Any], merge: bool = False) -> None:
        write: dict[str, Any] = {"update": {"name": ref.path, "fields": encode_fields(data)}}
        if merge:
            write["updateMask"] = {"fieldPaths": [field_path(k) for k in data]}
        self._add(write)

    def create(self, ref: DocumentReference, data: dict[str, Any]) -> None:
        self._add({
            "update": {"name": ref.path, "fields": encode_fields(data)},
            "currentDocument": {"exists": False},
        })

    def update(self, ref: DocumentReference, data: dict[str, Any]) -> None:
        self._add({
            "update": {"name": ref.path, "fields": encode_fields(data)},
            "updateMask": {"fieldPaths": [field_path(k) for k in data]},
            "currentDocument": {"exists": True},
        })

    def delete(self, ref: DocumentReference) -> None:
        self._add({"delete": ref.path})

    async def commit(self) -> None:
        if not self._writes:
            return
        await self._client._commit(self._writes)
        self._writes = []


class Transaction(WriteBatch):
    """Read-write transaction: reads see a consistent snapshot, writes commit together.

    All reads must happen before the first write is queued.
    """

    def __init__(self, client: "FirestoreRESTClient", transaction_id: str) -> None:
        super().__init__(client)
        self.id = transaction_id

    def _check_read(self) -> None:
        if self._writes:
            raise RuntimeError("Transactions require all reads to happen before writes")

    async def get(self, ref: DocumentReference) -> DocumentSnapshot | None:
        self._check_read()
        return await ref.get(transaction=self.id)

    async def query(self, query: _Query) -> list[DocumentSnapshot]:
        self._check_read()
        return await query.get(transaction=self.id)

    async def commit(self) -> None:
        await self._client._commit(self._writes, transaction=self.id)
        self._writes = []


class FirestoreRESTClient:
    """Lightweight Firestore client using REST API (no firebase-admin)."""

    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._prefix = f"projects/{project_id}/databases/(default)/documents"
        self._database = f"projects/{project_id}/databases/(default)"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=30.0)
        self._owns_http = http_client is None

    @property
    def project_id(self) -> str:
        return self._project_id

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str:
        """Return a valid access token; refreshes in thread pool to avoid blocking."""
        return await asyncio.to_thread(_get_access_token, self._credentials)

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self, f"{self._prefix}/{collection_id}")

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    async def _commit(
        self, writes: list[dict[str, Any]], transaction: str | None = None
    ) -> dict:
        body: dict[str, Any] = {"writes": writes}
        if transaction:
            body["transaction"] = transaction
        out = await _request_async(
            self._http,
            f"{_BASE}/{self._database}/documents:commit",
            method="POST",
            body=body,
            access_token=await self.get_token(),
            missing_ok=False,
        )
        return out or {}

    async def begin_transaction(self, retry_of: str | None = None) -> str:
        read_write: dict[str, Any] = {"retryTransaction": retry_of} if retry_of else {}
        out = await _request_async(
            self._http,
            f"{_BASE}/{self._database}/documents:beginTransaction",
            method="POST",
            body={"options": {"readWrite": read_write}},
            access_token=await self.get_token(),
            missing_ok=False,
        )
        return out["transaction"]

    async def rollback(self, transaction_id: str) -> None:
        await _request_async(
            self._http,
            f"{_BASE}/{self._database}/documents:rollback",
            method="POST",
            body={"transaction": transaction_id},
            access_token=await self.get_token(),
        )

    async def run_transaction(
        self,
        func: Callable[[Transaction], Awaitable[T]],
        *,
        max_attempts: int = 5,
    ) -> T:
        """Run func inside a read-write transaction and commit its writes.

        ABORTED commits (contention) are retried up to max_attempts times.
        Any other exception rolls the transaction back and propagates.
        """
        previous: str | None = None
        for attempt in range(1, max_attempts + 1):
            transaction_id = await self.begin_transaction(retry_of=previous)
            txn = Transaction(self, transaction_id)
            try:
                result = await func(txn)
                await txn.commit()
                return result
            except TransactionAbortedError:
                logger.warning(
                    "Firestore transaction aborted (attempt %d/%d)", attempt, max_attempts
                )
                previous = transaction_id
                if attempt == max_attempts:
                    raise TransactionAbortedError(attempts=attempt) from None
            except Exception:
                await self._rollback_quietly(transaction_id)
                raise
        raise TransactionAbortedError(attempts=max_attempts)

    async def _rollback_quietly(self, transaction_id: str) -> None:
        try:
            await self.rollback(transaction_id)
        except (httpx.HTTPError, UpstreamServiceException, UpstreamPermissionException):
            logger.warning("Firestore rollback failed for %s", transaction_id, exc_info=True)
