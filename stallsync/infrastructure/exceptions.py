"""Infrastructure exceptions for Google/Firebase upstream calls.

Upstream errors extend StallSyncException so presentation can map them
to HTTP responses consistently.
"""

from typing import Any

from stallsync.domain.exceptions import StallSyncException


class UpstreamServiceException(StallSyncException):
    """An upstream Google API call failed."""

    def __init__(
        self,
        service: str,
        message: str,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        details: dict[str, Any] = {"service": service}
        if status_code is not None:
            details["status_code"] = status_code
        if reason:
            details["reason"] = reason
        super().__init__(message, "UPSTREAM_ERROR", details)


class UpstreamPermissionException(StallSyncException):
    """The service account lacks the IAM permission needed for an upstream call.

    Surfaced to admin callers with diagnostic detail so the missing role can
    be granted (e.g. Firebase Authentication Admin).
    """

    def __init__(self, service: str, reason: str | None = None) -> None:
        super().__init__(
            f"The server's service account is not permitted to call {service}. "
            "Check its IAM roles in the Google Cloud console.",
            "UPSTREAM_PERMISSION_DENIED",
            {"service": service, "reason": reason or "PERMISSION_DENIED"},
        )


class TransactionAbortedError(StallSyncException):
    """Firestore aborted a transaction commit because of contention."""

    def __init__(self, attempts: int = 1) -> None:
        super().__init__(
            "The stock update conflicted with a concurrent change; try again.",
            "RESOURCE_CONFLICT",
            {"attempts": attempts},
        )


class DocumentExistsError(StallSyncException):
    """A create precondition failed because the document already exists."""

    def __init__(self, path: str | None = None) -> None:
        super().__init__(
            "Document already exists",
            "RESOURCE_CONFLICT",
            {"path": path} if path else {},
        )


class DocumentMissingError(StallSyncException):
    """An update precondition failed because the document does not exist."""

    def __init__(self, path: str | None = None) -> None:
        resource_id = path.rsplit("/", 1)[-1] if path else ""
        super().__init__(
            "Document not found",
            "RESOURCE_NOT_FOUND",
            {"resource_id": resource_id} if resource_id else {},
        )
