"""
Transport — what the sync session needs from an HTTP client.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

# ═══════════════════════════════════════════════════════════════════════════════
# Transport Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class Transport(Protocol):
    """
    Backend calls used by SyncSession. Each returns the decoded JSON body.

    Failures are raised as TransportError; any other exception is treated
    the same way with no status.

    Example — httpx implementation:

        class HttpTransport:
            def __init__(self, client: httpx.AsyncClient):
                self.client = client

            async def fetch_order(self, order_id: int) -> Mapping[str, Any]:
                resp = await self.client.get(f"/orders/{order_id}/")
                if resp.is_error:
                    raise TransportError(resp.status_code, resp.json())
                return resp.json()

            # ... other methods
    """

    async def fetch_order(self, order_id: int) -> Mapping[str, Any]:
        ...

    async def update_status(self, order_id: int, body: Mapping[str, Any]) -> Mapping[str, Any]:
        """Answers 409 when the body's updated_at is older than the backend's copy."""
        ...

    async def redeem_discount(self, order_id: int, code: str) -> Mapping[str, Any]:
        """Returns the repriced order; refusals carry an error payload."""
        ...


class TransportError(Exception):
    """A non-2xx answer, with the parsed error body when there is one."""

    def __init__(self, status: int | None, payload: Mapping[str, Any] | None = None) -> None:
        self.status = status
        self.payload: Mapping[str, Any] = payload or {}
        super().__init__(f"backend answered {status}: {dict(self.payload)}")


CONFLICT = 409

# ═══════════════════════════════════════════════════════════════════════════════
# Sync Error
# ═══════════════════════════════════════════════════════════════════════════════


class SyncErrorKind(Enum):
    TRANSPORT = "sync.transport"
    DECODE = "sync.decode"
    DISCARDED = "sync.discarded"


@dataclass(frozen=True, slots=True)
class SyncError:
    """
    A round trip that did not produce an order.

    status: HTTP status for TRANSPORT errors, when the backend answered.
    """

    kind: SyncErrorKind
    message: str
    status: int | None = None
    params: Mapping[str, str] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.kind.value

    @property
    def is_conflict(self) -> bool:
        return self.kind is SyncErrorKind.TRANSPORT and self.status == CONFLICT


def transport_failure(e: Exception) -> SyncError:
    """Exception from a Transport call → SyncError(TRANSPORT)."""
    if isinstance(e, TransportError):
        return SyncError(SyncErrorKind.TRANSPORT, str(e), status=e.status)
    return SyncError(SyncErrorKind.TRANSPORT, f"{type(e).__name__}: {e}")


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "Transport",
    "TransportError",
    "CONFLICT",
    "SyncErrorKind",
    "SyncError",
    "transport_failure",
)
