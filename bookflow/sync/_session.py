"""
Sync session — round trips between the order store and the backend.

Every operation returns a LazyCoroResult: nothing happens until it is
awaited, and failures come back as values.

    session = SyncSession(store, transport, policy)

    match await session.submit_transition(order, PurchaseStatus.CONFIRMED, ActorRole.ADMIN):
        case Ok(confirmed): ...
        case Error(LifecycleError(kind=LifecycleErrorKind.STALE_STATE)): ...
        case Error(SyncError() as e): ...

Optimistic concurrency: a change is validated against the caller's snapshot.
If the store (or the backend, answering 409) has a newer copy, the session
re-fetches once and validates again against the fresh copy. A second
conflict is reported as STALE_STATE.

After close(), responses still in flight are dropped without touching the
store and the caller gets SyncError(DISCARDED).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from combinators import lift as L
from pydantic import ValidationError

from bookflow._policy import Policy
from bookflow._types import ActorRole, Error, LazyCoroResult, Ok, Result
from bookflow.discount import DiscountError, normalize_code
from bookflow.lifecycle import LifecycleError, LifecycleErrorKind, Status, check
from bookflow.money import round2
from bookflow.order import OrderAggregate
from bookflow.store import OrderStore
from bookflow.sync._transport import (
    SyncError,
    SyncErrorKind,
    Transport,
    TransportError,
    transport_failure,
)
from bookflow.wire import (
    ErrorPayload,
    OrderPayload,
    StatusUpdatePayload,
    decode,
    discount_error_from_payload,
)

logger = logging.getLogger(__name__)

type TransitionResult = Result[OrderAggregate, LifecycleError | SyncError]
type RedeemResult = Result[OrderAggregate, DiscountError | SyncError]


def _redeem_failure(code: str) -> Callable[[Exception], DiscountError | SyncError]:
    def on_error(e: Exception) -> DiscountError | SyncError:
        if isinstance(e, TransportError) and e.payload and e.status is not None and 400 <= e.status < 500:
            try:
                payload = ErrorPayload.model_validate(e.payload)
            except ValidationError as invalid:
                logger.warning("Unreadable refusal body for %s: %s", code, invalid)
                return transport_failure(e)
            return discount_error_from_payload(payload, code=code)
        return transport_failure(e)

    return on_error


def _stale(order: OrderAggregate, to: Status) -> LifecycleError:
    return LifecycleError(
        kind=LifecycleErrorKind.STALE_STATE,
        message=f"Request {order.id} changed while moving to {to.value}",
        params={"order_id": str(order.id), "to": to.value},
    )


class SyncSession:
    def __init__(self, store: OrderStore, transport: Transport, policy: Policy) -> None:
        self.store = store
        self.transport = transport
        self.policy = policy
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop applying responses. Idempotent."""
        if not self._closed:
            self._closed = True
            logger.info("Sync session closed")

    async def __aenter__(self) -> SyncSession:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    # ───────────────────────────────────────────────────────────────────────────
    # Responses
    # ───────────────────────────────────────────────────────────────────────────

    def _discard(self, call: str, order_id: int | None) -> Error[SyncError]:
        logger.warning("Discarding %s response for request %s: session closed", call, order_id)
        return Error(SyncError(
            SyncErrorKind.DISCARDED,
            f"{call} answered after the session was closed",
            params={"call": call, "order_id": str(order_id)},
        ))

    def _accept(self, call: str, data: Mapping[str, Any]) -> Result[OrderAggregate, SyncError]:
        """Decode a returned order and replace the stored copy."""
        try:
            order: OrderAggregate = decode(OrderPayload, data)
        except ValueError as e:
            logger.warning("Undecodable %s response: %s", call, e)
            return Error(SyncError(SyncErrorKind.DECODE, str(e), params={"call": call}))

        expected_tax = round2(order.pricing.subtotal * self.policy.tax_rate)
        if order.pricing.tax_amount != expected_tax:
            logger.warning(
                "Request %s tax %s differs from the configured rate (%s)",
                order.id, order.pricing.tax_amount, expected_tax,
            )

        if order.id is not None:
            self.store.put(order)
        return Ok(order)

    # ───────────────────────────────────────────────────────────────────────────
    # refresh
    # ───────────────────────────────────────────────────────────────────────────

    async def _fetch(self, order_id: int) -> Result[OrderAggregate, SyncError]:
        async def do_fetch() -> Mapping[str, Any]:
            return await self.transport.fetch_order(order_id)

        match await L.catching_async(do_fetch, on_error=transport_failure):
            case Error(e):
                logger.info("fetch_order %s failed: %s", order_id, e.message)
                return Error(e)
            case Ok(data):
                if self._closed:
                    return self._discard("fetch_order", order_id)
                logger.info("fetch_order %s ok", order_id)
                return self._accept("fetch_order", data)

    def refresh(self, order_id: int) -> LazyCoroResult[OrderAggregate, SyncError]:
        """
        Fetch a request and replace the stored copy with it.

        Example:
            match await session.refresh(17):
                case Ok(order): ...
        """

        async def execute() -> Result[OrderAggregate, SyncError]:
            if self._closed:
                return self._discard("fetch_order", order_id)
            return await self._fetch(order_id)

        return LazyCoroResult(execute)

    # ───────────────────────────────────────────────────────────────────────────
    # submit_transition
    # ───────────────────────────────────────────────────────────────────────────

    async def _retry_fresh(
        self,
        order: OrderAggregate,
        to: Status,
        role: ActorRole,
        reason: str | None,
        retried: bool,
    ) -> TransitionResult:
        if retried:
            logger.warning("Request %s still stale after re-fetch; giving up", order.id)
            return Error(_stale(order, to))

        order_id = order.id
        if order_id is None:
            raise ValueError("only stored requests can be synced")

        logger.warning("Request %s is stale; re-fetching before retry", order_id)
        match await self._fetch(order_id):
            case Ok(fresh):
                return await self._submit(fresh, to, role, reason, retried=True)
            case Error(e):
                return Error(e)

    async def _submit(
        self,
        order: OrderAggregate,
        to: Status,
        role: ActorRole,
        reason: str | None,
        *,
        retried: bool,
    ) -> TransitionResult:
        order_id = order.id
        if order_id is None:
            raise ValueError("only stored requests can be synced")
        if self._closed:
            return self._discard("update_status", order_id)

        checked = check(order.kind, order.status, to, role)
        if isinstance(checked, Error):
            return checked

        held = self.store.get(order.id)
        if held is not None and held.updated_at != order.updated_at:
            return await self._retry_fresh(order, to, role, reason, retried)

        body = StatusUpdatePayload.of(order, to, reason=reason).model_dump(mode="json", exclude_none=True)

        async def do_update() -> Mapping[str, Any]:
            return await self.transport.update_status(order_id, body)

        match await L.catching_async(do_update, on_error=transport_failure):
            case Error(e) if e.is_conflict:
                return await self._retry_fresh(order, to, role, reason, retried)
            case Error(e):
                logger.info("update_status %s -> %s failed: %s", order.id, to.value, e.message)
                return Error(e)
            case Ok(data):
                if self._closed:
                    return self._discard("update_status", order.id)
                logger.info("update_status %s -> %s ok", order.id, to.value)
                return self._accept("update_status", data)

    def submit_transition(
        self,
        order: OrderAggregate,
        to: Status,
        role: ActorRole,
        *,
        reason: str | None = None,
    ) -> LazyCoroResult[OrderAggregate, LifecycleError | SyncError]:
        """
        Validate a status change locally, send it, store the answer.

        The local check uses the same rules as lifecycle.transition, so an
        illegal edge never reaches the backend.

        Raises:
            ValueError: order has no id.
        """

        async def execute() -> TransitionResult:
            return await self._submit(order, to, role, reason, retried=False)

        return LazyCoroResult(execute)

    # ───────────────────────────────────────────────────────────────────────────
    # redeem_discount
    # ───────────────────────────────────────────────────────────────────────────

    def redeem_discount(
        self,
        order: OrderAggregate,
        code: str,
    ) -> LazyCoroResult[OrderAggregate, DiscountError | SyncError]:
        """
        Ask the backend to apply a code and store the repriced order.

        A refusal comes back as a DiscountError (see
        wire.discount_error_from_payload); other failures as SyncError.

        Raises:
            ValueError: order has no id.
        """
        if order.id is None:
            raise ValueError("only stored requests can redeem a code")
        order_id = order.id
        normalized = normalize_code(code)

        async def do_redeem() -> Mapping[str, Any]:
            return await self.transport.redeem_discount(order_id, normalized)

        async def execute() -> RedeemResult:
            if self._closed:
                return self._discard("redeem_discount", order.id)

            match await L.catching_async(do_redeem, on_error=_redeem_failure(normalized)):
                case Error(e):
                    logger.info("redeem_discount %s on %s refused: %s", normalized, order.id, e.message)
                    return Error(e)
                case Ok(data):
                    if self._closed:
                        return self._discard("redeem_discount", order.id)
                    logger.info("redeem_discount %s on %s ok", normalized, order.id)
                    return self._accept("redeem_discount", data)

        return LazyCoroResult(execute)


__all__ = (
    "TransitionResult",
    "RedeemResult",
    "SyncSession",
)
