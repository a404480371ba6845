"""
parts_market.services.order_workflow

Idempotent multi-item order placement.

Responsibilities:
- Drive one order through validating -> deduplicating -> stock_checking -> committed,
  short-circuiting to rejected without side effects.
- Guarantee at most one order per (user, idempotency key), including under
  concurrent retries.
- Keep the order and its lines atomic; surface write failures as retryable.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from parts_market.auth.models import Identity
from parts_market.db.records import NewOrder, OrderRecord
from parts_market.db.store import PersistentStore, StoreWriteError
from parts_market.errors import CommitFailed, InvalidRequest, UnavailableItems
from parts_market.observability.logging import get_logger
from parts_market.services.order_validation import (
    InvalidOrderRequest,
    ValidOrderRequest,
    validate_order_request,
)

log = get_logger(__name__)


class OrderPhase(enum.StrEnum):
    validating = "validating"
    deduplicating = "deduplicating"
    stock_checking = "stock_checking"
    committed = "committed"
    rejected = "rejected"


@dataclass(frozen=True, slots=True)
class PlacementResult:
    order: OrderRecord
    # False when an earlier order with the same idempotency key was returned.
    created: bool


class OrderWorkflow:
    def __init__(self, *, store: PersistentStore, phone_number_digits: int = 10) -> None:
        self._store = store
        self._phone_number_digits = phone_number_digits

    async def place_order(self, identity: Identity, request: Mapping[str, Any]) -> PlacementResult:
        phase = OrderPhase.validating
        try:
            validated = validate_order_request(
                request, phone_number_digits=self._phone_number_digits
            )
            if isinstance(validated, InvalidOrderRequest):
                raise validated.error

            if validated.idempotency_key is not None:
                phase = OrderPhase.deduplicating
                existing = await self._store.find_order_by_idempotency_key(
                    user_id=identity.id, key=validated.idempotency_key
                )
                if existing is not None:
                    log.info("order_deduplicated", user_id=identity.id, order_id=existing.id)
                    return PlacementResult(order=existing, created=False)

            phase = OrderPhase.stock_checking
            await self._check_stock(validated)

            return await self._commit(identity, validated)
        except (InvalidRequest, UnavailableItems) as e:
            log.info(
                "order_rejected",
                user_id=identity.id,
                phase=OrderPhase.rejected,
                failed_in=phase,
                reason=e.code,
            )
            raise

    async def _check_stock(self, validated: ValidOrderRequest) -> None:
        wanted = validated.part_ids
        available = await self._store.find_parts_by_ids(wanted, available_only=True)
        available_ids = {p.id for p in available}
        missing = [pid for pid in wanted if pid not in available_ids]
        if missing:
            raise UnavailableItems(missing)

    async def _commit(self, identity: Identity, validated: ValidOrderRequest) -> PlacementResult:
        new_order = NewOrder(
            user_id=identity.id,
            address=validated.address,
            phone_number=validated.phone_number,
            lines=validated.lines,
            idempotency_key=validated.idempotency_key,
        )
        try:
            order = await self._store.create_order_with_items(new_order)
        except StoreWriteError as e:
            if validated.idempotency_key is not None:
                # A concurrent request with the same key may have won the unique constraint.
                winner = await self._store.find_order_by_idempotency_key(
                    user_id=identity.id, key=validated.idempotency_key
                )
                if winner is not None:
                    log.info(
                        "order_idempotency_race_recovered",
                        user_id=identity.id,
                        order_id=winner.id,
                    )
                    return PlacementResult(order=winner, created=False)
            log.warning("order_commit_failed", user_id=identity.id, error=str(e))
            raise CommitFailed() from e

        log.info(
            "order_placed",
            user_id=identity.id,
            order_id=order.id,
            phase=OrderPhase.committed,
            lines=len(order.items),
        )
        return PlacementResult(order=order, created=True)


# --- Module Notes -----------------------------------------------------------
# Stock is checked, not reserved: availability may change before the commit. The
# commit itself is atomic, so a late failure leaves no partial order behind.
