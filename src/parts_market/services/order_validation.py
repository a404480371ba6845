"""
parts_market.services.order_validation

Shape validation for order placement requests.

Responsibilities:
- Turn an untrusted JSON body into either `ValidOrderRequest` or
  `InvalidOrderRequest` before any store access.
- Reject the whole request when any single item is invalid.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from parts_market.db.records import OrderLine
from parts_market.errors import (
    InvalidAddress,
    InvalidIdempotencyKey,
    InvalidItems,
    InvalidPhone,
    InvalidRequest,
)

MAX_IDEMPOTENCY_KEY_LENGTH = 128
# Largest value a 64-bit INTEGER column (ids) can bind.
MAX_PART_ID = 2**63 - 1
# Fits a 32-bit INTEGER column on every backend.
MAX_QUANTITY = 2**31 - 1


@dataclass(frozen=True, slots=True)
class ValidOrderRequest:
    lines: tuple[OrderLine, ...]
    address: str
    phone_number: str
    idempotency_key: str | None = None

    @property
    def part_ids(self) -> list[int]:
        # Distinct, first-seen order.
        return list(dict.fromkeys(line.part_id for line in self.lines))


@dataclass(frozen=True, slots=True)
class InvalidOrderRequest:
    error: InvalidRequest


OrderValidation = ValidOrderRequest | InvalidOrderRequest


def _positive_int(value: Any, upper: int) -> bool:
    # JSON booleans decode to bool, which is an int subclass.
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= upper


def _item_problems(items: list[Any]) -> list[dict[str, Any]]:
    problems: list[dict[str, Any]] = []
    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            problems.append({"index": index, "reason": "item must be an object"})
            continue
        reasons = []
        if not _positive_int(item.get("partId"), MAX_PART_ID):
            reasons.append(f"partId must be an integer between 1 and {MAX_PART_ID}")
        if not _positive_int(item.get("quantity"), MAX_QUANTITY):
            reasons.append(f"quantity must be an integer between 1 and {MAX_QUANTITY}")
        if reasons:
            problems.append({"index": index, "reason": "; ".join(reasons)})
    return problems


def validate_order_request(
    body: Mapping[str, Any], *, phone_number_digits: int = 10
) -> OrderValidation:
    items = body.get("items")
    if not isinstance(items, list) or not items:
        return InvalidOrderRequest(InvalidItems("At least one item is required"))
    problems = _item_problems(items)
    if problems:
        return InvalidOrderRequest(InvalidItems(problems=problems))

    address = body.get("address")
    if not isinstance(address, str) or not address.strip():
        return InvalidOrderRequest(InvalidAddress())

    phone = body.get("phoneNumber")
    if not isinstance(phone, str) or not re.fullmatch(rf"[0-9]{{{phone_number_digits}}}", phone):
        return InvalidOrderRequest(
            InvalidPhone(f"Phone number must be exactly {phone_number_digits} digits")
        )

    key = body.get("idempotencyKey")
    if key is not None:
        if not isinstance(key, str) or not key.strip() or len(key) > MAX_IDEMPOTENCY_KEY_LENGTH:
            return InvalidOrderRequest(
                InvalidIdempotencyKey(
                    f"idempotencyKey must be a non-empty string of at most "
                    f"{MAX_IDEMPOTENCY_KEY_LENGTH} characters"
                )
            )

    return ValidOrderRequest(
        lines=tuple(OrderLine(part_id=i["partId"], quantity=i["quantity"]) for i in items),
        address=address.strip(),
        phone_number=phone,
        idempotency_key=key,
    )
