"""
Order workflow tests (in-memory store).

Covers the happy path, stock rejection, idempotent replay, concurrent retries with
the same key and commit failures.
"""

from __future__ import annotations

import asyncio

import pytest

from parts_market.auth.models import Identity
from parts_market.db.store import StoreWriteError
from parts_market.errors import CommitFailed, InvalidItems, InvalidPhone, UnavailableItems
from parts_market.services.order_workflow import OrderWorkflow

CUSTOMER = Identity(id=3, role="customer", email="c@example.com")


def _request(items=None, **extra):
    body = {
        "items": items if items is not None else [{"partId": 5, "quantity": 2}],
        "address": "12 Main St",
        "phoneNumber": "9876543210",
    }
    body.update(extra)
    return body


@pytest.fixture
def workflow(memory_store) -> OrderWorkflow:
    memory_store.add_user(CUSTOMER.id, role="customer")
    memory_store.add_part(5, price=100.0)
    return OrderWorkflow(store=memory_store)


@pytest.mark.asyncio
async def test_places_order(workflow, memory_store):
    result = await workflow.place_order(CUSTOMER, _request())

    assert result.created is True
    order = result.order
    assert order.user_id == CUSTOMER.id
    assert order.status == "Placed"
    assert order.address == "12 Main St"
    assert order.phone_number == "9876543210"
    assert [(i.part_id, i.quantity) for i in order.items] == [(5, 2)]
    assert order.items[0].part.price == 100.0
    assert order.total == 200.0
    assert memory_store.orders == [order]


@pytest.mark.asyncio
async def test_multi_item_order_keeps_every_line(workflow, memory_store):
    memory_store.add_part(6, price=25.0)

    result = await workflow.place_order(
        CUSTOMER,
        _request(items=[{"partId": 5, "quantity": 1}, {"partId": 6, "quantity": 3}]),
    )

    assert [(i.part_id, i.quantity) for i in result.order.items] == [(5, 1), (6, 3)]
    assert result.order.total == 175.0


@pytest.mark.asyncio
async def test_unavailable_parts_listed_and_nothing_written(workflow, memory_store):
    memory_store.add_part(6, in_stock=False)

    with pytest.raises(UnavailableItems) as ei:
        await workflow.place_order(
            CUSTOMER,
            _request(
                items=[
                    {"partId": 5, "quantity": 1},
                    {"partId": 6, "quantity": 1},
                    {"partId": 404, "quantity": 1},
                ]
            ),
        )

    assert ei.value.part_ids == [6, 404]
    assert ei.value.to_body()["details"] == {"partIds": [6, 404]}
    assert memory_store.orders == []


@pytest.mark.asyncio
async def test_invalid_request_touches_no_store(workflow, memory_store):
    with pytest.raises(InvalidItems):
        await workflow.place_order(CUSTOMER, _request(items=[{"partId": 5, "quantity": 0}]))
    with pytest.raises(InvalidPhone):
        await workflow.place_order(CUSTOMER, _request(phoneNumber="123"))

    assert memory_store.part_lookups == 0
    assert memory_store.orders == []


@pytest.mark.asyncio
async def test_replay_returns_original_without_stock_check(workflow, memory_store):
    first = await workflow.place_order(CUSTOMER, _request(idempotencyKey="abc-123"))
    lookups = memory_store.part_lookups

    # Even if the part has sold out since, the replay answers with the original order.
    memory_store.add_part(5, price=100.0, in_stock=False)
    second = await workflow.place_order(CUSTOMER, _request(idempotencyKey="abc-123"))

    assert first.created is True
    assert second.created is False
    assert second.order.id == first.order.id
    assert memory_store.part_lookups == lookups
    assert len(memory_store.orders) == 1


@pytest.mark.asyncio
async def test_keys_are_scoped_per_user(workflow, memory_store):
    other = Identity(id=8, role="customer")
    memory_store.add_user(other.id, role="customer")

    a = await workflow.place_order(CUSTOMER, _request(idempotencyKey="same"))
    b = await workflow.place_order(other, _request(idempotencyKey="same"))

    assert a.created and b.created
    assert a.order.id != b.order.id


@pytest.mark.asyncio
async def test_orders_without_key_are_never_deduplicated(workflow, memory_store):
    await workflow.place_order(CUSTOMER, _request())
    await workflow.place_order(CUSTOMER, _request())
    assert len(memory_store.orders) == 2


@pytest.mark.asyncio
async def test_concurrent_retries_create_one_order(workflow, memory_store):
    results = await asyncio.gather(
        workflow.place_order(CUSTOMER, _request(idempotencyKey="race")),
        workflow.place_order(CUSTOMER, _request(idempotencyKey="race")),
    )

    assert len(memory_store.orders) == 1
    assert {r.order.id for r in results} == {memory_store.orders[0].id}
    assert sorted(r.created for r in results) == [False, True]


@pytest.mark.asyncio
async def test_commit_failure_is_retryable(workflow, memory_store):
    memory_store.commit_error = StoreWriteError("connection lost")

    with pytest.raises(CommitFailed) as ei:
        await workflow.place_order(CUSTOMER, _request())

    assert ei.value.status_code == 503
    assert memory_store.orders == []


@pytest.mark.asyncio
async def test_commit_failure_with_key_and_no_winner(workflow, memory_store):
    memory_store.commit_error = StoreWriteError("connection lost")

    with pytest.raises(CommitFailed):
        await workflow.place_order(CUSTOMER, _request(idempotencyKey="k"))

    memory_store.commit_error = None
    result = await workflow.place_order(CUSTOMER, _request(idempotencyKey="k"))
    assert result.created is True
