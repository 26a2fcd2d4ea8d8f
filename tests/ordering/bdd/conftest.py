"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from pytest_bdd import given, parsers, then, when
from shared.errors import IllegalTransition


@pytest.fixture()
def outcome():
    return {}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a cash on delivery order for {quantity:d} units of "{product_id}"'),
    target_fixture="order",
)
def _(orchestrator, buyer, quantity, product_id):
    placement = orchestrator.place_order(
        buyer=buyer,
        items=[{"product_id": product_id, "name": "Masala Chai", "quantity": quantity, "unit_price": 50.0}],
        payment_method="Cash on Delivery",
        address={"street": "12 MG Road", "city": "Pune"},
    )
    return placement.order


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the admin sets the status to "{status}"'), target_fixture="order")
def _(orchestrator, order, status):
    return orchestrator.transition(str(order.id), status)


@when(parsers.cfparse('the admin tries to set the status to "{status}"'))
def _(orchestrator, order, outcome, status):
    try:
        orchestrator.transition(str(order.id), status)
    except IllegalTransition as exc:
        outcome["error"] = exc


@when("the order is cancelled", target_fixture="order")
def _(orchestrator, order):
    return orchestrator.cancel(str(order.id), reason="Requested by buyer", cancelled_by="Admin")


@when(parsers.cfparse('the buyer reports the order as "{feedback}"'), target_fixture="order")
def _(orchestrator, order, feedback):
    return orchestrator.record_feedback(str(order.id), feedback)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(orchestrator, order, status):
    assert orchestrator.get_order(str(order.id)).order_status == status


@then(parsers.cfparse('the timeline is "{statuses}"'))
def _(orchestrator, order, statuses):
    timeline = [step.status for step in orchestrator.get_order(str(order.id)).timeline]
    assert timeline == [status.strip() for status in statuses.split(",")]


@then("the transition is rejected")
def _(outcome):
    assert isinstance(outcome.get("error"), IllegalTransition)


@then(parsers.cfparse('"{product_id}" has {available:d} units available'))
def _(ledger, product_id, available):
    assert ledger.available(product_id) == available


@then("the order is closed")
def _(orchestrator, order):
    assert orchestrator.get_order(str(order.id)).closed is True
