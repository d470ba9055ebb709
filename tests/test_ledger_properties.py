"""Property-based checks of the stock/ledger invariant.

For any sequence of entry, exit and return batches, each product's quantity
equals its initial stock plus entries and returns minus exits, and a rejected
exit batch leaves every product and the ledger untouched.
"""
import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from almoxtrack.exceptions import InsufficientStockError
from almoxtrack.models.movement import Movement
from almoxtrack.schemas.movement import BatchItem, EntryBatch, ExitBatch, ReturnBatch, ReturnReason
from almoxtrack.services import movement_service, product_service

RESPONSIBLE = "Maria Oliveira"
PRODUCTS = 3

lines = st.lists(
    st.tuples(st.integers(0, PRODUCTS - 1), st.integers(1, 30)),
    min_size=1,
    max_size=4,
)
operations = st.lists(
    st.tuples(st.sampled_from(["entry", "exit", "return"]), lines),
    min_size=1,
    max_size=12,
)


def _batch(kind, items):
    if kind == "entry":
        return EntryBatch(items=items, supplier="Papelaria Central", invoice="NF-77")
    if kind == "exit":
        return ExitBatch(items=items, requester="Ana Costa (1020)", department="Limpeza")
    return ReturnBatch(items=items, department="Limpeza", reason=ReturnReason.EXCESS)


FINALIZE = {
    "entry": movement_service.finalize_entry,
    "exit": movement_service.finalize_exit,
    "return": movement_service.finalize_return,
}


@settings(max_examples=40, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(initial=st.lists(st.integers(0, 20), min_size=PRODUCTS, max_size=PRODUCTS), ops=operations)
def test_quantity_always_matches_ledger(db, make_product, initial, ops):
    products = [make_product(f"Item {i}", quantity=qty) for i, qty in enumerate(initial)]
    expected = {p.id: qty for p, qty in zip(products, initial)}

    for kind, raw_lines in ops:
        items = [BatchItem(product_id=products[i].id, quantity=qty) for i, qty in raw_lines]
        movements_before = db.query(Movement).count()

        demand = {}
        for item in items:
            demand[item.product_id] = demand.get(item.product_id, 0) + item.quantity
        should_fail = kind == "exit" and any(qty > expected[pid] for pid, qty in demand.items())

        if should_fail:
            with pytest.raises(InsufficientStockError):
                FINALIZE[kind](db, _batch(kind, items), RESPONSIBLE)
            db.expire_all()
            assert db.query(Movement).count() == movements_before
        else:
            FINALIZE[kind](db, _batch(kind, items), RESPONSIBLE)
            sign = -1 if kind == "exit" else 1
            for pid, qty in demand.items():
                expected[pid] += sign * qty

        for product in products:
            current = product_service.get_product(db, product.id).quantity
            assert current == expected[product.id]
            assert current >= 0
            assert movement_service.ledger_balances(db, [product.id]).get(product.id, 0) == current
