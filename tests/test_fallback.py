"""
Tests for recovering a total (and items) from receipts with no readable total.
"""

from snap2invoice.services.extraction.fallback import (
    apply_fallback,
    find_candidate_amounts,
    find_product_names,
    synthesize_items,
)
from snap2invoice.services.receipt_types import ReceiptItem


def test_candidate_amounts_include_misread_symbols_and_spaced_decimals():
    text = "Paid £12.50 and 3 . 25 and $999.99 and 1500.00"

    assert find_candidate_amounts(text) == [999.99, 12.5, 3.25]


def test_candidate_amounts_are_distinct():
    assert find_candidate_amounts("Coffee 3.50\nCoffee $3.50") == [3.5]


def test_dates_are_not_amounts():
    assert find_candidate_amounts("Visited 15.03.24") == []


def test_product_names_skip_merchant_and_boilerplate():
    lines = ["Acme Plumbing", "Service call $45.00", "Thank you for your business", "123 Main St"]

    assert find_product_names(lines, "Acme Plumbing") == ["Service call"]


def test_single_amount_named_after_merchant():
    items = synthesize_items([45.0], [], "Acme")

    assert items == [ReceiptItem(description="Services/Products from Acme", amount=45.0)]


def test_largest_amount_is_left_out_of_items():
    items = synthesize_items([20.0, 12.0, 8.0], ["Widget", "Gadget"])

    assert [(i.description, i.amount) for i in items] == [("Widget", 12.0), ("Gadget", 8.0)]


def test_unnamed_amounts_get_generic_descriptions():
    items = synthesize_items([20.0, 12.0, 8.0], [], "Acme")

    assert [i.description for i in items] == ["Product/Service from Acme", "Additional Item ($8.00)"]


def test_existing_items_are_kept():
    text = "Coffee 3.50\nMuffin 2.75\nPaid 6.25"
    items = [
        ReceiptItem(description="Coffee", amount=3.5),
        ReceiptItem(description="Muffin", amount=2.75),
        ReceiptItem(description="Paid", amount=6.25),
    ]

    result = apply_fallback(text, text.split("\n"), items)

    assert result.total == 6.25
    assert [i.description for i in result.items] == ["Coffee", "Muffin"]
    assert not result.items_synthesized


def test_items_synthesized_when_none_survive(no_total_receipt):
    lines = no_total_receipt.split("\n")
    items = [ReceiptItem(description="Service call", amount=45.0)]

    result = apply_fallback(no_total_receipt, lines, items, merchant_name="Acme Plumbing")

    assert result.total == 45.0
    assert result.items_synthesized
    assert [(i.description, i.amount) for i in result.items] == [("Service call", 45.0)]


def test_no_amounts_at_all(trace_events):
    from snap2invoice.services.extraction.trace import Tracer

    result = apply_fallback("nothing here", ["nothing here"], [], tracer=Tracer(trace_events.append))

    assert result.total == 0.0
    assert result.items == []
    assert trace_events[-1].message == "No money-shaped amounts in text"
