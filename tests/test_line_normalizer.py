"""
Tests for splitting OCR text into receipt lines, including the
re-segmentation of run-on single-line transcriptions.
"""

from snap2invoice.services.extraction.line_normalizer import normalize_lines, split_on_prices


def test_splits_trims_and_drops_blank_lines():
    assert normalize_lines("  Joe's Diner \n\n  Burger $8.00\n   \n") == ["Joe's Diner", "Burger $8.00"]


def test_blank_text_gives_no_lines():
    assert normalize_lines("   \n \n") == []


def test_short_single_line_is_left_alone():
    line = "Burger 8.00 Fries 3.00 Total 11.00"
    assert normalize_lines(line) == [line]


def test_single_line_split_before_product_codes(hardware_single_line):
    lines = normalize_lines(hardware_single_line)

    assert len(lines) == 3
    assert lines[0] == "HOME DEPOT"
    assert lines[1] == "012345678901 DEWALT DRILL 129.00"
    assert lines[2].startswith("045678901234 HUSKY TAPE 15.97")


def test_single_line_split_after_prices(cafe_single_line):
    lines = normalize_lines(cafe_single_line)

    assert lines[1:4] == ["Bagel 3.25", "Muffin 2.75", "Juice 3.50"]
    assert "Total 23.22" in lines
    assert lines[-1] == "Thank you come again"


def test_threshold_is_configurable(cafe_single_line):
    assert normalize_lines(cafe_single_line, single_line_threshold=500) == [cafe_single_line]


def test_price_scan_is_last_resort():
    # Prices followed by "#" defeat every other strategy
    line = " ".join(f"ITEM{i} {i}.50 #{i}" for i in range(1, 11))
    assert len(line) > 100

    lines = normalize_lines(line)

    assert len(lines) == 11
    assert lines[0] == "ITEM1"
    assert lines[1] == "1.50 #1 ITEM2"
    assert lines[-1] == "10.50 #10"


def test_split_on_prices_keeps_leading_text():
    assert split_on_prices("Coffee 3.50 x2 Tea 2.00 x1") == ["Coffee", "3.50 x2 Tea", "2.00 x1"]


def test_split_on_prices_without_prices():
    assert split_on_prices("no prices at all") == ["no prices at all"]


def test_unsplittable_long_line_is_returned_whole():
    line = "word " * 30
    assert normalize_lines(line) == [line.strip()]


def test_split_strategy_is_traced(hardware_single_line, trace_events):
    from snap2invoice.services.extraction.trace import Tracer

    normalize_lines(hardware_single_line, tracer=Tracer(trace_events.append))

    split_events = [e for e in trace_events if e.message == "Run-on line split"]
    assert len(split_events) == 1
    assert split_events[0].data["strategy"] == "product_code"
