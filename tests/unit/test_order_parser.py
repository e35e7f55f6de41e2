from __future__ import annotations

import csv

import pytest

from src.ingestion.errors import ParseError
from src.ingestion.order_parser import OrderParser, build_nested_row, expand_path, parse_orders
from src.models.orders import HEADER_MAP


def test_header_map_has_fifteen_paths():
    assert len(HEADER_MAP) == 15
    assert HEADER_MAP[0] == "poNumber"
    assert HEADER_MAP[10] == "shipTo.zipCode"
    assert HEADER_MAP[14] == "shipTo.phone"


def test_expand_path_builds_dicts_and_lists():
    target = {}
    expand_path(target, "items.0.model", "A")
    expand_path(target, "items.0.cost", "9.99")
    expand_path(target, "shipTo.city", "Portland")
    expand_path(target, "poNumber", "PO1")

    assert target == {
        "items": [{"model": "A", "cost": "9.99"}],
        "shipTo": {"city": "Portland"},
        "poNumber": "PO1",
    }


def test_build_nested_row_is_positional(make_row):
    nested = build_nested_row(make_row("PO7", model="B", zip_code="4101"), HEADER_MAP)

    assert nested["poNumber"] == "PO7"
    assert nested["items"] == [
        {"quantity": "1", "model": "B", "description": "B description", "cost": "10.00"}
    ]
    assert nested["shipTo"]["zipCode"] == "4101"
    assert nested["orderDate"] == "01/02/2024"


def test_parse_one_record_per_row_in_file_order(make_csv, make_row):
    payload = make_csv([make_row("PO1", model="A"), make_row("PO2", model="B"), make_row("PO1", model="C")])

    orders = parse_orders(payload)

    assert [o.po_number for o in orders] == ["PO1", "PO2", "PO1"]
    assert [o.items[0].model for o in orders] == ["A", "B", "C"]
    assert all(len(o.items) == 1 for o in orders)


def test_own_header_text_is_discarded(make_csv, make_row):
    """Whatever the CSV's header says, columns map by position."""
    payload = make_csv([make_row("PO1")], header=[f"col{i}" for i in range(15)])

    orders = parse_orders(payload)

    assert orders[0].po_number == "PO1"
    assert orders[0].ship_to.name == "Dana Whitfield"


def test_values_stay_strings_and_are_not_padded(make_csv, make_row):
    payload = make_csv([make_row("00123", zip_code="4101", quantity="007")])

    order = parse_orders(payload)[0]

    assert order.po_number == "00123"
    assert order.items[0].quantity == "007"
    assert order.ship_to.zip_code == "4101"


def test_header_only_payload_yields_empty_list(make_csv):
    assert parse_orders(make_csv([])) == []


def test_empty_payload_yields_empty_list():
    assert parse_orders(b"") == []


def test_blank_lines_are_skipped(make_csv, make_row):
    payload = make_csv([make_row("PO1")]) + b"\n\n"

    assert len(parse_orders(payload)) == 1


def test_byte_order_mark_is_tolerated(make_csv, make_row):
    payload = b"\xef\xbb\xbf" + make_csv([make_row("PO1")])

    assert parse_orders(payload)[0].po_number == "PO1"


def test_quoted_commas_stay_in_one_column(make_csv, make_row):
    row = make_row("PO1")
    row[5] = "Harbor Supply, Inc."
    order = parse_orders(make_csv([row]))[0]

    assert order.ship_to.company == "Harbor Supply, Inc."


def test_row_shape_mismatch_fails_whole_payload(make_csv, make_row):
    short_row = make_row("PO2")[:-1]
    payload = make_csv([make_row("PO1"), short_row])

    with pytest.raises(ParseError) as exc_info:
        parse_orders(payload, filename="orders.csv")

    assert exc_info.value.kind == "RowShapeMismatch"
    assert exc_info.value.line_number == 3
    assert exc_info.value.file_name == "orders.csv"


def test_extra_columns_also_mismatch(make_csv, make_row):
    payload = make_csv([make_row("PO1") + ["extra"]])

    with pytest.raises(ParseError) as exc_info:
        parse_orders(payload)

    assert exc_info.value.kind == "RowShapeMismatch"


def test_invalid_utf8_is_encoding_error():
    with pytest.raises(ParseError) as exc_info:
        parse_orders(b"header\n\xff\xfe\xfa,broken\n")

    assert exc_info.value.kind == "EncodingError"


def test_custom_header_map():
    parser = OrderParser(["poNumber", "items.0.model", "shipTo.zipCode"])

    orders = parser.parse(b"a,b,c\nPO9,X1,501\n")

    assert orders[0].po_number == "PO9"
    assert orders[0].items[0].model == "X1"
    assert orders[0].ship_to.zip_code == "501"


def test_empty_header_map_is_rejected():
    with pytest.raises(ValueError):
        OrderParser([])


def test_short_blank_row_is_row_shape_mismatch(make_csv, make_row):
    payload = make_csv([make_row("PO1")]) + b",,\n"

    with pytest.raises(ParseError) as exc_info:
        parse_orders(payload)

    assert exc_info.value.kind == "RowShapeMismatch"
    assert exc_info.value.line_number == 3


def test_full_width_empty_row_becomes_a_record(make_csv, make_row):
    payload = make_csv([make_row("PO1"), [""] * 15])

    orders = parse_orders(payload)

    assert [o.po_number for o in orders] == ["PO1", ""]
    assert len(orders[1].items) == 1


def test_oversized_field_is_parse_error(make_csv, make_row):
    row = make_row("PO1")
    row[3] = "x" * 200_000

    with pytest.raises(ParseError) as exc_info:
        parse_orders(make_csv([row]), filename="big.csv")

    assert exc_info.value.kind == "RowShapeMismatch"
    assert exc_info.value.file_name == "big.csv"
    assert isinstance(exc_info.value.__cause__, csv.Error)


def test_unterminated_quote_is_parse_error(make_csv, make_row):
    payload = make_csv([make_row("PO1")]) + b'PO2,"' + b"y" * 140_000 + b"\n"

    with pytest.raises(ParseError) as exc_info:
        parse_orders(payload)

    assert exc_info.value.kind == "RowShapeMismatch"
