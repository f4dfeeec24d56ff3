"""Tests for the order status workflow lookups."""

import pytest

from pos_ui_bff.workflow import (
    ORDERED_STATUSES,
    STATUS_LABELS,
    OrderStatus,
    group_by_status,
    next_status,
    next_status_label,
    parse_status,
    status_label,
)


@pytest.mark.parametrize(
    "current, expected",
    [
        ("PENDING", OrderStatus.READY_TO_SERVE),
        ("READY_TO_SERVE", OrderStatus.TO_PAY),
        ("TO_PAY", OrderStatus.COMPLETED),
        ("COMPLETED", None),
    ],
)
def test_next_status_follows_lifecycle(current, expected):
    assert next_status(current) is expected
    assert next_status(OrderStatus(current)) is expected


@pytest.mark.parametrize("value", ["pending", "CANCELLED", "", None, 3, ["PENDING"]])
def test_unknown_values_have_no_next_status(value):
    assert next_status(value) is None
    assert next_status_label(value) is None
    assert status_label(value) is None


def test_next_status_labels_are_button_captions():
    assert next_status_label("PENDING") == "Listo para servir"
    assert next_status_label("READY_TO_SERVE") == "Por pagar"
    assert next_status_label("TO_PAY") == "Completado"
    assert next_status_label("COMPLETED") is None


def test_every_status_has_a_label():
    assert set(STATUS_LABELS) == set(OrderStatus)
    assert status_label("PENDING") == "Pendiente"
    assert status_label(OrderStatus.COMPLETED) == "Completado"


def test_rendering_order_covers_all_statuses_once():
    assert ORDERED_STATUSES == (
        OrderStatus.PENDING,
        OrderStatus.READY_TO_SERVE,
        OrderStatus.TO_PAY,
        OrderStatus.COMPLETED,
    )


def test_status_is_a_plain_string_on_the_wire():
    assert parse_status("TO_PAY") == "TO_PAY"
    assert OrderStatus.TO_PAY.value == "TO_PAY"


def test_group_by_status_uses_fixed_order_and_skips_empty_buckets():
    orders = [
        {"id": 1, "status": "COMPLETED"},
        {"id": 2, "status": "PENDING"},
        {"id": 3, "status": "ARCHIVED"},
        {"id": 4, "status": "PENDING"},
        {"id": 5},
    ]

    groups = group_by_status(orders)

    assert [current for current, _ in groups] == [OrderStatus.PENDING, OrderStatus.COMPLETED]
    assert [order["id"] for order in groups[0][1]] == [2, 4]
    assert [order["id"] for order in groups[1][1]] == [1]


def test_group_by_status_of_nothing_is_empty():
    assert group_by_status([]) == []
