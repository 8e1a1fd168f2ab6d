from decimal import Decimal

import pytest

from app.services.clock import SystemClock
from app.services.identifiers import UuidGenerator
from app.services.pricing import format_price, parse_price


@pytest.mark.parametrize(
    "text, expected",
    [("10.00", Decimal("10.00")), (" 5.5 ", Decimal("5.5")), ("0", Decimal("0"))],
)
def test_parse_price(text, expected):
    assert parse_price(text) == expected


@pytest.mark.parametrize("text", ["", None, "ten", "1.2.3", "NaN", "Infinity"])
def test_parse_price_rejects(text):
    assert parse_price(text) is None


def test_format_price_keeps_cents():
    assert format_price(Decimal("10.00") + Decimal("5.50")) == "15.50"
    assert format_price(Decimal("0.1") + Decimal("0.2")) == "0.3"
    assert format_price(Decimal("1E+2")) == "100"


def test_system_clock_never_goes_backwards(monkeypatch):
    clock = SystemClock()
    readings = iter([200, 100, 300])
    monkeypatch.setattr("app.services.clock.time.time_ns", lambda: next(readings))

    assert [clock.now(), clock.now(), clock.now()] == [200, 200, 300]


def test_uuid_ids_fit_key_length():
    new_id = UuidGenerator().new_id()
    assert len(new_id) == 36
    assert new_id != UuidGenerator().new_id()
