from datetime import date
from decimal import Decimal

import pytest

from smartcore.utils import to_date, to_money, to_text


class TestToDate:

    def test_iso_date(self):
        assert to_date("2024-02-29", "start") == date(2024, 2, 29)

    @pytest.mark.parametrize("raw", ["2024-02-01xyz", "2024-2-1", "2024-02-30", "", None, 20240201, ["2024-02-01"]])
    def test_rejects(self, raw):
        with pytest.raises(ValueError, match="bad_start"):
            to_date(raw, "start")


class TestToMoney:

    @pytest.mark.parametrize(
        "raw, expected",
        [("10", Decimal("10.00")), (" 35.555 ", Decimal("35.56")), (7, Decimal("7.00")),
         ("9999999999.99", Decimal("9999999999.99"))],
    )
    def test_accepts(self, raw, expected):
        assert to_money(raw) == expected

    @pytest.mark.parametrize("raw", ["1e30", "10000000000", "-1", "NaN", "Infinity", "x", None, True, [1], {"a": 1}])
    def test_rejects(self, raw):
        with pytest.raises(ValueError, match="bad_amount"):
            to_money(raw)


class TestToText:

    def test_strips_and_defaults(self):
        assert to_text("  hi ", "note") == "hi"
        assert to_text(None, "note", "other") == "other"
        assert to_text("   ", "note", "other") == "other"

    @pytest.mark.parametrize("raw", [5, ["a"], {"a": 1}, False])
    def test_rejects_non_strings(self, raw):
        with pytest.raises(ValueError, match="bad_note"):
            to_text(raw, "note")
