from decimal import Decimal

from school_portal.shared.utils.money import format_currency, parse_amount, round_money


class TestRoundMoney:
    """Tests for round_money function."""

    def test_round_half_up(self):
        """Test ROUND_HALF_UP behavior."""
        assert round_money(Decimal("10.125")) == Decimal("10.13")
        assert round_money("10.124") == Decimal("10.12")

    def test_from_int(self):
        assert round_money(100) == Decimal("100.00")

    def test_precision(self):
        """Test that result always has 2 decimal places."""
        assert str(round_money(10.1)) == "10.10"


class TestParseAmount:
    """Tests for parse_amount (form and backend amounts)."""

    def test_numbers_and_numeric_strings(self):
        assert parse_amount(1500) == Decimal("1500")
        assert parse_amount("1,234.50") == Decimal("1234.50")
        assert parse_amount(" 12.5 ") == Decimal("12.5")

    def test_blank_or_invalid_is_none(self):
        assert parse_amount(None) is None
        assert parse_amount("") is None
        assert parse_amount("   ") is None
        assert parse_amount("abc") is None
        assert parse_amount("NaN") is None
        assert parse_amount(True) is None


class TestFormatCurrency:
    """Tests for peso display formatting."""

    def test_default_two_decimals(self):
        assert format_currency(1234.5) == "₱1,234.50"
        assert format_currency("1000000") == "₱1,000,000.00"
        assert format_currency(0) == "₱0.00"

    def test_without_decimals(self):
        assert format_currency("1500.4", show_decimals=False) == "₱1,500"
        assert format_currency(1500.5, show_decimals=False) == "₱1,501"

    def test_variable_decimals(self):
        assert format_currency(1234.5, min_decimals=0, max_decimals=2) == "₱1,234.5"
        assert format_currency(100, min_decimals=0, max_decimals=2) == "₱100"

    def test_negative(self):
        assert format_currency(-50) == "-₱50.00"

    def test_invalid_is_dash(self):
        assert format_currency(None) == "-"
        assert format_currency("abc") == "-"
