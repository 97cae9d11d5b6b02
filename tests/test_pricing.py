"""Tests for margin parsing and selling-price calculation."""

import math

import pytest

from pod_catalog.errors import CatalogError, CatalogErrorKind
from pod_catalog.pricing import calculate_pricing, parse_margin


class TestParseMargin:
    @pytest.mark.parametrize(
        ("margin", "expected"),
        [
            ("50%", 0.5),
            (" 25 % ", 0.25),
            ("12.5%", 0.125),
            ("0.5", 0.5),
            (".3", 0.3),
            (0.4, 0.4),
            ("99.9%", 0.999),
        ],
    )
    def test_accepted_forms(self, margin, expected):
        assert parse_margin(margin) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "margin",
        [
            "50",  # bare value >= 1 is ambiguous
            50,
            1,
            1.0,
            "100%",
            "150%",
            "0%",
            0,
            0.0,
            -0.1,
            "-5%",
            "abc",
            "",
            "50%%",
            True,
            None,
            float("nan"),
            float("inf"),
        ],
    )
    def test_rejected(self, margin):
        with pytest.raises(CatalogError) as exc_info:
            parse_margin(margin)
        assert exc_info.value.kind is CatalogErrorKind.VALIDATION_ERROR


class TestCalculatePricing:
    def test_fifty_percent_doubles_cost(self):
        result = calculate_pricing(1200, "50%")
        assert result.price == 2400
        assert result.profit == 1200

    def test_percent_and_fraction_agree(self):
        assert calculate_pricing(1799, "35%") == calculate_pricing(1799, 0.35)
        assert calculate_pricing(1799, "0.35") == calculate_pricing(1799, 0.35)

    def test_rounds_to_nearest_unit(self):
        # 1000 / 0.7 = 1428.57...
        result = calculate_pricing(1000, "30%")
        assert result.price == 1429
        assert result.profit == 429

    def test_zero_cost(self):
        result = calculate_pricing(0, "50%")
        assert (result.price, result.profit) == (0, 0)

    def test_profit_is_price_minus_cost(self):
        for cost in (1, 99, 1250, 2899):
            result = calculate_pricing(cost, "40%")
            assert result.profit == result.price - cost

    def test_price_reproduces_cost(self):
        for cost in (350, 1200, 1999, 4567):
            for margin in (0.1, 0.25, 0.5, 0.65):
                price = calculate_pricing(cost, margin).price
                assert math.isclose(price * (1 - margin), cost, abs_tol=1)

    def test_price_never_below_cost(self):
        for cost in (1, 10, 1000):
            assert calculate_pricing(cost, 0.01).price >= cost

    def test_invalid_margin_propagates(self):
        with pytest.raises(CatalogError):
            calculate_pricing(1200, "100%")

    @pytest.mark.parametrize("cost", [-1, 12.5, "1200", True])
    def test_invalid_cost(self, cost):
        with pytest.raises(CatalogError) as exc_info:
            calculate_pricing(cost, "50%")
        assert exc_info.value.kind is CatalogErrorKind.VALIDATION_ERROR
