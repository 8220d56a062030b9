"""Unit tests for StockDeficit and alert priority."""

import pytest

from rms.domain.exceptions import InvalidInputError
from rms.domain.model.stock_deficit import (
    AlertPriority,
    StockDeficit,
    determine_priority,
    total_deficit,
)


def _deficit(requested: int, available: int, name: str = "Dress") -> StockDeficit:
    return StockDeficit.compute(name, requested, available, "shop-1")


class TestStockDeficitMetrics:

    def test_partial_shortage(self):
        d = _deficit(5, 3)
        assert d.deficit == 2
        assert d.has_deficit
        assert not d.is_out_of_stock
        assert d.deficit_percentage == 40.0
        assert d.description == "Deficit: requested 5, available 3"

    def test_out_of_stock(self):
        d = _deficit(4, 0)
        assert d.deficit == 4
        assert d.is_out_of_stock
        assert d.deficit_percentage == 100.0

    def test_sufficient_stock(self):
        d = _deficit(2, 10)
        assert d.deficit == 0
        assert not d.has_deficit
        assert d.deficit_percentage == 0.0
        assert d.description == "Sufficient stock"

    def test_zero_requested(self):
        d = _deficit(0, 0)
        assert d.deficit == 0
        assert d.deficit_percentage == 0.0

    def test_to_dict(self):
        data = _deficit(5, 3).to_dict()
        assert data["item_name"] == "Dress"
        assert data["deficit"] == 2
        assert data["shop_id"] == "shop-1"
        assert data["has_deficit"] is True
        assert data["deficit_percentage"] == 40.0


class TestStockDeficitProperties:

    @pytest.mark.parametrize("requested", range(0, 25))
    @pytest.mark.parametrize("available", range(0, 25))
    def test_metrics_hold_across_grid(self, requested, available):
        d = StockDeficit.compute("Dress", requested, available, "shop-1")
        assert d.deficit == max(0, requested - available)
        assert d.has_deficit == (d.deficit > 0)
        assert d.is_out_of_stock == (available == 0)
        assert 0.0 <= d.deficit_percentage <= 100.0

class TestStockDeficitValidation:

    def test_empty_name_rejected(self):
        with pytest.raises(InvalidInputError, match="Item name"):
            StockDeficit("", 1, 0, "shop-1")

    def test_empty_shop_rejected(self):
        with pytest.raises(InvalidInputError, match="Shop ID"):
            StockDeficit("Dress", 1, 0, "")

    def test_non_integer_quantities_rejected(self):
        with pytest.raises(InvalidInputError, match="must be an integer"):
            StockDeficit("Dress", 2.5, 1, "shop-1")
        with pytest.raises(InvalidInputError, match="must be an integer"):
            StockDeficit("Dress", 2, True, "shop-1")

    def test_negative_quantities_rejected(self):
        with pytest.raises(InvalidInputError, match="Requested"):
            StockDeficit("Dress", -1, 0, "shop-1")
        with pytest.raises(InvalidInputError, match="Available"):
            StockDeficit("Dress", 1, -3, "shop-1")


class TestAlertPriority:

    def test_single_small_deficit_is_normal(self):
        assert determine_priority([_deficit(5, 3)]) == AlertPriority.NORMAL

    def test_three_items_is_high(self):
        deficits = [_deficit(2, 1, f"Item {i}") for i in range(3)]
        assert determine_priority(deficits) == AlertPriority.HIGH

    def test_large_total_deficit_is_high(self):
        assert determine_priority([_deficit(25, 0)]) == AlertPriority.HIGH

    def test_five_items_is_critical(self):
        deficits = [_deficit(2, 1, f"Item {i}") for i in range(5)]
        assert determine_priority(deficits) == AlertPriority.CRITICAL

    def test_huge_total_deficit_is_critical(self):
        deficits = [_deficit(30, 0), _deficit(30, 5, "Shoes")]
        assert total_deficit(deficits) == 55
        assert determine_priority(deficits) == AlertPriority.CRITICAL
