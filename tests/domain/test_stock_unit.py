"""Unit tests for the StockUnit entity."""

import pytest

from rms.domain.exceptions import InsufficientStockError, ValidationError
from rms.domain.model.inventory import StockUnit


def _unit(shop: int = 10, global_: int = 20) -> StockUnit:
    return StockUnit("dress", "Dress", "shop-1", shop, global_)


class TestStockUnit:

    def test_available_is_bounded_by_both_quantities(self):
        assert _unit(10, 20).available_quantity == 10
        assert _unit(10, 4).available_quantity == 4

    def test_deduct_lowers_both_quantities(self):
        unit = _unit(10, 20)
        unit.deduct(3)
        assert unit.shop_quantity == 7
        assert unit.global_quantity == 17

    def test_deduct_more_than_available_rejected(self):
        unit = _unit(2, 20)
        with pytest.raises(InsufficientStockError) as excinfo:
            unit.deduct(3)
        assert excinfo.value.shortages == [("Dress", 3, 2)]
        assert unit.shop_quantity == 2  # untouched

    def test_deduct_non_positive_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            _unit().deduct(0)
