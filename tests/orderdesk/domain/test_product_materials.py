"""Tests for Product material mapping and supply status."""

import pytest
from orderdesk.catalog.product import Product, SupplyStatus
from protean.exceptions import ValidationError


def _make_product(materials=None):
    return Product.register("P1", "Apple jam", materials=materials)


class TestMaterialRequirements:
    def test_requirements_scale_with_quantity(self):
        product = _make_product(
            [
                {"material_code": "APPLE-RAW", "units_per_order": 2},
                {"material_code": "JAR-250", "units_per_order": 1},
            ]
        )
        assert product.material_requirements(3) == {"APPLE-RAW": 6, "JAR-250": 3}

    def test_product_without_materials_needs_nothing(self):
        assert _make_product().material_requirements(5) == {}

    def test_duplicate_material_rejected(self):
        with pytest.raises(ValidationError):
            _make_product(
                [
                    {"material_code": "APPLE-RAW", "units_per_order": 2},
                    {"material_code": "APPLE-RAW", "units_per_order": 1},
                ]
            )

    def test_redefining_replaces_mapping(self):
        product = _make_product([{"material_code": "APPLE-RAW", "units_per_order": 2}])
        product.define_materials([{"material_code": "PEAR-RAW", "units_per_order": 4}])
        assert product.material_requirements(1) == {"PEAR-RAW": 4}


class TestSupplyStatus:
    def test_new_product_is_orderable(self):
        assert _make_product().is_orderable

    def test_suspended_product_is_not_orderable(self):
        product = _make_product()
        product.change_supply_status(SupplyStatus.SUSPENDED)
        assert not product.is_orderable
        assert product.supply_status == SupplyStatus.SUSPENDED.value
