"""Catalog management — commands and handlers."""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import String, Text
from protean.utils.globals import current_domain

from orderdesk.catalog.product import Product, SupplyStatus
from orderdesk.catalog.vendor import VendorProduct
from orderdesk.domain import orderdesk
from orderdesk.errors import NotFoundError

logger = structlog.get_logger(__name__)


@orderdesk.command(part_of="Product")
class RegisterProduct:
    product_code: String(required=True, max_length=50)
    name: String(required=True, max_length=255)
    materials: Text()  # JSON list of {material_code, units_per_order}


@orderdesk.command(part_of="Product")
class DefineMaterialMapping:
    product_code: String(required=True, max_length=50)
    materials: Text(required=True)  # JSON list of {material_code, units_per_order}


@orderdesk.command(part_of="Product")
class ChangeSupplyStatus:
    product_code: String(required=True, max_length=50)
    supply_status: String(required=True, choices=SupplyStatus)


@orderdesk.command(part_of="VendorProduct")
class MapVendorProduct:
    vendor_id: String(required=True, max_length=100)
    product_code: String(required=True, max_length=50)


@orderdesk.command(part_of="VendorProduct")
class UnmapVendorProduct:
    vendor_id: String(required=True, max_length=100)
    product_code: String(required=True, max_length=50)


def get_product(product_code: str) -> Product:
    try:
        return current_domain.repository_for(Product).get(product_code)
    except ObjectNotFoundError as exc:
        raise NotFoundError({"product_code": [f"Product {product_code} not found"]}) from exc


def find_product(product_code: str) -> Product | None:
    try:
        return current_domain.repository_for(Product).get(product_code)
    except ObjectNotFoundError:
        return None


@orderdesk.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        if find_product(command.product_code) is not None:
            raise ValidationError({"product_code": [f"Product {command.product_code} already registered"]})

        product = Product.register(
            product_code=command.product_code,
            name=command.name,
            materials=json.loads(command.materials) if command.materials else None,
        )
        current_domain.repository_for(Product).add(product)
        logger.info("Product registered", product_code=command.product_code)
        return command.product_code

    @handle(DefineMaterialMapping)
    def define_material_mapping(self, command):
        product = get_product(command.product_code)
        product.define_materials(json.loads(command.materials))
        current_domain.repository_for(Product).add(product)

    @handle(ChangeSupplyStatus)
    def change_supply_status(self, command):
        product = get_product(command.product_code)
        product.change_supply_status(SupplyStatus(command.supply_status))
        current_domain.repository_for(Product).add(product)
        logger.info("Product supply status changed", product_code=command.product_code, status=command.supply_status)


@orderdesk.command_handler(part_of=VendorProduct)
class ManageVendorProductHandler:
    @handle(MapVendorProduct)
    def map_vendor_product(self, command):
        get_product(command.product_code)
        repo = current_domain.repository_for(VendorProduct)
        mapping = repo.find_mapping(command.vendor_id, command.product_code)
        if mapping is None:
            mapping = VendorProduct.map(command.vendor_id, command.product_code)
        else:
            mapping.reactivate()
        repo.add(mapping)
        return str(mapping.id)

    @handle(UnmapVendorProduct)
    def unmap_vendor_product(self, command):
        repo = current_domain.repository_for(VendorProduct)
        mapping = repo.find_mapping(command.vendor_id, command.product_code)
        if mapping is None:
            raise NotFoundError(
                {"vendor_product": [f"Vendor {command.vendor_id} is not mapped to {command.product_code}"]}
            )
        mapping.deactivate()
        repo.add(mapping)
