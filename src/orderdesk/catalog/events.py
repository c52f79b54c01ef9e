"""Catalog events — changes to product orderability and mappings."""

from protean.fields import DateTime, Integer, String

from orderdesk.domain import orderdesk


@orderdesk.event(part_of="Product")
class ProductRegistered:
    __version__ = 1

    product_code = String(required=True)
    name = String(required=True)
    registered_at = DateTime(required=True)


@orderdesk.event(part_of="Product")
class MaterialMappingDefined:
    __version__ = 1

    product_code = String(required=True)
    material_count = Integer(required=True)
    defined_at = DateTime(required=True)


@orderdesk.event(part_of="Product")
class SupplyStatusChanged:
    __version__ = 1

    product_code = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@orderdesk.event(part_of="VendorProduct")
class VendorProductMapped:
    __version__ = 1

    vendor_id = String(required=True)
    product_code = String(required=True)
    mapped_at = DateTime(required=True)


@orderdesk.event(part_of="VendorProduct")
class VendorProductUnmapped:
    __version__ = 1

    vendor_id = String(required=True)
    product_code = String(required=True)
    unmapped_at = DateTime(required=True)
