"""VendorProduct aggregate — which partner vendors can fulfill which products."""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, String

from orderdesk.catalog.events import VendorProductMapped, VendorProductUnmapped
from orderdesk.domain import orderdesk


@orderdesk.aggregate
class VendorProduct:
    vendor_id: String(required=True, max_length=100)
    product_code: String(required=True, max_length=50)
    active: Boolean(default=True)
    mapped_at: DateTime()
    unmapped_at: DateTime()

    @classmethod
    def map(cls, vendor_id: str, product_code: str):
        now = datetime.now(UTC)
        mapping = cls(vendor_id=vendor_id, product_code=product_code, active=True, mapped_at=now)
        mapping.raise_(VendorProductMapped(vendor_id=vendor_id, product_code=product_code, mapped_at=now))
        return mapping

    def reactivate(self) -> None:
        if self.active:
            return
        self.active = True
        self.mapped_at = datetime.now(UTC)
        self.unmapped_at = None
        self.raise_(
            VendorProductMapped(vendor_id=self.vendor_id, product_code=self.product_code, mapped_at=self.mapped_at)
        )

    def deactivate(self) -> None:
        if not self.active:
            return
        self.active = False
        self.unmapped_at = datetime.now(UTC)
        self.raise_(
            VendorProductUnmapped(
                vendor_id=self.vendor_id,
                product_code=self.product_code,
                unmapped_at=self.unmapped_at,
            )
        )


@orderdesk.repository(part_of=VendorProduct)
class VendorProductRepository:
    def find_mapping(self, vendor_id: str, product_code: str) -> VendorProduct | None:
        mappings = self._dao.query.filter(vendor_id=vendor_id, product_code=product_code).all().items
        return mappings[0] if mappings else None

    def active_vendor_ids(self, product_code: str) -> list[str]:
        """Vendor ids actively mapped to ``product_code``, sorted."""
        mappings = self._dao.query.filter(product_code=product_code, active=True).all().items
        return sorted({m.vendor_id for m in mappings})
