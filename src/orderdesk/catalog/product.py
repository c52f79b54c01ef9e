"""Product aggregate — the local view of the product catalog.

The catalog itself is maintained elsewhere; OrderDesk keeps only what the
fulfillment core needs: whether a product code is orderable and which
materials one order of it consumes.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Integer, String

from orderdesk.catalog.events import MaterialMappingDefined, ProductRegistered, SupplyStatusChanged
from orderdesk.domain import orderdesk


class SupplyStatus(Enum):
    ACTIVE = "Active"
    SUSPENDED = "Suspended"


@orderdesk.entity(part_of="Product")
class MaterialUsage:
    """How many units of one material a single order of the product consumes."""

    material_code: String(required=True, max_length=50)
    units_per_order: Integer(required=True, min_value=1)


@orderdesk.aggregate
class Product:
    product_code: String(identifier=True, max_length=50)
    name: String(required=True, max_length=255)
    supply_status: String(choices=SupplyStatus, default=SupplyStatus.ACTIVE.value)
    materials: HasMany(MaterialUsage)
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def register(cls, product_code: str, name: str, materials: list[dict] | None = None):
        now = datetime.now(UTC)
        product = cls(
            product_code=product_code,
            name=name,
            supply_status=SupplyStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )
        product.raise_(ProductRegistered(product_code=product_code, name=name, registered_at=now))
        if materials:
            product.define_materials(materials)
        return product

    @property
    def is_orderable(self) -> bool:
        return self.supply_status == SupplyStatus.ACTIVE.value

    def material_requirements(self, quantity: int) -> dict[str, int]:
        """Units of each material consumed by an order of ``quantity`` products."""
        requirements: dict[str, int] = {}
        for usage in self.materials or []:
            requirements[usage.material_code] = (
                requirements.get(usage.material_code, 0) + usage.units_per_order * quantity
            )
        return requirements

    def define_materials(self, materials: list[dict]) -> None:
        """Replace the material mapping wholesale."""
        codes = [m["material_code"] for m in materials]
        if len(codes) != len(set(codes)):
            raise ValidationError({"materials": ["Each material may appear only once"]})

        for usage in list(self.materials or []):
            self.remove_materials(usage)
        for material in materials:
            self.add_materials(
                MaterialUsage(
                    material_code=material["material_code"],
                    units_per_order=material["units_per_order"],
                )
            )

        self.updated_at = datetime.now(UTC)
        self.raise_(
            MaterialMappingDefined(
                product_code=self.product_code,
                material_count=len(materials),
                defined_at=self.updated_at,
            )
        )

    def change_supply_status(self, status: SupplyStatus) -> None:
        if self.supply_status == status.value:
            return
        previous = self.supply_status
        self.supply_status = status.value
        self.updated_at = datetime.now(UTC)
        self.raise_(
            SupplyStatusChanged(
                product_code=self.product_code,
                previous_status=previous,
                new_status=status.value,
                changed_at=self.updated_at,
            )
        )
