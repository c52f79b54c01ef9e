"""Vendor notifier port (abstract interface).

Notification delivery (SMS, e-mail, partner portal inbox) is owned by an
external service; OrderDesk only needs to hand it an allocation request.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class AllocationNotice:
    """What a vendor is told about a new allocation request."""

    vendor_id: str
    response_id: str
    product_code: str
    allocation_date: date
    requested_quantity: int


class VendorNotifier(ABC):
    @abstractmethod
    def notify_allocation_requested(self, notice: AllocationNotice) -> bool:
        """Dispatch the notice. Returns whether the dispatcher accepted it."""
        ...
