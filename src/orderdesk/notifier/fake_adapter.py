"""Fake vendor notifier — records notices instead of sending them."""

from orderdesk.notifier.port import AllocationNotice, VendorNotifier


class FakeVendorNotifier(VendorNotifier):
    def __init__(self):
        self.sent: list[AllocationNotice] = []
        self.should_succeed = True

    def configure(self, should_succeed: bool = True):
        """Configure the fake notifier behavior for testing."""
        self.should_succeed = should_succeed

    def notify_allocation_requested(self, notice: AllocationNotice) -> bool:
        if not self.should_succeed:
            return False
        self.sent.append(notice)
        return True

    def notices_for(self, vendor_id: str) -> list[AllocationNotice]:
        return [n for n in self.sent if n.vendor_id == vendor_id]
