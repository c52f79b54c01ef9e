"""Fake address validator — deterministic verdicts for testing and development.

Every address is valid unless it was registered as a warning or as invalid,
or is too short to be a street address at all.
"""

from orderdesk.address.port import AddressCheck, AddressValidator, AddressVerdict

MIN_ADDRESS_LENGTH = 5


class FakeAddressValidator(AddressValidator):
    def __init__(self):
        self._verdicts: dict[str, AddressCheck] = {}

    def configure(self, address: str, verdict: AddressVerdict, message: str | None = None):
        """Pin the verdict returned for one address."""
        self._verdicts[address.strip()] = AddressCheck(verdict, message)

    def check(self, address: str) -> AddressCheck:
        address = (address or "").strip()
        if address in self._verdicts:
            return self._verdicts[address]
        if len(address) < MIN_ADDRESS_LENGTH:
            return AddressCheck(AddressVerdict.INVALID, "Address is too short")
        return AddressCheck(AddressVerdict.VALID)
