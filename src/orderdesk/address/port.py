"""Address validator port (abstract interface).

Address verification and pattern learning live in an external service; the
ingestion pipeline only asks it for a verdict on each recipient address.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class AddressVerdict(Enum):
    VALID = "valid"
    WARNING = "warning"
    INVALID = "invalid"


@dataclass(frozen=True)
class AddressCheck:
    verdict: AddressVerdict
    message: str | None = None


class AddressValidator(ABC):
    @abstractmethod
    def check(self, address: str) -> AddressCheck:
        """Return a verdict for ``address``."""
        ...
