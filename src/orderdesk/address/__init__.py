"""Address validator abstraction — pluggable address verification."""

import os

_validator_instance = None


def get_address_validator():
    """Return the configured address validator (singleton).

    Uses FakeAddressValidator by default. In production, configure via the
    ADDRESS_VALIDATOR environment variable.
    """
    global _validator_instance
    if _validator_instance is None:
        adapter = os.environ.get("ADDRESS_VALIDATOR", "fake")
        if adapter == "fake":
            from orderdesk.address.fake_adapter import FakeAddressValidator

            _validator_instance = FakeAddressValidator()
        else:
            raise ValueError(f"Unknown address validator: {adapter}")
    return _validator_instance


def reset_address_validator():
    """Reset the validator singleton (useful for testing)."""
    global _validator_instance
    _validator_instance = None
