"""Vendor notifier abstraction — pluggable notification dispatch."""

import os

_notifier_instance = None


def get_notifier():
    """Return the configured vendor notifier (singleton).

    Uses FakeVendorNotifier by default. In production, configure via the
    NOTIFIER_ADAPTER environment variable.
    """
    global _notifier_instance
    if _notifier_instance is None:
        adapter = os.environ.get("NOTIFIER_ADAPTER", "fake")
        if adapter == "fake":
            from orderdesk.notifier.fake_adapter import FakeVendorNotifier

            _notifier_instance = FakeVendorNotifier()
        else:
            raise ValueError(f"Unknown notifier adapter: {adapter}")
    return _notifier_instance


def reset_notifier():
    """Reset the notifier singleton (useful for testing)."""
    global _notifier_instance
    _notifier_instance = None
