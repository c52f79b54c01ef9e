"""Query helpers shared by the custom repositories."""

_BATCH_SIZE = 500


def fetch_all(queryset) -> list:
    """Drain a queryset page by page instead of relying on its default limit."""
    results = []
    offset = 0
    while True:
        batch = queryset.offset(offset).limit(_BATCH_SIZE).all().items
        results.extend(batch)
        if len(batch) < _BATCH_SIZE:
            return results
        offset += _BATCH_SIZE
