"""OrderDesk bounded context — order fulfillment and inventory reservation.

Keeps order status and physical stock consistent across bulk order ingestion,
admin/partner status changes, vendor allocation negotiation and fulfillment
routing. Everything that must commit together (an order and the stock
movements it causes) lives in this single domain so it shares one Unit of Work.
"""

import structlog
from protean.domain import Domain

orderdesk = Domain(name="orderdesk")

logger = structlog.get_logger(__name__)
