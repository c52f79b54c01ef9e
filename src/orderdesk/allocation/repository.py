"""Repositories for the allocation aggregates."""

from datetime import date

from orderdesk.allocation.allocation import AllocationRequest, AllocationResponse
from orderdesk.domain import orderdesk
from orderdesk.shared.queries import fetch_all


@orderdesk.repository(part_of=AllocationRequest)
class AllocationRequestRepository:
    def find_for(self, allocation_date: date, product_code: str, vendor_id: str) -> AllocationRequest | None:
        requests = self._dao.query.filter(
            allocation_date=allocation_date,
            product_code=product_code,
            vendor_id=vendor_id,
        ).all().items
        return requests[0] if requests else None

    def find_matching(self, **criteria) -> list[AllocationRequest]:
        criteria = {k: v for k, v in criteria.items() if v is not None}
        queryset = self._dao.query.filter(**criteria) if criteria else self._dao.query
        return fetch_all(queryset)


@orderdesk.repository(part_of=AllocationResponse)
class AllocationResponseRepository:
    def for_request(self, request_id: str) -> AllocationResponse | None:
        responses = self._dao.query.filter(request_id=request_id).all().items
        return responses[0] if responses else None
