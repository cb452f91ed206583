"""Request guards shared by the quote and upload routes"""
from fastapi import HTTPException
from typing import Optional
from movefinder.core.enums import QuoteStatus

ALLOWED_TRANSITIONS = {
    QuoteStatus.PENDING: {QuoteStatus.QUOTED, QuoteStatus.CANCELLED},
    QuoteStatus.QUOTED: {QuoteStatus.BOOKED, QuoteStatus.CANCELLED},
    QuoteStatus.BOOKED: {QuoteStatus.COMPLETED, QuoteStatus.CANCELLED},
    QuoteStatus.COMPLETED: set(),
    QuoteStatus.CANCELLED: set(),
}

SUBMITTABLE_STATUSES = {QuoteStatus.PENDING, QuoteStatus.QUOTED}


def check_not_found(item, resource_name: str = "Resource", resource_id: Optional[int] = None) -> None:

    if not item:
        if resource_id:
            raise HTTPException(
                status_code=404,
                detail=f"{resource_name} with id {resource_id} not found"
            )
        raise HTTPException(status_code=404, detail=f"{resource_name} not found")


def check_status_transition(current: QuoteStatus, target: QuoteStatus) -> None:

    if current == target:
        return
    if target not in ALLOWED_TRANSITIONS[QuoteStatus(current)]:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid status transition: {current} -> {target}"
        )


def check_submittable(status: QuoteStatus) -> None:

    if QuoteStatus(status) not in SUBMITTABLE_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Quote in status '{status}' cannot be submitted"
        )
