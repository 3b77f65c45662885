"""
Priority Scoring
================

Deterministic keyword and category heuristic. No I/O.
"""

from typing import Any, Dict, Tuple

from support_desk.config import TicketCategory, TicketPriority

URGENCY_KEYWORDS: Tuple[str, ...] = (
    "urgent",
    "emergency",
    "not working",
    "critical",
    "immediate",
    "asap",
)

CATEGORY_PRIORITY: Dict[str, str] = {
    TicketCategory.PAYMENT_FAILURE: TicketPriority.HIGH,
    TicketCategory.TECHNICAL_ISSUE: TicketPriority.MEDIUM,
    TicketCategory.REFUND: TicketPriority.MEDIUM,
    TicketCategory.ACCOUNT: TicketPriority.MEDIUM,
    TicketCategory.INVOICE: TicketPriority.LOW,
    TicketCategory.GENERAL: TicketPriority.LOW,
}


class PriorityScorer:
    """
    Scores a ticket's priority.

    An urgency keyword anywhere in subject or body yields "high" regardless
    of category. Otherwise the category table decides, and unknown or
    missing categories are "medium". Never raises.
    """

    @staticmethod
    def score(subject: Any, body: Any, category: Any) -> str:
        text = f"{subject or ''} {body or ''}".lower()
        if any(keyword in text for keyword in URGENCY_KEYWORDS):
            return TicketPriority.HIGH

        if isinstance(category, str):
            return CATEGORY_PRIORITY.get(category, TicketPriority.MEDIUM)
        return TicketPriority.MEDIUM
