import pytest

from support_desk.config import TicketCategory, TicketPriority
from support_desk.tickets.domain import PriorityScorer


@pytest.mark.parametrize(
    "category, expected",
    [
        (TicketCategory.PAYMENT_FAILURE, TicketPriority.HIGH),
        (TicketCategory.TECHNICAL_ISSUE, TicketPriority.MEDIUM),
        (TicketCategory.REFUND, TicketPriority.MEDIUM),
        (TicketCategory.ACCOUNT, TicketPriority.MEDIUM),
        (TicketCategory.INVOICE, TicketPriority.LOW),
        (TicketCategory.GENERAL, TicketPriority.LOW),
    ],
)
def test_category_table(category, expected):
    assert PriorityScorer.score("Question", "Please help with my order", category) == expected


def test_urgency_keyword_overrides_category():
    assert PriorityScorer.score("URGENT: invoice copy", "Need it today", TicketCategory.INVOICE) == TicketPriority.HIGH


def test_keyword_matches_inside_body_case_insensitively():
    body = "The export is Not Working since yesterday"
    assert PriorityScorer.score("Export", body, TicketCategory.GENERAL) == TicketPriority.HIGH


def test_unknown_or_missing_category_is_medium():
    assert PriorityScorer.score("Hello", "Just a question", "Shipping") == TicketPriority.MEDIUM
    assert PriorityScorer.score("Hello", "Just a question", None) == TicketPriority.MEDIUM
    assert PriorityScorer.score(None, None, 42) == TicketPriority.MEDIUM
