"""
Ticket Domain Layer
===================

Contains:
- Entities: Ticket, SimilarTicket, EnhancedTicketView, TicketPage, WorkflowStats
- Prompt builders for classification and reply drafting
- PriorityScorer: keyword and category heuristic
- TicketWorkflow: per-operation transition table and suggested actions

This layer is framework-agnostic and contains pure business logic.
"""

from support_desk.tickets.domain.entities import (
    Ticket,
    SimilarTicket,
    DraftContext,
    TicketProcessingResult,
    EnhancedTicketView,
    TicketPage,
    WorkflowStats,
    compose_ticket_text,
)
from support_desk.tickets.domain.prompts import ClassificationPromptBuilder, DraftPromptBuilder
from support_desk.tickets.domain.priority import PriorityScorer
from support_desk.tickets.domain.workflow import TicketWorkflow, WorkflowOperation, TransitionRule

__all__ = [
    "Ticket",
    "SimilarTicket",
    "DraftContext",
    "TicketProcessingResult",
    "EnhancedTicketView",
    "TicketPage",
    "WorkflowStats",
    "compose_ticket_text",
    "ClassificationPromptBuilder",
    "DraftPromptBuilder",
    "PriorityScorer",
    "TicketWorkflow",
    "WorkflowOperation",
    "TransitionRule",
]
