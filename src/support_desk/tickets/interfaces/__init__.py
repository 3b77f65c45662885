"""
Ticket Interfaces Layer
=======================

Contains:
- Controllers: FastAPI route handlers
"""

from support_desk.tickets.interfaces.controllers import router as tickets_router, get_ticket_service

__all__ = ["tickets_router", "get_ticket_service"]
