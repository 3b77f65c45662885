"""
Ticket Infrastructure Repositories
===================================

SQLAlchemy implementation of the ticket repository.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, List, Optional, Sequence

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from support_desk.core import RepositoryException
from support_desk.infrastructure.database import get_session_maker, session_scope
from support_desk.tickets.application.interfaces import ITicketRepository
from support_desk.tickets.domain import Ticket
from support_desk.tickets.infrastructure.models import TicketModel

_FILTERABLE_COLUMNS = ("status", "category", "priority")


def _to_entity(model: TicketModel) -> Ticket:
    return Ticket(
        id=model.id,
        customer_name=model.customer_name,
        email=model.email,
        subject=model.subject,
        body=model.body,
        category=model.category,
        priority=model.priority,
        status=model.status,
        ai_response=model.ai_response,
        escalation_reason=model.escalation_reason,
        received_at=model.received_at,
        updated_at=model.updated_at,
    )


class SQLAlchemyTicketRepository(ITicketRepository):
    """
    SQLAlchemy implementation for tickets.

    Each call runs in its own short transaction. Pass a session maker to bind
    to a specific engine; otherwise the global one from init_database() is used.
    """

    def __init__(self, session_maker: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_maker = session_maker

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with session_scope(self._session_maker or get_session_maker()) as session:
                yield session
        except SQLAlchemyError as e:
            raise RepositoryException(f"Ticket storage failed: {str(e)}") from e

    async def create(self, ticket: Ticket) -> Ticket:
        async with self._session() as session:
            model = TicketModel(
                customer_name=ticket.customer_name,
                email=ticket.email,
                subject=ticket.subject,
                body=ticket.body,
                category=ticket.category,
                priority=ticket.priority,
                status=ticket.status,
                ai_response=ticket.ai_response,
                received_at=ticket.received_at,
            )
            session.add(model)
            await session.flush()
            return _to_entity(model)

    async def get_by_id(self, ticket_id: int) -> Optional[Ticket]:
        async with self._session() as session:
            model = await session.get(TicketModel, ticket_id)
            return _to_entity(model) if model else None

    async def get_many(self, ticket_ids: Sequence[int]) -> List[Ticket]:
        if not ticket_ids:
            return []
        async with self._session() as session:
            stmt = select(TicketModel).where(TicketModel.id.in_(list(ticket_ids)))
            result = await session.execute(stmt)
            return [_to_entity(m) for m in result.scalars().all()]

    async def list(self, filters: Dict[str, Any], limit: int, offset: int) -> List[Ticket]:
        stmt = self._apply_filters(select(TicketModel), filters)
        stmt = stmt.order_by(TicketModel.received_at.desc(), TicketModel.id.desc())
        stmt = stmt.limit(limit).offset(offset)
        async with self._session() as session:
            result = await session.execute(stmt)
            return [_to_entity(m) for m in result.scalars().all()]

    async def count(self, filters: Dict[str, Any]) -> int:
        stmt = self._apply_filters(select(func.count()).select_from(TicketModel), filters)
        async with self._session() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def count_by_status(self) -> Dict[str, int]:
        stmt = select(TicketModel.status, func.count()).group_by(TicketModel.status)
        async with self._session() as session:
            result = await session.execute(stmt)
            return {status: int(n) for status, n in result.all()}

    async def update(self, ticket_id: int, fields: Dict[str, Any]) -> Optional[Ticket]:
        async with self._session() as session:
            model = await session.get(TicketModel, ticket_id)
            if model is None:
                return None
            for name, value in fields.items():
                setattr(model, name, value)
            model.updated_at = datetime.now(timezone.utc)
            await session.flush()
            return _to_entity(model)

    @staticmethod
    def _apply_filters(stmt, filters: Dict[str, Any]):
        for name in _FILTERABLE_COLUMNS:
            value = filters.get(name)
            if value is not None:
                stmt = stmt.where(getattr(TicketModel, name) == value)
        return stmt
