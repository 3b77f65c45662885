from datetime import datetime, timedelta, timezone

from support_desk.config import TicketCategory, TicketStatus

from conftest import make_ticket


async def test_create_assigns_id_and_defaults(repository):
    ticket = await repository.create(make_ticket())

    assert ticket.id is not None
    assert ticket.status == TicketStatus.NEW
    assert ticket.updated_at is None

    loaded = await repository.get_by_id(ticket.id)
    assert loaded.subject == "Refund Request for Order #12345"


async def test_get_missing_ticket(repository):
    assert await repository.get_by_id(12345) is None


async def test_update_sets_fields_and_timestamp(repository):
    ticket = await repository.create(make_ticket())

    updated = await repository.update(
        ticket.id, {"category": TicketCategory.REFUND, "status": TicketStatus.PROCESSED}
    )

    assert updated.category == TicketCategory.REFUND
    assert updated.status == TicketStatus.PROCESSED
    assert updated.updated_at is not None


async def test_update_missing_ticket(repository):
    assert await repository.update(777, {"status": TicketStatus.SENT}) is None


async def test_list_orders_newest_first_with_offset(repository):
    base = datetime(2024, 5, 1, tzinfo=timezone.utc)
    for i in range(5):
        await repository.create(make_ticket(subject=f"T{i}", received_at=base + timedelta(hours=i)))

    tickets = await repository.list({}, limit=2, offset=1)

    assert [t.subject for t in tickets] == ["T3", "T2"]


async def test_count_and_group_by_status(repository):
    await repository.create(make_ticket())
    await repository.create(make_ticket(status=TicketStatus.SENT))
    await repository.create(make_ticket(status=TicketStatus.SENT))

    assert await repository.count({}) == 3
    assert await repository.count({"status": TicketStatus.SENT}) == 2
    assert await repository.count_by_status() == {TicketStatus.NEW: 1, TicketStatus.SENT: 2}


async def test_get_many(repository):
    a = await repository.create(make_ticket())
    b = await repository.create(make_ticket())

    found = await repository.get_many([b.id, a.id, 999])

    assert {t.id for t in found} == {a.id, b.id}
    assert await repository.get_many([]) == []
