#!/usr/bin/env python3
"""
Seed Sample Tickets
===================

Creates a set of sample support tickets and runs the processing pipeline
on each one, so similar-ticket retrieval has data to work with.

Usage (after ``pip install -e .``):

    python scripts/seed_tickets.py

Uses the configured LLM provider; set ``MOCK_LLM=true`` to seed offline.
"""

import asyncio
import sys

from support_desk.config import settings
from support_desk.core import ApplicationException
from support_desk.infrastructure.database import close_database, create_tables, init_database
from support_desk.infrastructure.llm import create_llm_client
from support_desk.infrastructure.scheduler import BackgroundTaskRunner
from support_desk.shared.infrastructure.logging import get_logger, setup_logging
from support_desk.tickets.application import create_ticket_service
from support_desk.tickets.infrastructure import SQLAlchemyTicketRepository, SimilarityIndexAdapter

logger = get_logger("seed_tickets")

SAMPLE_TICKETS = [
    {
        "customer_name": "John Smith",
        "email": "john.smith@example.com",
        "subject": "Refund Request for Order #12345",
        "body": "Hi, I would like to request a refund for my recent order #12345. The product arrived "
                "damaged and I would like to return it. Please let me know the process for getting "
                "my money back.",
    },
    {
        "customer_name": "Sarah Johnson",
        "email": "sarah.j@example.com",
        "subject": "Payment Failed - Need Help",
        "body": "I tried to make a payment but it keeps failing. My card is working fine elsewhere. "
                "Can you help me troubleshoot this payment issue?",
    },
    {
        "customer_name": "Mike Davis",
        "email": "mike.davis@company.com",
        "subject": "Invoice Request for Q1 2024",
        "body": "Could you please send me an invoice for our Q1 2024 services? I need it for our "
                "accounting records. Thanks!",
    },
    {
        "customer_name": "Lisa Chen",
        "email": "lisa.chen@startup.io",
        "subject": "Can't Login to My Account",
        "body": "I'm having trouble logging into my account. I keep getting an error message. Can you "
                "help me reset my password or troubleshoot this issue?",
    },
    {
        "customer_name": "Robert Wilson",
        "email": "rob.wilson@email.com",
        "subject": "Update My Billing Address",
        "body": "I recently moved and need to update my billing address. How can I do this in my "
                "account settings?",
    },
    {
        "customer_name": "David Lee",
        "email": "david.lee@business.net",
        "subject": "Refund for Duplicate Charge",
        "body": "I noticed I was charged twice for the same service. Can you please refund the "
                "duplicate charge? Transaction ID: TXN789456",
    },
    {
        "customer_name": "Thomas Anderson",
        "email": "thomas.a@tech.com",
        "subject": "API Integration Issue",
        "body": "I'm having trouble with the API integration. Getting 500 errors when trying to "
                "authenticate. Can you help me debug this?",
    },
    {
        "customer_name": "Amanda White",
        "email": "amanda.white@agency.com",
        "subject": "Bulk Invoice Download",
        "body": "Is there a way to download all invoices for the past year in bulk? I need them for "
                "our annual audit.",
    },
    {
        "customer_name": "Kevin Martinez",
        "email": "kevin.m@consulting.com",
        "subject": "Subscription Cancellation",
        "body": "I need to cancel my subscription. Can you help me with the cancellation process and "
                "confirm when it will take effect?",
    },
    {
        "customer_name": "Stephanie Hall",
        "email": "steph.hall@creative.com",
        "subject": "Mobile App Not Working",
        "body": "The mobile app keeps crashing when I try to upload files. I've tried reinstalling but "
                "the issue persists. Help!",
    },
    {
        "customer_name": "Andrew Young",
        "email": "andrew.young@consulting.com",
        "subject": "General Feedback and Suggestions",
        "body": "I've been using your platform for 6 months now and love it! Just wanted to share some "
                "feedback and suggestions for future improvements.",
    },
]


async def seed() -> int:
    """Create and process every sample ticket. Returns the number of failures."""
    setup_logging(settings.log_level, settings.environment, "seed-tickets")
    init_database()
    await create_tables()

    similarity_index = SimilarityIndexAdapter()
    await similarity_index.initialize()

    # The runner is never started: scheduled jobs are dropped and
    # processing runs inline below.
    service = create_ticket_service(
        llm_client=create_llm_client(),
        repository=SQLAlchemyTicketRepository(),
        similarity_index=similarity_index,
        task_runner=BackgroundTaskRunner(),
    )

    failures = 0
    for sample in SAMPLE_TICKETS:
        try:
            ticket = await service.create_ticket(**sample)
            result = await service.process_ticket(ticket.id)
            logger.info(
                f"Seeded ticket for {sample['customer_name']}",
                extra={"ticket_id": ticket.id, "category": result.category, "priority": result.priority}
            )
        except ApplicationException as e:
            failures += 1
            logger.error(
                f"Failed to seed ticket for {sample['customer_name']}",
                extra={"subject": sample["subject"], "error": e.message}
            )

    await close_database()
    logger.info("Seeding completed", extra={"created": len(SAMPLE_TICKETS) - failures, "failed": failures})
    return failures


if __name__ == "__main__":
    sys.exit(1 if asyncio.run(seed()) else 0)
