"""
Tickets Module
==============

Bounded context for support ticket triage.

Responsibilities:
- Classify, prioritize and embed incoming tickets in the background
- Retrieve similar past tickets by embedding
- Draft replies with similar tickets as context
- Track tickets through the approval workflow
"""
