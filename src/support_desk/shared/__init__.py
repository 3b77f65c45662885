"""
Shared Kernel Module
====================

Generic infrastructure and API plumbing used by the ticket context.

DO NOT add ticket business logic to the shared kernel.
"""
