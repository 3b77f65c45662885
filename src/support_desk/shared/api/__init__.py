"""
Shared API Layer
================

Middleware, exception handlers and the response envelope.
"""
