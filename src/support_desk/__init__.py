"""Support Desk AI: AI-assisted customer support ticketing."""

__version__ = "1.0.0"
