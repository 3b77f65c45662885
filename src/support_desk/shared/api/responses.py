"""
Response Envelope
=================

Every API response body has the same shape:

    {"success": bool, "data": ..., "message": str, "timestamp": iso8601}

Errors additionally carry ``error`` (exception type) and ``details``.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


def success_response(data: Any = None, message: str = "Success") -> Dict[str, Any]:
    return {
        "success": True,
        "data": data,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def error_response(
    message: str,
    error: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    correlation_id: Optional[str] = None
) -> Dict[str, Any]:
    body = {
        "success": False,
        "data": None,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if error:
        body["error"] = error
    if details:
        body["details"] = details
    if correlation_id:
        body["correlation_id"] = correlation_id
    return body
