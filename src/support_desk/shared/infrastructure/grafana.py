"""
Grafana OTLP Metrics Exporter
==============================

Pushes LLM usage and ticket processing metrics to Grafana Cloud via OTLP/HTTP.

Metrics exported:
- llm_latency_ms / llm_tokens_total: per provider call (embedding, classification, draft)
- ticket_processing_latency_ms: per detached processing run, tagged with its outcome
"""

import base64
import time
from typing import Optional, Dict, List, Any

import httpx

from support_desk.config import settings
from support_desk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class GrafanaOTLPExporter:
    """
    Export metrics to Grafana Cloud via the OTLP HTTP endpoint.

    Disabled (every export is a no-op returning False) unless host, API key
    and instance ID are all configured.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        api_key: Optional[str] = None,
        instance_id: Optional[str] = None,
        timeout_seconds: float = 10.0
    ):
        self._host = host or settings.grafana_host
        self._api_key = api_key or settings.grafana_api_key
        self._instance_id = instance_id or settings.grafana_instance_id
        self._timeout = timeout_seconds
        self._enabled = bool(self._host and self._api_key and self._instance_id)

        if self._enabled:
            auth_pair = f"{self._instance_id}:{self._api_key}"
            self._auth_encoded = base64.b64encode(auth_pair.encode()).decode()
            if "/otlp/v1/metrics" not in self._host:
                self._url = f"{self._host.rstrip('/')}/otlp/v1/metrics"
            else:
                self._url = self._host
            logger.info(
                "Grafana OTLP exporter initialized",
                extra={"host": self._host, "instance_id": self._instance_id}
            )
        else:
            logger.info("Grafana OTLP exporter not configured, metrics will not be exported")

    def is_enabled(self) -> bool:
        """Check if exporter is properly configured."""
        return self._enabled

    async def export_llm_metrics(
        self,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        latency_ms: int,
        operation: str = "chat_completion",
    ) -> bool:
        """
        Export one provider call.

        Args:
            model: Model name (e.g., "gpt-4", "text-embedding-3-small")
            prompt_tokens: Number of prompt tokens used
            completion_tokens: Number of completion tokens generated
            latency_ms: Call latency in milliseconds
            operation: embedding, classification or draft
        """
        attributes = {"model": model, "operation": operation}
        return await self._send([
            ("llm_latency_ms", "ms", latency_ms),
            ("llm_tokens_total", "1", prompt_tokens + completion_tokens),
            ("llm_prompt_tokens", "1", prompt_tokens),
            ("llm_completion_tokens", "1", completion_tokens),
        ], attributes)

    async def export_ticket_processing(self, outcome: str, latency_ms: int) -> bool:
        """Export one detached processing run (outcome: processed or failed)."""
        return await self._send(
            [("ticket_processing_latency_ms", "ms", latency_ms)],
            {"outcome": outcome},
        )

    def _build_payload(
        self,
        metrics: List[tuple],
        attributes: Dict[str, Any]
    ) -> Dict[str, Any]:
        timestamp_ns = int(time.time() * 1_000_000_000)
        data_attributes = [
            {"key": key, "value": {"stringValue": str(value)}}
            for key, value in {"service": settings.app_name, **attributes}.items()
        ]
        return {
            "resourceMetrics": [
                {
                    "resource": {
                        "attributes": [
                            {"key": "service.name", "value": {"stringValue": settings.app_name}},
                            {"key": "service.version", "value": {"stringValue": settings.app_version}},
                            {"key": "deployment.environment", "value": {"stringValue": settings.environment}},
                        ]
                    },
                    "scopeMetrics": [
                        {
                            "metrics": [
                                {
                                    "name": name,
                                    "unit": unit,
                                    "gauge": {
                                        "dataPoints": [
                                            {
                                                "asInt": int(value),
                                                "timeUnixNano": timestamp_ns,
                                                "attributes": data_attributes,
                                            }
                                        ]
                                    },
                                }
                                for name, unit, value in metrics
                            ]
                        }
                    ],
                }
            ]
        }

    async def _send(self, metrics: List[tuple], attributes: Dict[str, Any]) -> bool:
        if not self._enabled:
            return False

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Basic {self._auth_encoded}",
            "X-Grafana-Org-Id": str(self._instance_id),
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    self._url,
                    headers=headers,
                    json=self._build_payload(metrics, attributes),
                )
        except httpx.HTTPError as e:
            logger.error("Error exporting metrics to Grafana", extra={"error": str(e)})
            return False

        if response.status_code in (200, 202):
            logger.debug("Metrics exported to Grafana", extra=attributes)
            return True
        logger.warning(
            "Failed to export metrics to Grafana",
            extra={"status_code": response.status_code, "response": response.text[:500]}
        )
        return False


# Global exporter instance
_grafana_exporter: Optional[GrafanaOTLPExporter] = None


def get_grafana_exporter() -> GrafanaOTLPExporter:
    """Get or create global Grafana exporter instance."""
    global _grafana_exporter
    if _grafana_exporter is None:
        _grafana_exporter = GrafanaOTLPExporter()
    return _grafana_exporter
