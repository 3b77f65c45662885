"""
Shared Infrastructure
=====================

Cross-cutting technical concerns:
- Structured JSON logging
- Grafana OTLP metrics export
"""
