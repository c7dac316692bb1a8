"""
On-call SLA Engine
==================

SLA tracking and compliance engine for an on-call incident dashboard.

Layers:
- Domain: policy model, business-time arithmetic, status evaluation
- Application: aggregation, breach scanning, DTOs, service facade
- Infrastructure: team policy providers (in-memory, YAML with hot reload)
"""

__version__ = "1.0.0"
