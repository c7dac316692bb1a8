"""
SLA Tracking Module
===================

Bounded context for incident SLA tracking and compliance.

Responsibilities:
- Validate team SLA policies
- Convert between wall-clock and business-hours working time
- Resolve response/resolution deadlines per incident
- Evaluate live SLA status (breached / at-risk / healthy)
- Aggregate statuses into dashboard summaries and daily trends
- Scan open incidents for newly breached or at-risk clocks
"""

__version__ = "1.0.0"
