"""
Shared Kernel Module
====================

Generic infrastructure shared by the SLA engine and its callers.

DO NOT add SLA business logic to the shared kernel.
"""

__version__ = "1.0.0"
