"""
Monitoring Module
Exports for structured logging
"""

from customer_dedup.services.monitoring.logging import setup_logging, ServiceJsonFormatter

__all__ = [
    "setup_logging",
    "ServiceJsonFormatter",
]
