"""
Database Models
"""

from customer_dedup.models.customer import Customer

__all__ = [
    "Customer",
]
