"""
Shop order service.

Orders, items and members over a relational ORM, with several order
retrieval strategies that trade query count against memory and pagination.
"""

__version__ = "1.0.0"
