"""
Domain layer - Business rules and domain-level errors.

Independent of HTTP and database concerns.
"""
