"""SQLAlchemy-backed repository implementations.

Loaders turn rows into the frozen domain snapshots consumed by the pricing
core; the order repository persists snapshots and redeems coupons in one
transaction.
"""
