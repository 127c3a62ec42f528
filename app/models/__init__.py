"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table when create_all() runs
  2. Other modules can import from app.models directly
"""

from app.models.customer import Customer, CustomerRole  # noqa: F401
from app.models.card import CreditCard  # noqa: F401
from app.models.transaction import Transaction, TransactionType  # noqa: F401
