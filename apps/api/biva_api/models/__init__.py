"""Expose ORM models."""
from .contract import Contract
from .notification import Notification
from .property import Property
from .user import User
from .visit import Visit

__all__ = [
    "Contract",
    "Notification",
    "Property",
    "User",
    "Visit",
]
