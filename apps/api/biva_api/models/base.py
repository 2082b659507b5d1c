"""Declarative base and shared column helpers."""
from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import Enum
from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    """Base model with naming conventions."""

    __abstract__ = True

    @declared_attr.directive
    def __tablename__(cls) -> str:  # type: ignore[misc]
        return cls.__name__.lower()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def enum_column_type(enum_cls: type[enum.Enum], name: str) -> Enum:
    """Persist enum values (not member names) under a named database type."""

    return Enum(enum_cls, name=name, values_callable=lambda members: [m.value for m in members])
