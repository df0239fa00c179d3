"""
SQLAlchemy declarative base.

`Base.metadata` holds every HR portal table; Alembic autogenerates against it.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
