"""
Storage models for the procurement entities that can be bulk imported.

Uniqueness and NOT NULL constraints live here and are the single place
required-field strictness is enforced for imports.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text

from supplyhub.db.session import Base


def _utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class School(TimestampMixin, Base):
    __tablename__ = "schools"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    state = Column(String(120), nullable=False)
    district = Column(String(120), nullable=False)


class Contact(TimestampMixin, Base):
    """A person the office deals with (principal, storekeeper, supplier contact, ...)."""
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(40), nullable=False)
    role = Column(String(80), nullable=True)
    organization = Column(String(255), nullable=True)


class Product(TimestampMixin, Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    category = Column(String(120), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)  # base or average price
    description = Column(Text, nullable=True)


class Vendor(TimestampMixin, Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    contact_person = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(40), nullable=False)
    address = Column(Text, nullable=True)


IMPORTABLE_MODELS = (School, Contact, Product, Vendor)


def create_entity_tables(engine) -> None:
    """Create the importable entity tables if they don't exist."""
    Base.metadata.create_all(bind=engine, tables=[model.__table__ for model in IMPORTABLE_MODELS])
