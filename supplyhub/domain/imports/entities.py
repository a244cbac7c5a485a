"""
Declarative field tables for every importable entity kind.

Each ``FieldSpec`` names the model column to fill, the CSV header it comes
from, whether storage requires it, how to coerce the raw text and the value
used when the cell is blank. The tables are checked against the ORM models
once at startup by ``validate_mapping_tables``.
"""
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Type

from sqlalchemy import inspect as sa_inspect

from supplyhub.db.models import Contact, Product, School, Vendor
from .errors import ImportConfigurationError

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-\.\(\)]{7,20}$")


class CoercionError(ValueError):
    """Raised by a coercion function when a raw value has the wrong shape."""


def coerce_text(value: str) -> Optional[str]:
    text = value.strip()
    return text or None


def coerce_email(value: str) -> Optional[str]:
    text = value.strip().lower()
    if not text:
        return None
    if not EMAIL_PATTERN.match(text):
        raise CoercionError(f"'{value.strip()}' is not a valid email address")
    return text


def coerce_phone(value: str) -> Optional[str]:
    text = value.strip()
    if not text:
        return None
    digits = re.sub(r"\D", "", text)
    if not PHONE_PATTERN.match(text) or not 7 <= len(digits) <= 15:
        raise CoercionError(f"'{text}' is not a valid phone number")
    return text


def coerce_price(value: str) -> Optional[Decimal]:
    """Parse a price such as ``1250``, ``1,250.50`` or ``$12.99``."""
    text = value.strip()
    if not text:
        return None
    normalized = text.replace(",", "")
    if normalized.startswith("$"):
        normalized = normalized[1:]
    try:
        price = Decimal(normalized)
    except InvalidOperation:
        raise CoercionError(f"'{text}' is not a number")
    if not price.is_finite():
        raise CoercionError(f"'{text}' is not a finite number")
    if price < 0:
        raise CoercionError(f"'{text}' is negative")
    return price


@dataclass(frozen=True)
class FieldSpec:
    target: str
    source: str
    required: bool = False
    coerce: Callable[[str], Any] = coerce_text
    default: Any = None


class EntityKind(str, Enum):
    SCHOOLS = "schools"
    CONTACTS = "contacts"
    PRODUCTS = "products"
    VENDORS = "vendors"


@dataclass(frozen=True)
class EntityMapping:
    kind: EntityKind
    model: Type
    fields: Tuple[FieldSpec, ...]

    @property
    def label(self) -> str:
        return self.kind.value

    @property
    def headers(self) -> Tuple[str, ...]:
        return tuple(spec.source for spec in self.fields)


ENTITY_MAPPINGS: Dict[EntityKind, EntityMapping] = {
    EntityKind.SCHOOLS: EntityMapping(
        kind=EntityKind.SCHOOLS,
        model=School,
        fields=(
            FieldSpec("name", "Name", required=True),
            FieldSpec("state", "State", required=True),
            FieldSpec("district", "District", required=True),
        ),
    ),
    EntityKind.CONTACTS: EntityMapping(
        kind=EntityKind.CONTACTS,
        model=Contact,
        fields=(
            FieldSpec("name", "Name", required=True),
            FieldSpec("email", "Email", required=True, coerce=coerce_email),
            FieldSpec("phone", "Phone", required=True, coerce=coerce_phone),
            FieldSpec("role", "Role", default="general"),
            FieldSpec("organization", "Organization"),
        ),
    ),
    EntityKind.PRODUCTS: EntityMapping(
        kind=EntityKind.PRODUCTS,
        model=Product,
        fields=(
            FieldSpec("name", "Name", required=True),
            FieldSpec("category", "Category", required=True),
            FieldSpec("price", "Price", required=True, coerce=coerce_price),
            FieldSpec("description", "Description"),
        ),
    ),
    EntityKind.VENDORS: EntityMapping(
        kind=EntityKind.VENDORS,
        model=Vendor,
        fields=(
            FieldSpec("name", "Name", required=True),
            FieldSpec("contact_person", "ContactPerson", required=True),
            FieldSpec("email", "Email", required=True, coerce=coerce_email),
            FieldSpec("phone", "Phone", required=True, coerce=coerce_phone),
            FieldSpec("address", "Address"),
        ),
    ),
}


def get_entity_mapping(kind) -> EntityMapping:
    return ENTITY_MAPPINGS[EntityKind(kind)]


def validate_mapping_tables(mappings: Optional[Dict[EntityKind, EntityMapping]] = None) -> None:
    """
    Check every mapping table against its ORM model.

    Raises:
        ImportConfigurationError: a target is not a column, a target or source
            is listed twice, or ``required`` disagrees with the column's
            nullability.
    """
    problems = []
    for kind, mapping in (mappings or ENTITY_MAPPINGS).items():
        columns = {column.key: column for column in sa_inspect(mapping.model).columns}
        seen_targets = set()
        seen_sources = set()
        for spec in mapping.fields:
            if spec.target in seen_targets:
                problems.append(f"{kind.value}: target '{spec.target}' mapped twice")
            if spec.source in seen_sources:
                problems.append(f"{kind.value}: header '{spec.source}' mapped twice")
            seen_targets.add(spec.target)
            seen_sources.add(spec.source)

            column = columns.get(spec.target)
            if column is None:
                problems.append(f"{kind.value}: '{spec.target}' is not a column of {mapping.model.__name__}")
                continue
            if spec.required == column.nullable:
                problems.append(
                    f"{kind.value}: '{spec.target}' required={spec.required} "
                    f"but column nullable={column.nullable}"
                )

    if problems:
        raise ImportConfigurationError("Invalid import mapping tables: " + "; ".join(problems))
