# landval/services/resolver.py
"""
Khasra valuation lookup.

mouza name -> mouza id -> land classification ids -> matching khasra rows.
A khasra row is either a single number (compared as text) or an inclusive
numeric range. All three reads share one pooled connection.
"""
import re
from typing import FrozenSet, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import and_, literal_column, or_, select

from landval.db import Database, Gateway
from landval.errors import ClassificationNotFound, RegionNotFound
from landval.models import KhasraNumber, LandClassification, Mouza, fits_integer

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


class ParcelRecord(BaseModel):
    # extra columns stored on khasra_numbers are passed through as-is
    model_config = ConfigDict(extra="allow")

    id: int
    classification_id: int
    is_range: bool
    khasra_number: Optional[str] = None
    range_start: Optional[int] = None
    range_end: Optional[int] = None


def parse_khasra(parcel_number: str) -> Optional[int]:
    """Integer value of a khasra number, or None when it can't be one."""
    candidate = (parcel_number or "").strip()
    if not _INTEGER_RE.fullmatch(candidate):
        return None
    value = int(candidate)
    # too large to sit inside any stored range
    return value if fits_integer(value) else None


async def resolve_region(gateway: Gateway, name: str) -> int:
    rows = await gateway.query(select(Mouza.id).where(Mouza.name == name))
    if not rows:
        raise RegionNotFound()
    return rows[0]["id"]


async def classifications_for(gateway: Gateway, region_id: int) -> FrozenSet[int]:
    rows = await gateway.query(
        select(LandClassification.id).where(LandClassification.mouza_id == region_id)
    )
    if not rows:
        raise ClassificationNotFound()
    return frozenset(r["id"] for r in rows)


def _match_clause(parcel_number: str, number: Optional[int]):
    exact = and_(
        KhasraNumber.is_range.is_(False),
        KhasraNumber.khasra_number == parcel_number,
    )
    if number is None:
        return exact
    in_range = and_(
        KhasraNumber.is_range.is_(True),
        KhasraNumber.range_start <= number,
        KhasraNumber.range_end >= number,
    )
    return or_(in_range, exact)


async def match(gateway: Gateway, parcel_number: str, classification_ids: Iterable[int]) -> List[ParcelRecord]:
    ids = sorted(set(classification_ids))
    if not ids:
        return []
    stmt = (
        select(literal_column("*"))
        .select_from(KhasraNumber.__table__)
        .where(
            KhasraNumber.classification_id.in_(ids),
            _match_clause(parcel_number, parse_khasra(parcel_number)),
        )
        .order_by(KhasraNumber.id)
    )
    rows = await gateway.query(stmt)
    return [ParcelRecord.model_validate(r) for r in rows]


async def resolve(db: Database, parcel_number: str, region_name: str) -> List[ParcelRecord]:
    async with db.connect() as gateway:
        region_id = await resolve_region(gateway, region_name)
        classification_ids = await classifications_for(gateway, region_id)
        return await match(gateway, parcel_number, classification_ids)
