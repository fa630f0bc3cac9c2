# landval/services/sources.py
from typing import Any, Dict, List, Optional

from sqlalchemy import column, select, table

from landval.config import Settings, TableSource
from landval.db import Database
from landval.errors import InvalidInput, SourceNotFound
from landval.models import LandClassification, fits_integer


def get_source(settings: Settings, name: Optional[str]) -> TableSource:
    source = settings.sources.get(name or "")
    if source is None:
        raise SourceNotFound()
    return source


def _city(settings: Settings, name: Optional[str]) -> TableSource:
    source = get_source(settings, name)
    if source.kind != "city":
        raise InvalidInput(f"{source.table} has no property sizes")
    return source


def _property_table(source: TableSource):
    # identifiers come from the validated allow-list, never from the request
    return table(
        source.table,
        column(source.label_column),
        column("size_sq_yard"),
        column("value_per_sq_meter"),
    )


def _number(value: Optional[str], field: str, cast=float):
    try:
        return cast(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidInput(f"{field} must be a number")


async def labels(db: Database, settings: Settings, name: str) -> List[Dict[str, Any]]:
    """Mouza names or city locations, for dropdowns."""
    source = get_source(settings, name)
    t = _property_table(source)
    return await db.query(select(t.c[source.label_column]))


async def property_sizes(db: Database, settings: Settings, name: str, location: str) -> List[Dict[str, Any]]:
    source = _city(settings, name)
    t = _property_table(source)
    return await db.query(
        select(t.c.size_sq_yard).where(t.c[source.label_column] == location)
    )


async def property_values(
    db: Database,
    settings: Settings,
    name: str,
    location: Optional[str],
    size: Optional[str],
) -> List[Dict[str, Any]]:
    """
    For mouzas `location` is a land classification id; for city tables it is
    a location name paired with a plot size in square yards.
    """
    source = get_source(settings, name)
    if not location:
        raise InvalidInput("location is required")

    if source.kind == "mouza":
        classification_id = _number(location, "location", int)
        if not fits_integer(classification_id):
            return []
        return await db.query(
            select(LandClassification.value_per_sq_meter).where(
                LandClassification.id == classification_id
            )
        )

    if size is None or size == "":
        raise InvalidInput("size is required")
    t = _property_table(source)
    return await db.query(
        select(t.c.value_per_sq_meter).where(
            t.c[source.label_column] == location,
            t.c.size_sq_yard == _number(size, "size"),
        )
    )


async def schema_tables(db: Database, settings: Settings, schema: str) -> List[str]:
    if schema not in settings.allowed_schemas:
        raise SourceNotFound("Database not found")
    async with db.connect() as gateway:
        return await gateway.table_names(schema)
