# landval/routes/cities.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends

from landval.config import Settings
from landval.db import Database, get_database, get_settings
from landval.errors import StorageError
from landval.services import sources

router = APIRouter(tags=["cities"])
logger = logging.getLogger(__name__)


@router.get("/set-database/{schema}")
@router.get("/api/set-database/{schema}")
async def set_database(
    schema: str,
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
):
    """
    List the base tables of an allow-listed schema.
    """
    try:
        tables = await sources.schema_tables(db, settings, schema)
    except StorageError as e:
        logger.exception("set_database failed for schema=%s", schema)
        raise e.__class__("Error setting database") from e
    return {"message": True, "tables": tables}


@router.get("/get-city-data/{city_name}")
@router.get("/api/get-city-data/{city_name}")
async def get_city_data(
    city_name: str,
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
):
    try:
        rows = await sources.labels(db, settings, city_name)
    except StorageError as e:
        logger.exception("get_city_data failed for city=%s", city_name)
        raise e.__class__("Error fetching city data") from e
    return {"message": True, "data": rows}


@router.get("/get-property-size/{city_name}/{location}")
@router.get("/api/get-property-size/{city_name}/{location}")
async def get_property_size(
    city_name: str,
    location: str,
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
):
    try:
        rows = await sources.property_sizes(db, settings, city_name, location)
    except StorageError as e:
        logger.exception("get_property_size failed: city=%s location=%s", city_name, location)
        raise e.__class__("Error fetching property size") from e
    return {"message": True, "data": rows}


@router.get("/get-property-value")
@router.get("/api/get-property-value")
async def get_property_value(
    cityName: Optional[str] = None,
    location: Optional[str] = None,
    size: Optional[str] = None,
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
):
    """
    value_per_sq_meter for a mouza classification (`location` = classification id)
    or for a city location + plot size.
    """
    try:
        rows = await sources.property_values(db, settings, cityName, location, size)
    except StorageError as e:
        logger.exception(
            "get_property_value failed: city=%s location=%s size=%s", cityName, location, size
        )
        raise e.__class__("Error fetching property value") from e
    return {"message": True, "data": rows}
