# landval/routes/valuation.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from landval.db import Database, get_database
from landval.errors import InvalidInput, StorageError
from landval.services import resolver

router = APIRouter()
logger = logging.getLogger(__name__)


async def _khasra_value(db: Database, khasra_number: Optional[str], location: Optional[str]):
    if not khasra_number or not location:
        raise InvalidInput("khasraNumber and location are required")
    try:
        records = await resolver.resolve(db, khasra_number, location)
    except StorageError as e:
        logger.exception("get_kharsa_value failed: khasra=%s location=%s", khasra_number, location)
        raise e.__class__("Error fetching khasra value") from e
    return {"message": True, "data": [r.model_dump() for r in records]}


# =========================
# KHASRA VALUATION ROUTES
# =========================

@router.get("/get-kharsa-value", tags=["valuation"])
@router.get("/api/get-kharsa-value", tags=["valuation"])
async def get_kharsa_value(
    khasra_number: Optional[str] = Query(None, alias="khasraNumber"),
    location: Optional[str] = None,
    db: Database = Depends(get_database),
):
    """
    Land classification rows for a khasra number within a mouza.
    `location` is the mouza name; a khasra matches either exactly or by range.
    """
    return await _khasra_value(db, khasra_number, location)


@router.get("/get-kharsa-value/{location}/{khasra_number:path}", tags=["valuation"])
@router.get("/api/get-kharsa-value/{location}/{khasra_number:path}", tags=["valuation"])
async def get_kharsa_value_by_path(
    location: str,
    khasra_number: str,
    db: Database = Depends(get_database),
):
    # khasra numbers like "45/2" contain a slash, hence the :path converter
    return await _khasra_value(db, khasra_number, location)
