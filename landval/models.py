# landval/models.py
from typing import Iterable

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# signed 64-bit bounds of an Integer column
INTEGER_MIN = -(2 ** 63)
INTEGER_MAX = 2 ** 63 - 1


def fits_integer(value: int) -> bool:
    return INTEGER_MIN <= value <= INTEGER_MAX


class Mouza(Base):
    __tablename__ = "mouzas"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)


class LandClassification(Base):
    __tablename__ = "land_classifications"

    id = Column(Integer, primary_key=True, index=True)
    mouza_id = Column(Integer, ForeignKey("mouzas.id"), nullable=False, index=True)
    name = Column(String, nullable=True)
    value_per_sq_meter = Column(Float, nullable=True)


class KhasraNumber(Base):
    __tablename__ = "khasra_numbers"

    id = Column(Integer, primary_key=True, index=True)
    classification_id = Column(
        Integer, ForeignKey("land_classifications.id"), nullable=False, index=True
    )

    # either a single khasra number or an inclusive numeric range
    is_range = Column(Boolean, nullable=False, default=False)
    khasra_number = Column(String, nullable=True)
    range_start = Column(Integer, nullable=True)
    range_end = Column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "(is_range AND range_start IS NOT NULL AND range_end IS NOT NULL"
            " AND range_start <= range_end)"
            " OR (NOT is_range AND khasra_number IS NOT NULL)",
            name="ck_khasra_numbers_range_or_number",
        ),
        Index("ix_khasra_numbers_classification_number", "classification_id", "khasra_number"),
    )


def city_table(name: str, metadata: MetaData) -> Table:
    """Shape shared by every per-city property table."""
    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True),
        Column("location", String, nullable=False, index=True),
        Column("size_sq_yard", Float, nullable=True),
        Column("value_per_sq_meter", Float, nullable=True),
    )


def create_reference_tables(sync_conn, city_tables: Iterable[str] = ()) -> None:
    Base.metadata.create_all(sync_conn)
    cities = MetaData()
    for name in city_tables:
        city_table(name, cities)
    cities.create_all(sync_conn)
