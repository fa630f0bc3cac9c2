# landval/config.py
"""
Environment-driven settings.

`.env` is loaded once by load_settings(); everything else reads the parsed
Settings object that the app factory hands around.
"""
import os
import re
from pathlib import Path
from typing import Dict, List, Literal, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator
from sqlalchemy.engine import URL

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

MOUZA_SOURCE = "mouzas"

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]


def _check_identifier(value: str) -> str:
    if not IDENTIFIER_RE.match(value or ""):
        raise ValueError(f"invalid SQL identifier: {value!r}")
    return value


class TableSource(BaseModel):
    """One allow-listed table: where its rows live and which column labels them."""

    table: str
    label_column: str
    kind: Literal["mouza", "city"]

    @field_validator("table", "label_column")
    @classmethod
    def _identifier(cls, v: str) -> str:
        return _check_identifier(v)


class Settings(BaseModel):
    database_url: str
    pool_size: int = 20
    pool_timeout: float = 10.0
    pool_recycle: int = 1800
    query_timeout: float = 30.0
    echo: bool = False
    ssl: bool = False
    sources: Dict[str, TableSource] = {}
    allowed_schemas: List[str] = ["public"]
    cors_origins: List[str] = DEFAULT_CORS_ORIGINS
    init_schema: bool = False
    log_level: str = "INFO"

    @field_validator("allowed_schemas")
    @classmethod
    def _schemas(cls, v: List[str]) -> List[str]:
        return [_check_identifier(s) for s in v]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def city_tables(self) -> List[str]:
        return [s.table for s in self.sources.values() if s.kind == "city"]


# ----------------------------
# env parsing helpers
# ----------------------------
def _split(value: Optional[str]) -> List[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def resolve_database_url(environ: Mapping[str, str]) -> str:
    """
    DATABASE_URL wins. Otherwise build a Postgres URL from the PG_* variables,
    and fall back to a SQLite file next to the package.
    """
    url = environ.get("DATABASE_URL")
    if url:
        return url

    if environ.get("PG_HOST"):
        return URL.create(
            "postgresql+asyncpg",
            username=environ.get("PG_USER"),
            password=environ.get("PG_PASS"),
            host=environ["PG_HOST"],
            port=int(environ.get("PG_PORT") or 5432),
            database=environ.get("PG_DATABASE") or "postgres",
        ).render_as_string(hide_password=False)

    db_file = Path(__file__).resolve().parent / "landval.db"
    return f"sqlite+aiosqlite:///{db_file.as_posix()}"


def build_sources(city_tables: List[str]) -> Dict[str, TableSource]:
    # mouzas are labelled by `name`, city tables by `location`
    sources = {MOUZA_SOURCE: TableSource(table=MOUZA_SOURCE, label_column="name", kind="mouza")}
    for city in city_tables:
        if city == MOUZA_SOURCE:
            continue
        sources[city] = TableSource(table=city, label_column="location", kind="city")
    return sources


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    if environ is None:
        load_dotenv()
        environ = os.environ

    return Settings(
        database_url=resolve_database_url(environ),
        pool_size=int(environ.get("DB_POOL_SIZE", "20")),
        pool_timeout=float(environ.get("DB_POOL_TIMEOUT", "10")),
        pool_recycle=int(environ.get("DB_POOL_RECYCLE", "1800")),
        query_timeout=float(environ.get("DB_QUERY_TIMEOUT", "30")),
        echo=_flag(environ.get("DB_ECHO")),
        ssl=_flag(environ.get("PG_SSL")),
        sources=build_sources(_split(environ.get("CITY_TABLES"))),
        allowed_schemas=_split(environ.get("ALLOWED_SCHEMAS")) or ["public"],
        cors_origins=_split(environ.get("CORS_ORIGINS")) or DEFAULT_CORS_ORIGINS,
        init_schema=_flag(environ.get("INIT_SCHEMA")),
        log_level=environ.get("LOG_LEVEL", "INFO").upper(),
    )
