# db.py
import os
import ssl
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Tuple

from dotenv import load_dotenv
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from logger import logger

if os.getenv("APP_ENV", "development").strip() != "production":
  load_dotenv(".env.local")
else:
  load_dotenv()

TRUTHY = {"1", "true", "yes", "on"}


class DataAccessError(RuntimeError):
  """Coarse, user-presentable failure of a single data access operation."""


@dataclass(frozen=True)
class DbSettings:
  database_url: str = ""
  non_pooling_url: str = ""
  environment: str = "development"
  pooled: bool = False

  @classmethod
  def from_env(cls) -> "DbSettings":
    return cls(
      database_url=(os.getenv("DATABASE_URL") or os.getenv("POSTGRES_URL") or "").strip(),
      non_pooling_url=os.getenv("POSTGRES_URL_NON_POOLING", "").strip(),
      environment=os.getenv("APP_ENV", "development").strip() or "development",
      pooled=os.getenv("DB_POOL", "").strip().lower() in TRUTHY,
    )

  @property
  def is_production(self) -> bool:
    return self.environment == "production"

  @property
  def uses_non_pooling(self) -> bool:
    return self.is_production and bool(self.non_pooling_url)

  def connection_url(self) -> str:
    url = self.non_pooling_url if self.uses_non_pooling else self.database_url
    if not url:
      raise RuntimeError("DATABASE_URL is not set in .env / .env.local")
    return url


def async_url(raw: str) -> Tuple[URL, Optional[str]]:
  """Point a postgres URL at the asyncpg driver. Returns the URL and the sslmode it carried."""
  url = make_url(raw)
  sslmode = url.query.get("sslmode")
  if isinstance(sslmode, tuple):
    sslmode = sslmode[-1]
  url = url.difference_update_query(["sslmode"]).set(drivername="postgresql+asyncpg")
  return url, sslmode


def ssl_context(settings: DbSettings) -> ssl.SSLContext:
  ctx = ssl.create_default_context()
  if not settings.is_production:
    # local and preview databases use self-signed certificates
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
  return ctx


def ssl_option(settings: DbSettings, sslmode: Optional[str]):
  """The asyncpg `ssl` argument for an environment and URL sslmode."""
  if sslmode == "disable":
    return False
  if sslmode is None and not settings.is_production:
    # like libpq: try TLS, fall back to plain for a local server
    return "prefer"
  return ssl_context(settings)


def build_engine(settings: DbSettings) -> AsyncEngine:
  url, sslmode = async_url(settings.connection_url())
  connect_args = {"ssl": ssl_option(settings, sslmode)}

  logger.bind(environment=settings.environment).info("Database environment selected")
  logger.bind(
    variant="non-pooling" if settings.uses_non_pooling else "default",
    url=url.render_as_string(hide_password=True),
  ).info("Database connection string selected")

  if settings.pooled:
    return create_async_engine(url, echo=False, pool_pre_ping=True, connect_args=connect_args)
  return create_async_engine(url, echo=False, poolclass=NullPool, connect_args=connect_args)


_engine: Optional[AsyncEngine] = None


def get_engine() -> AsyncEngine:
  global _engine
  if _engine is None:
    _engine = build_engine(DbSettings.from_env())
  return _engine


async def dispose_engine() -> None:
  global _engine
  if _engine is not None:
    await _engine.dispose()
    _engine = None


@asynccontextmanager
async def connect_client() -> AsyncIterator[AsyncConnection]:
  conn = await get_engine().connect()
  try:
    yield conn
  finally:
    await conn.close()


@asynccontextmanager
async def guarded_connection(message: str) -> AsyncIterator[AsyncConnection]:
  try:
    async with connect_client() as conn:
      yield conn
  except Exception as exc:
    logger.error("Database Error: {!r}", exc)
    raise DataAccessError(message) from exc
