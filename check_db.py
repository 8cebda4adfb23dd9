# check_db.py
"""Connectivity check: python check_db.py"""
import asyncio
import sys

from sqlalchemy import text
from sqlmodel import SQLModel

import models  # noqa: F401  registers the expected tables
from db import connect_client, dispose_engine
from logger import logger


async def check_connection() -> int:
  try:
    async with connect_client() as conn:
      logger.info("Connected to the database successfully.")

      current = (await conn.execute(text("SELECT current_database()"))).scalar_one()
      logger.info("Current database: {}", current)

      result = await conn.execute(text("""
        SELECT table_name
        FROM information_schema.tables
        WHERE table_schema = 'public'
      """))
      tables = sorted(result.scalars().all())
  except Exception as exc:
    logger.opt(exception=exc).error("Database connection error")
    return 1
  finally:
    await dispose_engine()

  if not tables:
    logger.warning("No tables found in the database.")
  else:
    logger.info("Tables found in the database: {}", ", ".join(tables))

  missing = sorted(set(SQLModel.metadata.tables) - set(tables))
  if missing:
    logger.error("Missing dashboard tables: {}", ", ".join(missing))
    return 1
  return 0


def main() -> int:
  code = asyncio.run(check_connection())
  logger.complete()
  return code


if __name__ == "__main__":
  sys.exit(main())
