# data.py
import asyncio
import math
import uuid
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from db import guarded_connection
from models import (
  CardData,
  CustomerField,
  CustomerTableRow,
  InvoiceForm,
  InvoiceTableRow,
  LatestInvoice,
  Revenue,
  User,
)
from utils import format_currency, from_cents

ITEMS_PER_PAGE = 6
LATEST_INVOICES = 5

INVOICE_SEARCH = """
  customers.name ILIKE :pattern OR
  customers.email ILIKE :pattern OR
  invoices.amount::text ILIKE :pattern OR
  invoices.date::text ILIKE :pattern OR
  invoices.status ILIKE :pattern
"""


def search_pattern(query: Optional[str]) -> str:
  return f"%{query or ''}%"


def page_offset(current_page: int) -> int:
  return (max(current_page, 1) - 1) * ITEMS_PER_PAGE


def _plain(row: Mapping[str, Any]) -> Dict[str, Any]:
  # asyncpg hands back uuid.UUID for uuid columns
  return {k: str(v) if isinstance(v, uuid.UUID) else v for k, v in row.items()}


async def fetch_revenue() -> List[Revenue]:
  async with guarded_connection("Failed to fetch revenue data.") as conn:
    result = await conn.execute(text("SELECT * FROM revenue"))
    return [Revenue(**_plain(r)) for r in result.mappings().all()]


async def fetch_latest_invoices() -> List[LatestInvoice]:
  async with guarded_connection("Failed to fetch the latest invoices.") as conn:
    result = await conn.execute(
      text("""
        SELECT invoices.amount, customers.name, customers.image_url, customers.email, invoices.id
        FROM invoices
        JOIN customers ON invoices.customer_id = customers.id
        ORDER BY invoices.date DESC
        LIMIT :limit
      """),
      {"limit": LATEST_INVOICES},
    )
    return [
      LatestInvoice(**{**_plain(r), "amount": format_currency(r["amount"])})
      for r in result.mappings().all()
    ]


async def fetch_card_data() -> CardData:
  async with guarded_connection("Failed to fetch card data.") as conn:
    invoice_count, customer_count, invoice_status = await _execute_together(
      conn,
      text("SELECT COUNT(*) FROM invoices"),
      text("SELECT COUNT(*) FROM customers"),
      text("""
        SELECT
          SUM(CASE WHEN status = 'paid' THEN amount ELSE 0 END) AS paid,
          SUM(CASE WHEN status = 'pending' THEN amount ELSE 0 END) AS pending
        FROM invoices
      """),
    )
    totals = invoice_status.mappings().one()
    return CardData(
      number_of_invoices=int(invoice_count.scalar_one() or 0),
      number_of_customers=int(customer_count.scalar_one() or 0),
      total_paid_invoices=format_currency(totals["paid"]),
      total_pending_invoices=format_currency(totals["pending"]),
    )


async def _execute_together(conn: AsyncConnection, *statements):
  """Launch statements together on one connection and wait for all of them.

  A single asyncpg connection runs one statement at a time, so the lock queues
  them the way a driver-side queue would. Any failure cancels the rest.
  """
  lock = asyncio.Lock()

  async def run(statement):
    async with lock:
      return await conn.execute(statement)

  tasks = [asyncio.ensure_future(run(s)) for s in statements]
  try:
    return await asyncio.gather(*tasks)
  except BaseException:
    for task in tasks:
      task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    raise


async def fetch_filtered_invoices(query: str, current_page: int) -> List[InvoiceTableRow]:
  async with guarded_connection("Failed to fetch invoices.") as conn:
    result = await conn.execute(
      text(f"""
        SELECT
          invoices.id,
          invoices.amount,
          invoices.date,
          invoices.status,
          customers.name,
          customers.email,
          customers.image_url
        FROM invoices
        JOIN customers ON invoices.customer_id = customers.id
        WHERE {INVOICE_SEARCH}
        ORDER BY invoices.date DESC
        LIMIT :limit OFFSET :offset
      """),
      {"pattern": search_pattern(query), "limit": ITEMS_PER_PAGE, "offset": page_offset(current_page)},
    )
    return [InvoiceTableRow(**_plain(r)) for r in result.mappings().all()]


async def fetch_invoices_pages(query: str) -> int:
  async with guarded_connection("Failed to fetch total number of invoices.") as conn:
    result = await conn.execute(
      text(f"""
        SELECT COUNT(*)
        FROM invoices
        JOIN customers ON invoices.customer_id = customers.id
        WHERE {INVOICE_SEARCH}
      """),
      {"pattern": search_pattern(query)},
    )
    return math.ceil(int(result.scalar_one() or 0) / ITEMS_PER_PAGE)


async def fetch_invoice_by_id(id: str) -> Optional[InvoiceForm]:
  async with guarded_connection("Failed to fetch invoice.") as conn:
    result = await conn.execute(
      text("""
        SELECT
          invoices.id,
          invoices.customer_id,
          invoices.amount,
          invoices.status
        FROM invoices
        WHERE invoices.id = :id
      """),
      {"id": id},
    )
    row = result.mappings().first()
    if row is None:
      return None
    return InvoiceForm(**{**_plain(row), "amount": from_cents(row["amount"])})


async def fetch_customers() -> List[CustomerField]:
  async with guarded_connection("Failed to fetch all customers.") as conn:
    result = await conn.execute(text("""
      SELECT
        id,
        name
      FROM customers
      ORDER BY name ASC
    """))
    return [CustomerField(**_plain(r)) for r in result.mappings().all()]


async def fetch_filtered_customers(query: str) -> List[CustomerTableRow]:
  async with guarded_connection("Failed to fetch customer table.") as conn:
    result = await conn.execute(
      text("""
        SELECT
          customers.id,
          customers.name,
          customers.email,
          customers.image_url,
          COUNT(invoices.id) AS total_invoices,
          SUM(CASE WHEN invoices.status = 'pending' THEN invoices.amount ELSE 0 END) AS total_pending,
          SUM(CASE WHEN invoices.status = 'paid' THEN invoices.amount ELSE 0 END) AS total_paid
        FROM customers
        LEFT JOIN invoices ON customers.id = invoices.customer_id
        WHERE
          customers.name ILIKE :pattern OR
          customers.email ILIKE :pattern
        GROUP BY customers.id, customers.name, customers.email, customers.image_url
        ORDER BY customers.name ASC
      """),
      {"pattern": search_pattern(query)},
    )
    return [
      CustomerTableRow(**{
        **_plain(r),
        "total_pending": format_currency(r["total_pending"]),
        "total_paid": format_currency(r["total_paid"]),
      })
      for r in result.mappings().all()
    ]


async def get_user(email: str) -> Optional[User]:
  async with guarded_connection("Failed to fetch user.") as conn:
    result = await conn.execute(text("SELECT * FROM users WHERE email = :email"), {"email": email})
    row = result.mappings().first()
    return User(**_plain(row)) if row is not None else None
