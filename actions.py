# actions.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError
from sqlalchemy import text

from db import connect_client
from logger import logger
from revalidate import revalidate_path
from utils import to_cents

INVOICES_PATH = "/dashboard/invoices"
STATUSES = ("pending", "paid")


class Redirect(Exception):
  """Raised by a successful mutation to send the caller to another view."""

  def __init__(self, url: str):
    super().__init__(url)
    self.url = url


class InvoiceFormSchema(BaseModel):
  model_config = ConfigDict(populate_by_name=True)

  customer_id: str = Field(default=None, alias="customerId", validate_default=True)
  amount: Decimal = Field(default=None, validate_default=True)
  status: Literal["pending", "paid"] = Field(default=None, validate_default=True)

  @field_validator("customer_id", mode="before")
  @classmethod
  def _customer_selected(cls, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
      raise PydanticCustomError("customer_id", "Please select a customer.")
    return value.strip()

  @field_validator("amount", mode="before")
  @classmethod
  def _positive_amount(cls, value: Any) -> Decimal:
    # blank and missing coerce to zero, like a number input left empty
    if value is None or (isinstance(value, str) and not value.strip()):
      value = 0
    try:
      amount = Decimal(str(value).strip())
    except InvalidOperation:
      raise PydanticCustomError("amount", "Please enter a valid amount.") from None
    if not amount.is_finite():
      raise PydanticCustomError("amount", "Please enter a valid amount.")
    # amounts are stored in whole cents; anything rounding to zero is no amount
    if amount <= 0 or to_cents(amount) <= 0:
      raise PydanticCustomError("amount", "Please enter an amount greater than $0.")
    return amount

  @field_validator("status", mode="before")
  @classmethod
  def _known_status(cls, value: Any) -> str:
    if value not in STATUSES:
      raise PydanticCustomError("status", "Please select an invoice status.")
    return value


@dataclass
class FormParseResult:
  success: bool
  data: Optional[InvoiceFormSchema] = None
  errors: Dict[str, List[str]] = field(default_factory=dict)


class State(BaseModel):
  errors: Dict[str, List[str]] = Field(default_factory=dict)
  message: Optional[str] = None


def _form_values(form: Mapping[str, Any]) -> Dict[str, Any]:
  return {
    "customerId": form.get("customerId"),
    "amount": form.get("amount"),
    "status": form.get("status"),
  }


def field_errors(exc: ValidationError) -> Dict[str, List[str]]:
  errors: Dict[str, List[str]] = {}
  for err in exc.errors():
    name = str(err["loc"][0]) if err["loc"] else "form"
    errors.setdefault(name, []).append(err["msg"])
  return errors


def parse_invoice_form(form: Mapping[str, Any]) -> InvoiceFormSchema:
  return InvoiceFormSchema.model_validate(_form_values(form))


def safe_parse_invoice_form(form: Mapping[str, Any]) -> FormParseResult:
  try:
    return FormParseResult(success=True, data=parse_invoice_form(form))
  except ValidationError as exc:
    return FormParseResult(success=False, errors=field_errors(exc))


async def create_invoice(form: Mapping[str, Any]) -> State:
  parsed = safe_parse_invoice_form(form)
  if not parsed.success:
    logger.bind(errors=parsed.errors).info("Invoice form rejected")
    return State(errors=parsed.errors, message="Missing Fields. Failed to Create Invoice.")

  customer_id, amount, status = parsed.data.customer_id, parsed.data.amount, parsed.data.status
  amount_in_cents = to_cents(amount)
  date = datetime.now(timezone.utc).date()

  try:
    async with connect_client() as conn:
      await conn.execute(
        text("""
          INSERT INTO invoices (customer_id, amount, status, date)
          VALUES (:customer_id, :amount, :status, :date)
        """),
        {"customer_id": customer_id, "amount": amount_in_cents, "status": status, "date": date},
      )
      await conn.commit()
  except Exception as exc:
    logger.error("Failed to create invoice: {!r}", exc)
    return State(message="Database Error: Failed to Create Invoice.")

  revalidate_path(INVOICES_PATH)
  raise Redirect(INVOICES_PATH)


async def update_invoice(id: str, form: Mapping[str, Any]) -> State:
  fields = parse_invoice_form(form)
  amount_in_cents = to_cents(fields.amount)

  try:
    async with connect_client() as conn:
      await conn.execute(
        text("""
          UPDATE invoices
          SET customer_id = :customer_id, amount = :amount, status = :status
          WHERE id = :id
        """),
        {"customer_id": fields.customer_id, "amount": amount_in_cents, "status": fields.status, "id": id},
      )
      await conn.commit()
  except Exception as exc:
    logger.error("Failed to update invoice {}: {!r}", id, exc)
    return State(message="Database Error: Failed to Update Invoice.")

  revalidate_path(INVOICES_PATH)
  raise Redirect(INVOICES_PATH)


async def delete_invoice(id: str) -> State:
  try:
    async with connect_client() as conn:
      result = await conn.execute(text("DELETE FROM invoices WHERE id = :id"), {"id": id})
      await conn.commit()
  except Exception as exc:
    logger.error("Failed to delete invoice {}: {!r}", id, exc)
    return State(message="Database Error: Failed to Delete Invoice.")

  if not result.rowcount:
    logger.bind(invoice_id=id).info("Delete matched no invoice")

  revalidate_path(INVOICES_PATH)
  return State(message="Deleted Invoice.")
