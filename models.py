# models.py
import datetime as dt
from typing import Optional

from sqlmodel import SQLModel, Field

# Tables already exist in the store; these declare their shape.


class Customer(SQLModel, table=True):
  __tablename__ = "customers"

  id: str = Field(primary_key=True)
  name: str
  email: str
  image_url: str


class Invoice(SQLModel, table=True):
  __tablename__ = "invoices"

  id: str = Field(primary_key=True)
  customer_id: str = Field(foreign_key="customers.id", index=True)
  amount: int  # cents
  status: str  # pending|paid
  date: dt.date


class Revenue(SQLModel, table=True):
  __tablename__ = "revenue"

  month: str = Field(primary_key=True)
  revenue: int


class User(SQLModel, table=True):
  __tablename__ = "users"

  id: str = Field(primary_key=True)
  email: str = Field(index=True, unique=True)
  password: str  # bcrypt hash


# View records returned to the dashboard


class LatestInvoice(SQLModel):
  id: str
  name: str
  email: str
  image_url: str
  amount: str


class InvoiceTableRow(SQLModel):
  id: str
  amount: int
  date: dt.date
  status: str
  name: str
  email: str
  image_url: str


class InvoiceForm(SQLModel):
  id: str
  customer_id: str
  amount: float  # dollars
  status: str


class CustomerField(SQLModel):
  id: str
  name: str


class CustomerTableRow(SQLModel):
  id: str
  name: str
  email: str
  image_url: Optional[str] = None
  total_invoices: int = 0
  total_pending: str
  total_paid: str


class CardData(SQLModel):
  number_of_customers: int
  number_of_invoices: int
  total_paid_invoices: str
  total_pending_invoices: str
