# billing_route.py
from typing import List

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

import actions
import data
from models import (
  CardData,
  CustomerField,
  CustomerTableRow,
  InvoiceForm,
  InvoiceTableRow,
  LatestInvoice,
  Revenue,
)

router = APIRouter(prefix="/api", tags=["dashboard"])


def _state_response(state: actions.State, status_code: int) -> JSONResponse:
  return JSONResponse(status_code=status_code, content=state.model_dump())


@router.get("/revenue", response_model=List[Revenue])
async def revenue():
  return await data.fetch_revenue()


@router.get("/cards", response_model=CardData)
async def cards():
  return await data.fetch_card_data()


@router.get("/invoices/latest", response_model=List[LatestInvoice])
async def latest_invoices():
  return await data.fetch_latest_invoices()


@router.get("/invoices/pages")
async def invoices_pages(query: str = ""):
  return {"total_pages": await data.fetch_invoices_pages(query)}


@router.get("/invoices", response_model=List[InvoiceTableRow])
async def list_invoices(query: str = "", page: int = 1):
  return await data.fetch_filtered_invoices(query, page)


@router.get("/invoices/{invoice_id}", response_model=InvoiceForm)
async def get_invoice(invoice_id: str):
  invoice = await data.fetch_invoice_by_id(invoice_id)
  if invoice is None:
    raise HTTPException(status_code=404, detail="Invoice not found")
  return invoice


@router.post("/invoices")
async def create_invoice(request: Request):
  form = await request.form()
  state = await actions.create_invoice(form)
  return _state_response(state, 422 if state.errors else 500)


@router.put("/invoices/{invoice_id}")
async def update_invoice(invoice_id: str, request: Request):
  form = await request.form()
  state = await actions.update_invoice(invoice_id, form)
  return _state_response(state, 500)


@router.delete("/invoices/{invoice_id}")
async def delete_invoice(invoice_id: str):
  state = await actions.delete_invoice(invoice_id)
  if state.message and state.message.startswith("Database Error"):
    return _state_response(state, 500)
  return state


@router.get("/customers", response_model=List[CustomerField])
async def customers():
  return await data.fetch_customers()


@router.get("/customers/table", response_model=List[CustomerTableRow])
async def customers_table(query: str = ""):
  return await data.fetch_filtered_customers(query)
