# main.py
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError

from actions import Redirect, field_errors
from billing_route import router
from db import DataAccessError, dispose_engine
from logger import logger

CORS_ORIGINS = [
  x.strip()
  for x in os.getenv("CORS_ORIGINS", "http://127.0.0.1:3000,http://localhost:3000").split(",")
  if x.strip()
]


@asynccontextmanager
async def lifespan(app: FastAPI):
  yield
  await dispose_engine()
  await logger.complete()


app = FastAPI(title="Invoice Dashboard Backend", version="1.0.0", lifespan=lifespan)
app.add_middleware(
  CORSMiddleware,
  allow_origins=CORS_ORIGINS,
  allow_credentials=True,
  allow_methods=["*"],
  allow_headers=["*"],
)
app.include_router(router)


@app.exception_handler(DataAccessError)
async def data_access_error(request: Request, exc: DataAccessError):
  return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def form_validation_error(request: Request, exc: ValidationError):
  return JSONResponse(status_code=422, content={"errors": field_errors(exc), "message": "Invalid Fields."})


@app.exception_handler(Redirect)
async def redirect(request: Request, exc: Redirect):
  # 303 so the browser follows a form POST/PUT with a GET
  return RedirectResponse(url=exc.url, status_code=303)


@app.get("/health")
def health():
  return {"ok": True, "environment": os.getenv("APP_ENV", "development")}
