import asyncio

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from datetime import date as _date

import config
import storage
import sync
from database import get_db

router = APIRouter(prefix="/calendly")

TOKEN_KEY = config.SETTING_KEYS["calendly_token"]

# --- Pydantic Models ---
class TokenIn(BaseModel):
    token: str = Field(min_length=1)

class ConnectionStatus(BaseModel):
    connected: bool

class ImportResult(BaseModel):
    date: _date
    imported: int


# --- API Endpoints ---
@router.post("/token", response_model=ConnectionStatus, tags=["Calendly"])
def save_token(payload: TokenIn, db: Session = Depends(get_db)):
    storage.set_setting(db, TOKEN_KEY, payload.token.strip())
    return ConnectionStatus(connected=True)

@router.get("/status", response_model=ConnectionStatus, tags=["Calendly"])
def connection_status(db: Session = Depends(get_db)):
    return ConnectionStatus(connected=bool(storage.get_setting(db, TOKEN_KEY)))

@router.post("/disconnect", response_model=ConnectionStatus, tags=["Calendly"])
def disconnect(db: Session = Depends(get_db)):
    storage.delete_setting(db, TOKEN_KEY)
    return ConnectionStatus(connected=False)

@router.post("/import", response_model=ImportResult, tags=["Calendly"])
def import_for_date(target_date: _date = Query(alias="date"), db: Session = Depends(get_db)):
    """Imports Calendly invitees into the existing tracking record for `date`."""
    record = storage.get_tracking_record_by_date(db, target_date)
    if not record:
        raise HTTPException(status_code=404, detail=f"No tracking record for {target_date}")

    token = sync.resolve_credential(db, "calendly_token", config.CALENDLY_API_TOKEN)
    if not token:
        raise HTTPException(status_code=400, detail="Calendly is not connected")

    imported = asyncio.run(sync.import_calendly_customers(db, record, token))
    return ImportResult(date=target_date, imported=imported)
