"""
Record routes - read and create upstream records
"""
from fastapi import APIRouter, status, Depends, Query
from typing import Dict, Any

from app.models.record import RecordCreateResponse, RecordListResponse
from app.services.airtable_client import AirtableClient
from app.utils.dependencies import get_airtable_client

router = APIRouter(prefix="/records", tags=["Records"])

@router.get("/", response_model=RecordListResponse)
async def list_records(
    tableName: str = Query(..., min_length=1),
    client: AirtableClient = Depends(get_airtable_client),
):
    return RecordListResponse(records=await client.list_records(tableName))

@router.post("/", response_model=RecordCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_record(
    fields: Dict[str, Any],
    tableName: str = Query(..., min_length=1),
    client: AirtableClient = Depends(get_airtable_client),
):
    return RecordCreateResponse(record=await client.create_record(tableName, fields))
