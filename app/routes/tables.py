"""
Table routes - upstream table directory and schema
"""
from fastapi import APIRouter, HTTPException, status, Depends, Query

from app.models.builder import SchemaPatch, TableListResponse
from app.models.field_spec import TableSchema
from app.services.airtable_client import AirtableClient
from app.utils.dependencies import get_airtable_client

router = APIRouter(tags=["Tables"])

@router.get("/tables", response_model=TableListResponse)
async def list_tables(client: AirtableClient = Depends(get_airtable_client)):
    """Names of every table in the base"""
    return TableListResponse(tables=await client.list_tables())

@router.get("/schema", response_model=TableSchema)
async def get_schema(
    tableName: str = Query(..., min_length=1),
    client: AirtableClient = Depends(get_airtable_client),
):
    return await client.get_schema(tableName)

@router.patch("/schema", response_model=TableSchema)
async def update_schema(patch: SchemaPatch, client: AirtableClient = Depends(get_airtable_client)):
    """Rename the table and/or some of its fields, then return the fresh schema"""
    if not patch.newTableName and not patch.fieldRenames:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing tableId or update fields"
        )

    if patch.newTableName:
        await client.rename_table(patch.tableId, patch.newTableName)
    for rename in patch.fieldRenames:
        await client.rename_field(patch.tableId, rename.id, rename.name)

    return await client.get_schema_by_id(patch.tableId)
