"""
Builder routes - schema merge, ordering, field settings, preview and renames
"""
from fastapi import APIRouter, HTTPException, status, Depends
from typing import List

from app.models.builder import (
    BuilderState,
    FieldUpdateRequest,
    InitializeRequest,
    MoveRequest,
    PreviewRequest,
    RenameFieldRequest,
    RenameTableRequest,
    ReorderRequest,
)
from app.models.field_spec import FieldSpec
from app.models.session import SessionContext
from app.services import builder_engine
from app.services.airtable_client import AirtableClient
from app.services.builder_session import BuilderSession
from app.services.field_registry import humanize_type, partition
from app.services.form_store import FormStore
from app.services.value_resolver import InformationItem
from app.utils.auth import get_current_user, get_session_context
from app.utils.dependencies import get_airtable_client, get_form_store

router = APIRouter(prefix="/builder", tags=["Builder"])

def _fields_state(fields: List[FieldSpec]) -> BuilderState:
    inputs, information = partition(fields)
    return BuilderState(
        fields=fields,
        inputFieldIds=[f.id for f in inputs],
        informationFieldIds=[f.id for f in information],
        typeLabels={f.id: humanize_type(f.type) for f in fields},
    )

def _session_state(session: BuilderSession) -> BuilderState:
    state = _fields_state(session.fields)
    state.tableId = session.table.id
    state.tableName = session.table.name
    state.title = session.title
    state.linkedTables = session.table.linkedTables
    return state

@router.post("/initialize", response_model=BuilderState)
async def initialize_builder(
    request: InitializeRequest,
    context: SessionContext = Depends(get_session_context),
    client: AirtableClient = Depends(get_airtable_client),
    store: FormStore = Depends(get_form_store),
):
    """Load the table schema and merge it with the fields the client already configured"""
    title = request.title
    if not title:
        existing = await store.count_for_table(context.owner_id, request.tableName)
        title = builder_engine.suggest_title(request.tableName, existing)

    session = BuilderSession(context, client)
    await session.load(request.tableName, request.fields, title=title)
    return _session_state(session)

@router.post("/reorder", response_model=BuilderState)
async def reorder_fields(request: ReorderRequest, current_user: dict = Depends(get_current_user)):
    """Move one field from fromIndex to toIndex"""
    return _fields_state(builder_engine.reorder(request.fields, request.fromIndex, request.toIndex))

@router.post("/move", response_model=BuilderState)
async def move_field(request: MoveRequest, current_user: dict = Depends(get_current_user)):
    """Move a field up or down inside its own section"""
    return _fields_state(builder_engine.move_field(request.fields, request.fieldId, request.direction))

@router.patch("/fields/{field_id}", response_model=BuilderState)
async def update_field(
    field_id: str,
    request: FieldUpdateRequest,
    current_user: dict = Depends(get_current_user),
):
    try:
        fields = builder_engine.set_field(request.fields, field_id, request.update)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _fields_state(fields)

@router.post("/preview", response_model=List[InformationItem])
async def preview_information(
    request: PreviewRequest,
    context: SessionContext = Depends(get_session_context),
    client: AirtableClient = Depends(get_airtable_client),
):
    """Live values of the information fields against the table's records"""
    session = BuilderSession(context, client)
    await session.load(request.tableName, request.fields)
    await session.refresh_records()
    return session.preview()

@router.post("/rename-field", response_model=BuilderState)
async def rename_field(
    request: RenameFieldRequest,
    context: SessionContext = Depends(get_session_context),
    client: AirtableClient = Depends(get_airtable_client),
):
    session = BuilderSession(context, client)
    await session.load(request.tableName, request.fields)
    await session.rename_field(request.fieldId, request.newName)
    return _session_state(session)

@router.post("/rename-table", response_model=BuilderState)
async def rename_table(
    request: RenameTableRequest,
    context: SessionContext = Depends(get_session_context),
    client: AirtableClient = Depends(get_airtable_client),
):
    session = BuilderSession(context, client)
    await session.load(request.tableName, request.fields, title=request.title)
    await session.rename_table(request.newName)
    return _session_state(session)
