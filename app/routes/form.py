"""
Form routes - publish, manage and fill in published forms
"""
from fastapi import APIRouter, HTTPException, status, Depends, Query, Response
from typing import Callable, List

from app.models.form import (
    FormPublish,
    FormResponse,
    FormStatusUpdate,
    FormSummary,
    PublicFormView,
    PublishResponse,
    SubmitRequest,
    SubmitResponse,
    SuggestedTitle,
)
from app.models.session import SessionContext
from app.services import builder_engine
from app.services.form_store import FormStore, FORM_NOT_FOUND, new_definition, public_url, to_response, to_summary
from app.services.public_form_service import PublicFormService
from app.services.value_resolver import InformationItem
from app.utils.auth import get_current_user, get_session_context
from app.utils.dependencies import get_client_factory, get_form_store

router = APIRouter(prefix="/forms", tags=["Forms"])

@router.post("/", response_model=PublishResponse, status_code=status.HTTP_201_CREATED)
async def publish_form(
    form: FormPublish,
    context: SessionContext = Depends(get_session_context),
    store: FormStore = Depends(get_form_store),
):
    """Publish the builder's field list as a public form"""
    ids = [f.id for f in form.fields]
    if len(ids) != len(set(ids)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Duplicate field ids"
        )

    title = form.title
    if not title:
        existing = await store.count_for_table(context.owner_id, form.tableName)
        title = builder_engine.suggest_title(form.tableName, existing)

    definition = new_definition(context, form.tableName, title, form.fields, table_id=form.tableId)
    form_id = await store.create(definition)
    return PublishResponse(formId=form_id, url=public_url(context.owner_id, form_id))

@router.get("/", response_model=List[FormSummary])
async def list_forms(
    current_user: dict = Depends(get_current_user),
    store: FormStore = Depends(get_form_store),
):
    """Forms published by the current user, newest first"""
    return [to_summary(d) for d in await store.list(current_user["sub"])]

@router.get("/suggested-title", response_model=SuggestedTitle)
async def suggested_title(
    tableName: str = Query(..., min_length=1),
    current_user: dict = Depends(get_current_user),
    store: FormStore = Depends(get_form_store),
):
    existing = await store.count_for_table(current_user["sub"], tableName)
    return SuggestedTitle(title=builder_engine.suggest_title(tableName, existing))

@router.get("/{form_id}", response_model=FormResponse)
async def get_form(
    form_id: str,
    current_user: dict = Depends(get_current_user),
    store: FormStore = Depends(get_form_store),
):
    return to_response(await store.get(current_user["sub"], form_id))

@router.patch("/{form_id}/status", response_model=FormResponse)
async def update_form_status(
    form_id: str,
    update: FormStatusUpdate,
    current_user: dict = Depends(get_current_user),
    store: FormStore = Depends(get_form_store),
):
    """Deactivate (soft delete) or reactivate a form"""
    return to_response(await store.set_active(current_user["sub"], form_id, update.isActive))

@router.delete("/{form_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_form(
    form_id: str,
    current_user: dict = Depends(get_current_user),
    store: FormStore = Depends(get_form_store),
):
    await store.delete(current_user["sub"], form_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# ─── Public Endpoints (No Auth Required) ──────────────────────────────────────

async def _active_form(store: FormStore, username: str, form_id: str):
    definition = await store.get(username, form_id)
    if not definition.isActive:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=FORM_NOT_FOUND
        )
    return definition

@router.get("/public/{username}/{form_id}", response_model=PublicFormView)
async def get_public_form(
    username: str,
    form_id: str,
    store: FormStore = Depends(get_form_store),
    client_factory: Callable = Depends(get_client_factory),
):
    """Inputs, record pickers and information panel of a published form"""
    definition = await _active_form(store, username, form_id)
    service = PublicFormService(client_factory(definition.source.connection))
    return await service.render(definition)

@router.get("/public/{username}/{form_id}/information", response_model=List[InformationItem])
async def get_public_information(
    username: str,
    form_id: str,
    store: FormStore = Depends(get_form_store),
    client_factory: Callable = Depends(get_client_factory),
):
    """Information panel recomputed over the latest records"""
    definition = await _active_form(store, username, form_id)
    service = PublicFormService(client_factory(definition.source.connection))
    return await service.information(definition)

@router.post("/public/{username}/{form_id}/submit", response_model=SubmitResponse,
             status_code=status.HTTP_201_CREATED)
async def submit_public_form(
    username: str,
    form_id: str,
    submission: SubmitRequest,
    store: FormStore = Depends(get_form_store),
    client_factory: Callable = Depends(get_client_factory),
):
    """Validate, coerce and create the record in the form's table"""
    definition = await _active_form(store, username, form_id)
    service = PublicFormService(client_factory(definition.source.connection))
    record = await service.submit(definition, submission.values)
    return SubmitResponse(record=record)
