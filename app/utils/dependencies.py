"""
FastAPI dependencies for the upstream client and the form store
"""
from typing import Callable
from fastapi import Depends
from app.models.session import ConnectionParams, SessionContext
from app.services.airtable_client import AirtableClient
from app.services.form_store import FormStore, form_store
from app.utils.auth import get_session_context

def get_client_factory() -> Callable[[ConnectionParams], AirtableClient]:
    """Builds a client for any stored connection (public forms)"""
    return AirtableClient

def get_airtable_client(
    context: SessionContext = Depends(get_session_context),
    factory: Callable[[ConnectionParams], AirtableClient] = Depends(get_client_factory),
) -> AirtableClient:
    return factory(context.connection)

def get_form_store() -> FormStore:
    return form_store
