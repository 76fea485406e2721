"""
Published form models and schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from app.models.field_spec import FieldSpec
from app.models.record import Record
from app.models.session import ConnectionParams
from app.services.runner_engine import InputWidget
from app.services.value_resolver import InformationItem

class TableRef(BaseModel):
    connection: ConnectionParams
    tableName: str
    tableId: Optional[str] = None

class FormDefinition(BaseModel):
    """A published form. Only isActive changes after creation."""
    formId: str
    ownerId: str
    source: TableRef
    title: str
    fields: List[FieldSpec] = Field(default_factory=list)
    createdAt: datetime
    isActive: bool = True

class FormPublish(BaseModel):
    tableName: str = Field(..., min_length=1)
    tableId: Optional[str] = None
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    fields: List[FieldSpec] = Field(..., min_length=1)

class FormStatusUpdate(BaseModel):
    isActive: bool

class PublishResponse(BaseModel):
    formId: str
    url: str

class FormResponse(BaseModel):
    """A form as shown to its owner; the API key is never echoed back"""
    formId: str
    ownerId: str
    title: str
    tableName: str
    tableId: Optional[str] = None
    baseId: str
    fields: List[FieldSpec]
    createdAt: datetime
    isActive: bool
    url: str

class FormSummary(BaseModel):
    formId: str
    title: str
    tableName: str
    createdAt: datetime
    isActive: bool
    fieldsCount: int = 0
    url: str

class SuggestedTitle(BaseModel):
    title: str

class PublicFormView(BaseModel):
    formId: str
    title: str
    tableName: str
    widgets: List[InputWidget]
    information: List[InformationItem] = Field(default_factory=list)

class SubmitRequest(BaseModel):
    values: Dict[str, Any] = Field(default_factory=dict)

class SubmitResponse(BaseModel):
    record: Record
