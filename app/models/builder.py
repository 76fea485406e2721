"""
Request / response schemas for the builder endpoints.
Builder commands are stateless: the client sends its current field list and
gets the new one back.
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Dict

from app.models.field_spec import FieldSpec, FieldSpecUpdate, LinkedTable

class BuilderState(BaseModel):
    tableId: Optional[str] = None
    tableName: Optional[str] = None
    title: Optional[str] = None
    fields: List[FieldSpec] = Field(default_factory=list)
    inputFieldIds: List[str] = Field(default_factory=list)
    informationFieldIds: List[str] = Field(default_factory=list)
    typeLabels: Dict[str, str] = Field(default_factory=dict)
    linkedTables: List[LinkedTable] = Field(default_factory=list)

class InitializeRequest(BaseModel):
    tableName: str = Field(..., min_length=1)
    title: Optional[str] = None
    fields: List[FieldSpec] = Field(default_factory=list)

class ReorderRequest(BaseModel):
    fields: List[FieldSpec]
    fromIndex: int
    toIndex: int

class MoveRequest(BaseModel):
    fields: List[FieldSpec]
    fieldId: str
    direction: Literal["up", "down"]

class FieldUpdateRequest(BaseModel):
    fields: List[FieldSpec]
    update: FieldSpecUpdate

class PreviewRequest(BaseModel):
    tableName: str = Field(..., min_length=1)
    fields: List[FieldSpec]

class RenameFieldRequest(BaseModel):
    tableName: str = Field(..., min_length=1)
    fields: List[FieldSpec] = Field(default_factory=list)
    fieldId: str
    newName: str = Field(..., min_length=1)

class RenameTableRequest(BaseModel):
    tableName: str = Field(..., min_length=1)
    newName: str = Field(..., min_length=1)
    title: Optional[str] = None
    fields: List[FieldSpec] = Field(default_factory=list)

class FieldRename(BaseModel):
    id: str
    name: str = Field(..., min_length=1)

class SchemaPatch(BaseModel):
    tableId: str
    newTableName: Optional[str] = None
    fieldRenames: List[FieldRename] = Field(default_factory=list)

class TableListResponse(BaseModel):
    tables: List[str]
