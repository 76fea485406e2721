"""
Upstream record models
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any

class Record(BaseModel):
    id: str
    fields: Dict[str, Any] = Field(default_factory=dict)
    createdTime: Optional[str] = None

class RecordListResponse(BaseModel):
    records: List[Record]

class RecordCreateResponse(BaseModel):
    record: Record
