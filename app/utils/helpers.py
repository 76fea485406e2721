"""
Helper utility functions
"""
from bson import ObjectId
from typing import Any, Dict, List, Optional, Union
from datetime import datetime
import math
import pytz

EMPTY_VALUES = ("", None)

def utc_now() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(pytz.utc)

def serialize_doc(doc: Dict) -> Dict:
    """Convert MongoDB document to JSON-serializable format"""
    if doc is None:
        return None

    if "_id" in doc and isinstance(doc["_id"], ObjectId):
        doc["_id"] = str(doc["_id"])

    for key, value in doc.items():
        if isinstance(value, ObjectId):
            doc[key] = str(value)
        elif isinstance(value, datetime):
            # naive datetimes coming back from Mongo are UTC
            if value.tzinfo is None:
                value = pytz.utc.localize(value)
            doc[key] = value.isoformat()
        elif isinstance(value, list):
            doc[key] = [serialize_doc(item) if isinstance(item, dict) else item for item in value]
        elif isinstance(value, dict):
            doc[key] = serialize_doc(value)

    return doc

def serialize_docs(docs: List[Dict]) -> List[Dict]:
    """Convert list of MongoDB documents to JSON-serializable format"""
    return [serialize_doc(doc) for doc in docs]

def is_empty(value: Any) -> bool:
    """Empty string, empty list or absent"""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return value in EMPTY_VALUES

def parse_number(value: Any) -> Optional[Union[int, float]]:
    """Parse user input into an int or float. Returns None when it is not a number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text or "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None

def split_delimited(value: str, separator: str = ",") -> List[str]:
    """'a, b,,c ' -> ['a', 'b', 'c']"""
    return [part.strip() for part in value.split(separator) if part.strip()]
