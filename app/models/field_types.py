"""
Semantic field categories shared by the registry and the field models
"""
from enum import Enum

class FieldCategory(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SINGLE_CHOICE = "single-choice"
    MULTI_CHOICE = "multi-choice"
    SINGLE_LINK = "single-link"
    MULTI_LINK = "multi-link"
    COMPUTED_FORMULA = "computed-formula"
    COMPUTED_ROLLUP = "computed-rollup"
    ACTION = "action"

class WidgetKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"
    MULTISELECT = "multiselect"
    RECORD_SELECT = "record-select"
    RECORD_MULTISELECT = "record-multiselect"
    BUTTON = "button"
    INFO = "info"
