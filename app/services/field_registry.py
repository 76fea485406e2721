"""
FieldType Registry

Classifies an upstream field type name (Airtable's ``singleLineText``,
``multipleRecordLinks``, ...) into a semantic FieldCategory and declares, per
category, how the field behaves in the builder and the runner. Every other
module branches on the category, never on raw type strings.
"""
from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Tuple

from app.models.field_types import FieldCategory, WidgetKind


@dataclass(frozen=True)
class FieldTypeInfo:
    category: FieldCategory
    isComputed: bool
    acceptsMultipleChoice: bool
    acceptsLinking: bool
    isEditable: bool
    widget: WidgetKind
    defaultValue: Any = ""

    def default_value(self) -> Any:
        """Fresh copy of the default value so list defaults are never shared"""
        return deepcopy(self.defaultValue)


RAW_TYPE_CATEGORIES: Dict[str, FieldCategory] = {
    "singleLineText": FieldCategory.TEXT,
    "multilineText": FieldCategory.TEXT,
    "richText": FieldCategory.TEXT,
    "email": FieldCategory.TEXT,
    "url": FieldCategory.TEXT,
    "phoneNumber": FieldCategory.TEXT,
    "number": FieldCategory.NUMBER,
    "currency": FieldCategory.NUMBER,
    "percent": FieldCategory.NUMBER,
    "date": FieldCategory.DATE,
    "dateTime": FieldCategory.DATE,
    "singleSelect": FieldCategory.SINGLE_CHOICE,
    "multipleSelects": FieldCategory.MULTI_CHOICE,
    "multipleSelect": FieldCategory.MULTI_CHOICE,
    "singleRecordLink": FieldCategory.SINGLE_LINK,
    "multipleRecordLinks": FieldCategory.MULTI_LINK,
    "formula": FieldCategory.COMPUTED_FORMULA,
    "rollup": FieldCategory.COMPUTED_ROLLUP,
    "button": FieldCategory.ACTION,
}

CATEGORY_INFO: Dict[FieldCategory, FieldTypeInfo] = {
    FieldCategory.TEXT: FieldTypeInfo(FieldCategory.TEXT, False, False, False, True, WidgetKind.TEXT),
    FieldCategory.NUMBER: FieldTypeInfo(FieldCategory.NUMBER, False, False, False, True, WidgetKind.NUMBER, None),
    FieldCategory.DATE: FieldTypeInfo(FieldCategory.DATE, False, False, False, True, WidgetKind.DATE),
    FieldCategory.SINGLE_CHOICE: FieldTypeInfo(
        FieldCategory.SINGLE_CHOICE, False, False, False, True, WidgetKind.SELECT),
    FieldCategory.MULTI_CHOICE: FieldTypeInfo(
        FieldCategory.MULTI_CHOICE, False, True, False, True, WidgetKind.MULTISELECT, []),
    FieldCategory.SINGLE_LINK: FieldTypeInfo(
        FieldCategory.SINGLE_LINK, False, False, True, True, WidgetKind.RECORD_SELECT),
    FieldCategory.MULTI_LINK: FieldTypeInfo(
        FieldCategory.MULTI_LINK, False, True, True, True, WidgetKind.RECORD_MULTISELECT, []),
    FieldCategory.COMPUTED_FORMULA: FieldTypeInfo(
        FieldCategory.COMPUTED_FORMULA, True, False, False, False, WidgetKind.INFO, None),
    FieldCategory.COMPUTED_ROLLUP: FieldTypeInfo(
        FieldCategory.COMPUTED_ROLLUP, True, False, False, False, WidgetKind.INFO, None),
    # buttons render but never submit a value
    FieldCategory.ACTION: FieldTypeInfo(FieldCategory.ACTION, False, False, False, False, WidgetKind.BUTTON),
}

COMPUTED_CATEGORIES = frozenset(c for c, info in CATEGORY_INFO.items() if info.isComputed)
NUMERIC_CATEGORIES = frozenset({FieldCategory.NUMBER})
LINK_CATEGORIES = frozenset({FieldCategory.SINGLE_LINK, FieldCategory.MULTI_LINK})


def classify(raw_type: str) -> FieldTypeInfo:
    """Classify an upstream type name. Unknown types are plain text."""
    category = RAW_TYPE_CATEGORIES.get(raw_type, FieldCategory.TEXT)
    return CATEGORY_INFO[category]


def info_for(category: FieldCategory) -> FieldTypeInfo:
    return CATEGORY_INFO[FieldCategory(category)]


def is_computed(spec) -> bool:
    return spec.category in COMPUTED_CATEGORIES


def partition(specs: Iterable) -> Tuple[List, List]:
    """Split specs into (input fields, information fields), keeping order"""
    inputs, information = [], []
    for spec in specs:
        (information if is_computed(spec) else inputs).append(spec)
    return inputs, information


def humanize_type(raw_type: str) -> str:
    """'singleLineText' -> 'Single line text'"""
    words = "".join(f" {c}" if c.isupper() else c for c in raw_type).lower().strip()
    return words[:1].upper() + words[1:]
