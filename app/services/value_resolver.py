"""
Preview / Value Resolver
Turns fetched records into the values shown for computed (formula / rollup)
fields, with linked record ids replaced by readable names.
"""
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

from app.models.field_spec import FieldSpec, FormulaOptions, RollupOptions
from app.models.field_types import FieldCategory
from app.models.record import Record
from app.utils.helpers import is_empty


class InformationItem(BaseModel):
    fieldId: str
    label: str
    formula: Optional[str] = None
    values: List[Any] = Field(default_factory=list)
    display: List[str] = Field(default_factory=list)


def build_record_display_index(records: Iterable[Record]) -> Dict[str, str]:
    """record id -> first non-empty field value of the record"""
    index: Dict[str, str] = {}
    for record in records:
        for value in record.fields.values():
            if not is_empty(value):
                index[record.id] = format_value(value)
                break
    return index


def _lookup(value: Any, index: Dict[str, str]) -> Any:
    if isinstance(value, str):
        return index.get(value, value)
    return value


def resolve_value(value: Any, index: Dict[str, str]) -> Any:
    if isinstance(value, list):
        return [_lookup(element, index) for element in value]
    return _lookup(value, index)


def resolve_computed_values(spec: FieldSpec, records: Sequence[Record],
                            index: Optional[Dict[str, str]] = None) -> List[Any]:
    """The last ``spec.previewCount`` non-null values of the field, oldest first"""
    index = index or {}
    values = [record.fields.get(spec.name) for record in records]
    values = [value for value in values if value is not None]
    shown = values[-max(spec.previewCount, 1):]
    return [resolve_value(value, index) for value in shown]


def formula_text(spec: FieldSpec) -> Optional[str]:
    if spec.category == FieldCategory.COMPUTED_FORMULA and isinstance(spec.options, FormulaOptions):
        return spec.options.formula
    if spec.category == FieldCategory.COMPUTED_ROLLUP and isinstance(spec.options, RollupOptions):
        return f"Rollup({', '.join(spec.options.fields)} => {spec.options.function})"
    return None


def format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(format_value(element) for element in value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def information_item(spec: FieldSpec, records: Sequence[Record],
                     index: Optional[Dict[str, str]] = None) -> InformationItem:
    values = resolve_computed_values(spec, records, index)
    return InformationItem(
        fieldId=spec.id,
        label=spec.label,
        formula=formula_text(spec) if spec.showFormula else None,
        values=values,
        display=[format_value(value) for value in values],
    )
