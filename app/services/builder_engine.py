"""
Builder Engine
Pure operations over the ordered FieldSpec sequence. Every operation returns a
new list and leaves its input untouched; specs themselves are frozen models.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from app.config.settings import settings
from app.models.field_spec import ChoiceOptions, FieldSpec, FieldSpecUpdate, RawField
from app.models.field_types import FieldCategory
from app.services.field_registry import NUMERIC_CATEGORIES, classify, info_for, is_computed
from app.utils.errors import FieldNotFound, IndexOutOfRange
from app.utils.helpers import is_empty, parse_number, split_delimited

logger = logging.getLogger(__name__)

EDITABLE_SETTINGS = frozenset(FieldSpecUpdate.model_fields)

UP = "up"
DOWN = "down"


def index_of(specs: Sequence[FieldSpec], field_id: str) -> int:
    for index, spec in enumerate(specs):
        if spec.id == field_id:
            return index
    raise FieldNotFound(field_id)


def get_field(specs: Sequence[FieldSpec], field_id: str) -> FieldSpec:
    return specs[index_of(specs, field_id)]


def _has_custom_label(spec: FieldSpec) -> bool:
    return spec.label != spec.name


# ─── Initialize ─────────────────────────────────────────────────────────────

def refresh_from_raw(spec: FieldSpec, raw: RawField) -> FieldSpec:
    """Pull the latest descriptive attributes from the schema, keep the settings"""
    info = classify(raw.type)
    update: Dict[str, Any] = {"name": raw.name, "type": raw.type, "options": raw.options}
    if not _has_custom_label(spec):
        update["label"] = raw.name
    if info.category != spec.category:
        # the old default has the wrong shape for the new type
        update["category"] = info.category
        update["defaultValue"] = info.default_value()
    return spec.model_copy(update=update)


def initialize(raw_fields: Sequence[RawField], existing_specs: Sequence[FieldSpec] = ()) -> List[FieldSpec]:
    """Merge the latest schema with a prior configuration.

    Known fields keep their position and settings, fields removed upstream are
    dropped and new fields are appended with registry defaults (excluded).
    Running it again on its own output gives the same sequence.
    """
    raw_by_id = {raw.id: raw for raw in raw_fields}
    seen = set()
    specs: List[FieldSpec] = []

    for spec in existing_specs:
        raw = raw_by_id.get(spec.id)
        if raw is None:
            logger.info("Dropping field %s (%s): no longer in the schema", spec.id, spec.name)
            continue
        if spec.id in seen:
            continue
        seen.add(spec.id)
        specs.append(refresh_from_raw(spec, raw))

    for raw in raw_fields:
        if raw.id in seen:
            continue
        seen.add(raw.id)
        specs.append(FieldSpec.from_raw(raw))

    return specs


# ─── Ordering ───────────────────────────────────────────────────────────────

def reorder(specs: Sequence[FieldSpec], from_index: int, to_index: int) -> List[FieldSpec]:
    """Move exactly one spec. Indexes are never clamped."""
    length = len(specs)
    for index in (from_index, to_index):
        if not 0 <= index < length:
            raise IndexOutOfRange(index, length)
    reordered = list(specs)
    reordered.insert(to_index, reordered.pop(from_index))
    return reordered


def _section_positions(specs: Sequence[FieldSpec], spec: FieldSpec) -> List[int]:
    """Positions of the specs that share a section (input / information) with spec"""
    computed = is_computed(spec)
    return [i for i, other in enumerate(specs) if is_computed(other) == computed]


def can_move(specs: Sequence[FieldSpec], field_id: str, direction: str) -> bool:
    index = index_of(specs, field_id)
    positions = _section_positions(specs, specs[index])
    slot = positions.index(index)
    if direction == UP:
        return slot > 0
    if direction == DOWN:
        return slot < len(positions) - 1
    raise ValueError(f"Unknown direction: {direction}")


def move_field(specs: Sequence[FieldSpec], field_id: str, direction: str) -> List[FieldSpec]:
    """Swap a spec with its neighbour inside its own section.

    A no-op at the top or bottom of the section; input fields and information
    fields never cross.
    """
    if not can_move(specs, field_id, direction):
        return list(specs)
    index = index_of(specs, field_id)
    positions = _section_positions(specs, specs[index])
    slot = positions.index(index)
    target = positions[slot - 1] if direction == UP else positions[slot + 1]

    moved = list(specs)
    moved[index], moved[target] = moved[target], moved[index]
    return moved


# ─── Settings ───────────────────────────────────────────────────────────────

def _choice_ids(options: ChoiceOptions, values: List[Any]) -> List[str]:
    resolved = []
    for value in values:
        choice_id = options.choice_id(str(value))
        if choice_id is None:
            raise ValueError(f"Unknown choice: {value}")
        resolved.append(choice_id)
    return resolved


def normalize_default(spec: FieldSpec, value: Any) -> Any:
    """Coerce a default into the shape the field's category expects.

    Choice defaults are stored as choice ids; a choice name is accepted and
    translated.
    """
    category = spec.category
    if value is None:
        return info_for(category).default_value()

    if category in NUMERIC_CATEGORIES:
        if is_empty(value):
            return None
        number = parse_number(value)
        if number is None:
            raise ValueError(f"Default for {spec.label} must be a number")
        return number

    if category == FieldCategory.SINGLE_CHOICE:
        if is_empty(value):
            return ""
        if not isinstance(spec.options, ChoiceOptions):
            return value
        return _choice_ids(spec.options, [value])[0]

    if category == FieldCategory.MULTI_CHOICE:
        values = [value] if isinstance(value, str) else list(value)
        values = [v for v in values if not is_empty(v)]
        if not isinstance(spec.options, ChoiceOptions):
            return values
        return _choice_ids(spec.options, values)

    if category == FieldCategory.MULTI_LINK:
        return split_delimited(value) if isinstance(value, str) else list(value)

    return value


def set_field(specs: Sequence[FieldSpec], field_id: str,
              update: Union[FieldSpecUpdate, Dict[str, Any]]) -> List[FieldSpec]:
    """Apply a partial settings update to one spec.

    Settings edited while a field is excluded (ghost defaults) survive later
    include toggles.
    """
    index = index_of(specs, field_id)
    spec = specs[index]

    if isinstance(update, FieldSpecUpdate):
        changes = update.model_dump(exclude_unset=True)
    else:
        changes = dict(update)
    unknown = set(changes) - EDITABLE_SETTINGS
    if unknown:
        raise ValueError(f"Not editable: {', '.join(sorted(unknown))}")

    if "defaultValue" in changes:
        changes["defaultValue"] = normalize_default(spec, changes["defaultValue"])

    updated = FieldSpec.model_validate({**spec.model_dump(), **changes})
    result = list(specs)
    result[index] = updated
    return result


# ─── Rename bookkeeping ─────────────────────────────────────────────────────

def apply_field_rename(specs: Sequence[FieldSpec], field_id: str, new_name: str) -> List[FieldSpec]:
    """Record an upstream rename. A custom label always wins over the new name."""
    index = index_of(specs, field_id)
    spec = specs[index]
    update = {"name": new_name}
    if not _has_custom_label(spec):
        update["label"] = new_name
    result = list(specs)
    result[index] = spec.model_copy(update=update)
    return result


def suggest_title(table_name: str, existing_for_table: int = 0) -> str:
    """'Nebula Orders' for the first form on a table, then 'Orders 2', 'Orders 3', ..."""
    if existing_for_table == 0:
        return f"{settings.DEFAULT_TITLE_PREFIX} {table_name}"
    return f"{table_name} {existing_for_table + 1}"


def apply_table_rename(title: Optional[str], old_name: str, new_name: str) -> str:
    """Carry a generated title over to the renamed table. An edited title is kept."""
    if not title:
        return suggest_title(new_name)
    first = suggest_title(old_name)
    if title == first:
        return suggest_title(new_name)
    suffix = title[len(old_name):]
    if title.startswith(f"{old_name} ") and suffix.strip().isdigit():
        return f"{new_name}{suffix}"
    return title
