"""
Runner Engine
Renders a published FieldSpec sequence as inputs, validates and coerces the
user's values and submits them as a new upstream record.

One engine instance covers one form being filled in. It moves through
Idle -> Validating -> Submitting -> Succeeded | Failed and accepts a new
submission from any settled state, so the same form can be used for rapid
repeated entry.
"""
import logging
from copy import deepcopy
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from app.models.field_spec import ActionOptions, Choice, ChoiceOptions, FieldSpec
from app.models.field_types import FieldCategory, WidgetKind
from app.models.record import Record
from app.models.session import SessionContext
from app.services.field_registry import NUMERIC_CATEGORIES, info_for, is_computed
from app.services.value_resolver import InformationItem, information_item
from app.utils.errors import FieldError, FieldNotFound, OperationInProgress, ValidationFailed
from app.utils.helpers import is_empty, parse_number, split_delimited

logger = logging.getLogger(__name__)


class RunnerState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class LinkOption(BaseModel):
    id: str
    label: str = ""


class InputWidget(BaseModel):
    fieldId: str
    label: str
    widget: WidgetKind
    placeholder: str = ""
    required: bool = False
    defaultValue: Any = None
    choices: List[Choice] = Field(default_factory=list)
    records: List[LinkOption] = Field(default_factory=list)
    buttonText: Optional[str] = None
    buttonColor: Optional[str] = None
    url: Optional[str] = None


class RunnerEngine:
    """Fill-in state for one published form"""

    def __init__(self, fields: Sequence[FieldSpec], context: Optional[SessionContext] = None):
        self.fields = tuple(fields)
        self.context = context
        self.state = RunnerState.IDLE
        self.errors: List[FieldError] = []
        self.values: Dict[str, Any] = self.default_values()

    @property
    def input_fields(self) -> List[FieldSpec]:
        return [f for f in self.fields if f.include and not is_computed(f)]

    @property
    def information_fields(self) -> List[FieldSpec]:
        return [f for f in self.fields if f.include and is_computed(f)]

    @property
    def submittable_fields(self) -> List[FieldSpec]:
        return [f for f in self.input_fields if info_for(f.category).isEditable]

    def default_values(self) -> Dict[str, Any]:
        return {f.id: deepcopy(f.defaultValue) for f in self.submittable_fields}

    # ─── Values ─────────────────────────────────────────────────────────

    def set_value(self, field_id: str, value: Any) -> None:
        if field_id not in self.values:
            raise FieldNotFound(field_id)
        self.values[field_id] = value

    def set_values(self, values: Dict[str, Any]) -> None:
        for field_id, value in values.items():
            self.set_value(field_id, value)

    def reset(self) -> None:
        self.values = self.default_values()
        self.errors = []

    # ─── Rendering ──────────────────────────────────────────────────────

    def widgets(self, link_options: Optional[Dict[str, List[LinkOption]]] = None) -> List[InputWidget]:
        """One input per included, non-computed field, in form order"""
        link_options = link_options or {}
        widgets = []
        for spec in self.input_fields:
            info = info_for(spec.category)
            widget = InputWidget(
                fieldId=spec.id,
                label=spec.label,
                widget=info.widget,
                placeholder=spec.placeholder,
                required=spec.required,
                defaultValue=self.values.get(spec.id, spec.defaultValue),
            )
            if isinstance(spec.options, ChoiceOptions):
                widget.choices = list(spec.options.choices)
            if info.acceptsLinking:
                widget.records = list(link_options.get(spec.id, []))
            if spec.category == FieldCategory.ACTION:
                # button text comes from the default, its colour from the placeholder
                widget.buttonText = spec.defaultValue or spec.label
                widget.buttonColor = spec.placeholder or None
                if isinstance(spec.options, ActionOptions):
                    widget.url = spec.options.url
            widgets.append(widget)
        return widgets

    def information_panel(self, records: Sequence[Record],
                          index: Optional[Dict[str, str]] = None) -> List[InformationItem]:
        """Computed values over the full record set passed in, never a cached snapshot"""
        return [information_item(spec, records, index) for spec in self.information_fields]

    # ─── Validation & coercion ──────────────────────────────────────────

    def validate(self, values: Optional[Dict[str, Any]] = None) -> List[FieldError]:
        """Every required field left empty, all reported together"""
        values = self.values if values is None else values
        return [
            FieldError(fieldId=spec.id, label=spec.label, message=f"{spec.label} is required")
            for spec in self.submittable_fields
            if spec.required and is_empty(values.get(spec.id))
        ]

    def build_payload(self, values: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Coerce values per category and drop everything empty.

        A number that does not parse is left out of the payload instead of
        failing the whole submission.
        """
        values = self.values if values is None else values
        payload: Dict[str, Any] = {}
        for spec in self.submittable_fields:
            value = values.get(spec.id)

            if spec.category == FieldCategory.MULTI_LINK and isinstance(value, str):
                value = split_delimited(value)

            if spec.category in NUMERIC_CATEGORIES and not is_empty(value):
                number = parse_number(value)
                if number is None:
                    logger.info("Coercion skipped: %s (%s) value %r is not a number",
                                spec.label, spec.id, value)
                    continue
                value = number

            if is_empty(value):
                continue
            payload[spec.id] = value
        return payload

    # ─── Submission ─────────────────────────────────────────────────────

    async def submit(self, record_source, table_name: str) -> Record:
        """Validate, build the payload and create the record upstream.

        On success the inputs are re-armed with their defaults; on failure the
        entered values are kept for correction and the error is re-raised.
        """
        if self.state in (RunnerState.VALIDATING, RunnerState.SUBMITTING):
            raise OperationInProgress("A submission is already in progress")

        self.state = RunnerState.VALIDATING
        self.errors = self.validate()
        if self.errors:
            self.state = RunnerState.IDLE
            raise ValidationFailed(self.errors)

        payload = self.build_payload()
        self.state = RunnerState.SUBMITTING
        try:
            record = await record_source.create_record(table_name, payload)
        except Exception:
            self.state = RunnerState.FAILED
            raise

        logger.info("Record %s created in %s", record.id, table_name)
        self.state = RunnerState.SUCCEEDED
        self.reset()
        return record
