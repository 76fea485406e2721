import pytest
from unittest.mock import AsyncMock, MagicMock

from app.models.field_spec import FieldSpec, RawField
from app.models.field_types import WidgetKind
from app.models.record import Record
from app.services.builder_engine import initialize, set_field
from app.services.runner_engine import LinkOption, RunnerEngine, RunnerState
from app.utils.errors import FieldNotFound, UpstreamUnavailable, ValidationFailed


@pytest.fixture
def example_specs():
    raw = [
        RawField.from_source({"id": "f1", "name": "Email", "type": "singleLineText"}),
        RawField.from_source({"id": "f2", "name": "Score", "type": "number"}),
    ]
    specs = initialize(raw)
    specs = set_field(specs, "f1", {"include": True, "required": True})
    specs = set_field(specs, "f2", {"include": True, "defaultValue": 0})
    return specs


@pytest.fixture
def record_source():
    source = MagicMock()
    source.create_record = AsyncMock(side_effect=lambda table, fields: Record(id="recNew", fields=fields))
    return source


def test_example_payload(example_specs):
    engine = RunnerEngine(example_specs)
    assert engine.build_payload({"f1": "a@b.com", "f2": "42"}) == {"f1": "a@b.com", "f2": 42}


def test_example_required_empty(example_specs):
    engine = RunnerEngine(example_specs)
    errors = engine.validate({"f1": "", "f2": "42"})
    assert [e.fieldId for e in errors] == ["f1"]
    assert errors[0].message == "Email is required"


def test_all_failing_fields_reported_together(specs):
    specs = set_field(specs, "fld1", {"include": True, "required": True})
    specs = set_field(specs, "fld3", {"include": True, "required": True})
    specs = set_field(specs, "fld5", {"include": True, "required": True})
    engine = RunnerEngine(specs)
    errors = engine.validate({"fld1": "", "fld3": None, "fld5": []})
    assert [e.fieldId for e in errors] == ["fld1", "fld3", "fld5"]


def test_bad_number_dropped_others_kept(example_specs):
    engine = RunnerEngine(example_specs)
    assert engine.build_payload({"f1": "a@b.com", "f2": "abc"}) == {"f1": "a@b.com"}


def test_number_parsing(example_specs):
    engine = RunnerEngine(example_specs)
    assert engine.build_payload({"f1": "x", "f2": "4.5"})["f2"] == 4.5
    assert engine.build_payload({"f1": "x", "f2": 7})["f2"] == 7
    assert "f2" not in engine.build_payload({"f1": "x", "f2": ""})


def test_multi_link_string_is_split(specs):
    specs = set_field(specs, "fld5", {"include": True})
    engine = RunnerEngine(specs)
    assert engine.build_payload({"fld5": " recA, ,recB "}) == {"fld5": ["recA", "recB"]}
    assert engine.build_payload({"fld5": ["recC"]}) == {"fld5": ["recC"]}
    assert engine.build_payload({"fld5": ""}) == {}


def test_excluded_and_computed_fields_never_in_payload(specs):
    specs = set_field(specs, "fld1", {"include": True})
    specs = set_field(specs, "fld4", {"include": True})
    engine = RunnerEngine(specs)
    payload = engine.build_payload({"fld1": "hi", "fld2": "5", "fld4": "x"})
    assert payload == {"fld1": "hi"}


def test_widgets_for_included_input_fields(specs):
    specs = set_field(specs, "fld3", {"include": True, "defaultValue": "Open"})
    specs = set_field(specs, "fld5", {"include": True})
    specs = set_field(specs, "fld4", {"include": True})
    engine = RunnerEngine(specs)
    widgets = engine.widgets({"fld5": [LinkOption(id="recA", label="Alice")]})

    assert [w.fieldId for w in widgets] == ["fld3", "fld5"]
    select, links = widgets
    assert select.widget == WidgetKind.SELECT
    assert select.defaultValue == "sel1"
    assert [c.name for c in select.choices] == ["Open", "Closed"]
    assert links.widget == WidgetKind.RECORD_MULTISELECT
    assert links.records == [LinkOption(id="recA", label="Alice")]


def test_action_button_renders_but_never_submits():
    raw = [RawField.from_source({"id": "b1", "name": "Go", "type": "button", "options": {"url": "https://x"}})]
    specs = set_field(initialize(raw), "b1", {"include": True, "placeholder": "#ff0000"})
    engine = RunnerEngine(specs)
    [button] = engine.widgets()
    assert button.widget == WidgetKind.BUTTON
    assert button.buttonText == "Go"
    assert button.buttonColor == "#ff0000"
    assert engine.build_payload({"b1": "clicked"}) == {}
    with pytest.raises(FieldNotFound):
        engine.set_value("b1", "clicked")


def test_information_panel_uses_latest_records(specs):
    specs = set_field(specs, "fld4", {"include": True})
    engine = RunnerEngine(specs)
    first = engine.information_panel([Record(id="r1", fields={"Total": 1})])
    later = engine.information_panel([Record(id="r1", fields={"Total": 1}), Record(id="r2", fields={"Total": 2})])
    assert first[0].values == [1]
    assert later[0].values == [2]


@pytest.mark.asyncio
async def test_submit_success_resets_to_defaults(example_specs, record_source):
    engine = RunnerEngine(example_specs)
    engine.set_values({"f1": "a@b.com", "f2": "42"})

    record = await engine.submit(record_source, "Orders")

    record_source.create_record.assert_awaited_once_with("Orders", {"f1": "a@b.com", "f2": 42})
    assert record.id == "recNew"
    assert engine.state == RunnerState.SUCCEEDED
    assert engine.values == {"f1": "", "f2": 0}


@pytest.mark.asyncio
async def test_submit_validation_failure_makes_no_call(example_specs, record_source):
    engine = RunnerEngine(example_specs)
    engine.set_values({"f1": "", "f2": "42"})

    with pytest.raises(ValidationFailed) as exc:
        await engine.submit(record_source, "Orders")

    assert exc.value.field_ids == ["f1"]
    record_source.create_record.assert_not_called()
    assert engine.state == RunnerState.IDLE
    assert engine.values["f2"] == "42"


@pytest.mark.asyncio
async def test_submit_failure_keeps_values(example_specs, record_source):
    record_source.create_record = AsyncMock(side_effect=UpstreamUnavailable("Airtable is down"))
    engine = RunnerEngine(example_specs)
    engine.set_values({"f1": "a@b.com", "f2": "42"})

    with pytest.raises(UpstreamUnavailable):
        await engine.submit(record_source, "Orders")

    assert engine.state == RunnerState.FAILED
    assert engine.values == {"f1": "a@b.com", "f2": "42"}


def test_set_value_unknown_field(example_specs):
    with pytest.raises(FieldNotFound):
        RunnerEngine(example_specs).set_value("zzz", 1)


def test_forged_category_never_collects_input():
    spec = FieldSpec(id="f1", name="Total", type="formula", category="text", include=True)
    engine = RunnerEngine([spec])
    assert engine.input_fields == []
    assert [f.id for f in engine.information_fields] == ["f1"]
    assert engine.build_payload({"f1": "overwrite"}) == {}
