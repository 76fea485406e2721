"""
Public Form Service
Assembles what a published form needs from upstream: linked record sets for
the record pickers and the display index (fetched concurrently) and the base
table's records for the information panel.
"""
import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from app.models.field_spec import FieldSpec, LinkOptions, TableSchema
from app.models.form import FormDefinition, PublicFormView
from app.models.record import Record
from app.models.session import SessionContext
from app.services.field_registry import LINK_CATEGORIES
from app.services.runner_engine import LinkOption, RunnerEngine
from app.services.value_resolver import InformationItem, build_record_display_index

logger = logging.getLogger(__name__)


async def gather_all(*aws):
    """Run every awaitable to completion, then raise the first failure if any"""
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


def context_for(definition: FormDefinition) -> SessionContext:
    """Anonymous visitors act with the owner's stored connection"""
    return SessionContext(connection=definition.source.connection, owner_id=definition.ownerId)


class PublicFormService:

    def __init__(self, source):
        self.source = source

    async def linked_records(self, fields: List[FieldSpec], schema: Optional[TableSchema]) -> Dict[str, List[Record]]:
        """field id -> records of the table the field links to.

        Hidden link fields are fetched too: rollups over them still need the
        display index. Only included fields get a record picker.
        """
        link_fields = [f for f in fields if f.category in LINK_CATEGORIES]
        if not link_fields or schema is None:
            return {}

        table_names = {}
        for spec in link_fields:
            linked_id = spec.options.linkedTableId if isinstance(spec.options, LinkOptions) else None
            table_names[spec.id] = schema.linked_table_name(linked_id)

        unique = sorted({name for name in table_names.values() if name})
        results = await gather_all(*(self.source.list_records(name) for name in unique))
        by_table = dict(zip(unique, results))
        return {field_id: by_table.get(name, []) for field_id, name in table_names.items()}

    async def _load(self, definition: FormDefinition) -> Tuple[Dict[str, List[Record]], List[Record]]:
        schema, records = await gather_all(
            self.source.get_schema(definition.source.tableName),
            self.source.list_records(definition.source.tableName),
        )
        linked = await self.linked_records(definition.fields, schema)
        return linked, records

    @staticmethod
    def _index(linked: Dict[str, List[Record]]) -> Dict[str, str]:
        return build_record_display_index(r for records in linked.values() for r in records)

    async def render(self, definition: FormDefinition) -> PublicFormView:
        linked, records = await self._load(definition)
        index = self._index(linked)
        engine = RunnerEngine(definition.fields, context_for(definition))
        link_options = {
            field_id: [LinkOption(id=r.id, label=index.get(r.id, "")) for r in recs]
            for field_id, recs in linked.items()
        }
        return PublicFormView(
            formId=definition.formId,
            title=definition.title,
            tableName=definition.source.tableName,
            widgets=engine.widgets(link_options),
            information=engine.information_panel(records, index),
        )

    async def information(self, definition: FormDefinition) -> List[InformationItem]:
        linked, records = await self._load(definition)
        engine = RunnerEngine(definition.fields, context_for(definition))
        return engine.information_panel(records, self._index(linked))

    async def submit(self, definition: FormDefinition, values: Dict) -> Record:
        engine = RunnerEngine(definition.fields, context_for(definition))
        known = {k: v for k, v in values.items() if k in engine.values}
        ignored = set(values) - set(known)
        if ignored:
            logger.debug("Ignoring values for non-input fields: %s", ", ".join(sorted(ignored)))
        engine.set_values(known)
        return await engine.submit(self.source, definition.source.tableName)
