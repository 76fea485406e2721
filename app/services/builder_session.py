"""
Builder Session
Holds one user's in-progress form against one table and runs the builder
operations that need I/O (schema load, upstream renames, record preview,
publish). Spec mutations are serialised; results of fetches that were started
for a different table are discarded on arrival.
"""
import asyncio
import logging
from typing import List, Optional, Sequence

from app.models.field_spec import FieldSpec, FieldSpecUpdate, TableSchema
from app.models.form import FormDefinition
from app.models.record import Record
from app.models.session import SessionContext
from app.services import builder_engine
from app.services.field_registry import partition
from app.services.form_store import new_definition
from app.services.value_resolver import InformationItem, information_item
from app.utils.errors import FormEngineError, OperationInProgress

logger = logging.getLogger(__name__)

TABLE_RENAME_KEY = "__table__"


class BuilderSession:

    def __init__(self, context: SessionContext, schema_source, record_source=None):
        self.context = context
        self.schema_source = schema_source
        self.record_source = record_source if record_source is not None else schema_source
        self.table: Optional[TableSchema] = None
        self.fields: List[FieldSpec] = []
        self.title: Optional[str] = None
        self.records: List[Record] = []
        self._generation = 0
        self._loads = 0
        self._lock = asyncio.Lock()
        self._renaming = set()

    # ─── Views ──────────────────────────────────────────────────────────

    @property
    def table_name(self) -> Optional[str]:
        return self.table.name if self.table else None

    @property
    def input_fields(self) -> List[FieldSpec]:
        return partition(self.fields)[0]

    @property
    def information_fields(self) -> List[FieldSpec]:
        return partition(self.fields)[1]

    def _require_table(self) -> TableSchema:
        if self.table is None:
            raise FormEngineError("No table loaded")
        return self.table

    # ─── Schema ─────────────────────────────────────────────────────────

    async def load(self, table_name: str, existing: Sequence[FieldSpec] = (),
                   title: Optional[str] = None) -> List[FieldSpec]:
        """Fetch the table schema and merge it with the prior configuration.

        Only the most recently started load is applied; an older one that
        arrives later is discarded.
        """
        self._loads += 1
        ticket = self._loads
        schema = await self.schema_source.get_schema(table_name)
        async with self._lock:
            if ticket != self._loads:
                logger.info("Discarding schema of %s: a newer load was started", table_name)
                return self.fields
            if self.table is None or self.table.id != schema.id:
                self._generation += 1
                self.records = []
                prior = list(existing)
            else:
                prior = list(existing) or self.fields
            self.table = schema
            self.fields = builder_engine.initialize(schema.fields, prior)
            if title:
                self.title = title
            elif not self.title:
                self.title = builder_engine.suggest_title(schema.name)
        return self.fields

    # ─── Pure edits ─────────────────────────────────────────────────────

    def reorder(self, from_index: int, to_index: int) -> List[FieldSpec]:
        self.fields = builder_engine.reorder(self.fields, from_index, to_index)
        return self.fields

    def move(self, field_id: str, direction: str) -> List[FieldSpec]:
        self.fields = builder_engine.move_field(self.fields, field_id, direction)
        return self.fields

    def set_field(self, field_id: str, update: FieldSpecUpdate) -> List[FieldSpec]:
        self.fields = builder_engine.set_field(self.fields, field_id, update)
        return self.fields

    # ─── Upstream renames ───────────────────────────────────────────────

    def _begin_rename(self, key: str) -> None:
        if key in self._renaming:
            raise OperationInProgress("A rename is already in progress for this field")
        self._renaming.add(key)

    async def rename_field(self, field_id: str, new_name: str) -> List[FieldSpec]:
        """Rename a field upstream. Local state only changes once the upstream call succeeded."""
        table = self._require_table()
        builder_engine.get_field(self.fields, field_id)
        self._begin_rename(field_id)
        generation = self._generation
        try:
            await self.schema_source.rename_field(table.id, field_id, new_name)
        finally:
            self._renaming.discard(field_id)

        async with self._lock:
            if generation != self._generation:
                logger.info("Discarding rename of %s: table changed while it was in flight", field_id)
                return self.fields
            self.fields = builder_engine.apply_field_rename(self.fields, field_id, new_name)
        return self.fields

    async def rename_table(self, new_name: str) -> TableSchema:
        table = self._require_table()
        self._begin_rename(TABLE_RENAME_KEY)
        generation = self._generation
        try:
            renamed = await self.schema_source.rename_table(table.id, new_name)
        finally:
            self._renaming.discard(TABLE_RENAME_KEY)

        async with self._lock:
            if generation != self._generation:
                logger.info("Discarding rename of table %s: table changed while it was in flight", table.id)
                return self.table
            old_name = self.table.name
            self.table = self.table.model_copy(update={"name": renamed["name"]})
            self.title = builder_engine.apply_table_rename(self.title, old_name, self.table.name)
        return self.table

    # ─── Preview ────────────────────────────────────────────────────────

    async def refresh_records(self) -> Optional[List[Record]]:
        """Fetch the table's records for the preview. None when the result went stale."""
        table = self._require_table()
        generation = self._generation
        records = await self.record_source.list_records(table.name)
        if generation != self._generation:
            logger.info("Discarding records of %s: table changed while they were fetched", table.name)
            return None
        self.records = records
        return records

    def preview(self) -> List[InformationItem]:
        """Information fields as the builder shows them, included or not"""
        return [information_item(spec, self.records) for spec in self.information_fields]

    # ─── Publish ────────────────────────────────────────────────────────

    async def publish(self, store, title: Optional[str] = None) -> FormDefinition:
        table = self._require_table()
        if not self.context.is_authenticated:
            raise FormEngineError("Publishing requires a signed-in user")
        definition = new_definition(self.context, table.name, title or self.title,
                                    self.fields, table_id=table.id)
        await store.create(definition)
        return definition
