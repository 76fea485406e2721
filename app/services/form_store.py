"""
Form Store
Published form definitions in MongoDB, keyed by (ownerId, formId).
Definitions are stored in their JSON form so every FieldSpec reads back
exactly as it was written.
"""
import logging
import uuid
from typing import List, Optional

from app.config.database import Collections
from app.config.settings import settings
from app.database.db_operations import db_ops
from app.models.field_spec import FieldSpec
from app.models.form import FormDefinition, FormResponse, FormSummary, TableRef
from app.models.session import SessionContext
from app.utils.errors import NotFound
from app.utils.helpers import utc_now

logger = logging.getLogger(__name__)

FORM_NOT_FOUND = "Form not found"


def public_url(owner_id: str, form_id: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/{owner_id}/{form_id}"


def new_definition(context: SessionContext, table_name: str, title: str,
                   fields: List[FieldSpec], table_id: Optional[str] = None) -> FormDefinition:
    return FormDefinition(
        formId=str(uuid.uuid4()),
        ownerId=context.owner_id,
        source=TableRef(connection=context.connection, tableName=table_name, tableId=table_id),
        title=title,
        fields=list(fields),
        createdAt=utc_now(),
        isActive=True,
    )


def to_response(definition: FormDefinition) -> FormResponse:
    return FormResponse(
        formId=definition.formId,
        ownerId=definition.ownerId,
        title=definition.title,
        tableName=definition.source.tableName,
        tableId=definition.source.tableId,
        baseId=definition.source.connection.baseId,
        fields=definition.fields,
        createdAt=definition.createdAt,
        isActive=definition.isActive,
        url=public_url(definition.ownerId, definition.formId),
    )


def to_summary(definition: FormDefinition) -> FormSummary:
    return FormSummary(
        formId=definition.formId,
        title=definition.title,
        tableName=definition.source.tableName,
        createdAt=definition.createdAt,
        isActive=definition.isActive,
        fieldsCount=len([f for f in definition.fields if f.include]),
        url=public_url(definition.ownerId, definition.formId),
    )


class FormStore:
    """Key-value access to published forms"""

    collection = Collections.FORMS

    @staticmethod
    def _key(owner_id: str, form_id: str) -> dict:
        return {"ownerId": owner_id, "formId": form_id}

    @staticmethod
    def _from_doc(doc: dict) -> FormDefinition:
        return FormDefinition.model_validate(doc)

    async def create(self, definition: FormDefinition) -> str:
        document = definition.model_dump(mode="json")
        await db_ops.create(self.collection, document)
        logger.info("Published form %s for %s (%s)", definition.formId, definition.ownerId,
                    definition.source.tableName)
        return definition.formId

    async def get(self, owner_id: str, form_id: str) -> FormDefinition:
        doc = await db_ops.get_one(self.collection, self._key(owner_id, form_id))
        if not doc:
            raise NotFound(FORM_NOT_FOUND)
        return self._from_doc(doc)

    async def list(self, owner_id: str) -> List[FormDefinition]:
        docs = await db_ops.get_all(self.collection, {"ownerId": owner_id}, limit=1000,
                                    sort=[("createdAt", -1)])
        return [self._from_doc(doc) for doc in docs]

    async def delete(self, owner_id: str, form_id: str) -> None:
        deleted = await db_ops.delete_one(self.collection, self._key(owner_id, form_id))
        if not deleted:
            raise NotFound(FORM_NOT_FOUND)
        logger.info("Deleted form %s for %s", form_id, owner_id)

    async def set_active(self, owner_id: str, form_id: str, is_active: bool) -> FormDefinition:
        doc = await db_ops.update_one(self.collection, self._key(owner_id, form_id), {"isActive": is_active})
        if not doc:
            raise NotFound(FORM_NOT_FOUND)
        return self._from_doc(doc)

    async def count_for_table(self, owner_id: str, table_name: str) -> int:
        return await db_ops.count(self.collection, {"ownerId": owner_id, "source.tableName": table_name})

form_store = FormStore()
