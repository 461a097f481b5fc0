"""Record source - routes read and write intents to the backend.

Each intent is resolved to table and column names, checked against the
access policy, sent to the backend as a single request and its result
transformed back into normalized records. Intents in a batch run one at a
time, in input order. There is no transaction around a batch: when an
intent fails, the ones before it stay applied, the rest are not run and
the error is raised with ``index`` and ``completed`` set. A hook failure
while reading several rows keeps the rows converted before it in
``completed``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from enum import Enum
from typing import Any

import structlog

from row_source.adapters.protocol import NOT_FOUND_CODE, Backend, BackendResponse
from row_source.core.connection import ConnectionConfig, load_backend
from row_source.core.conventions import Conventions
from row_source.core.enums import RelationshipKind
from row_source.core.exceptions import (
    BackendRequestError,
    RowSourceError,
    TransformError,
    UnknownRelationshipError,
    UnsupportedOperationError,
)
from row_source.core.policy import AccessPolicy
from row_source.core.settings import SourceSettings
from row_source.mapping.records import NormalizedRecord, RecordIdentity
from row_source.mapping.schema import RecordSchema, validate_settings
from row_source.mapping.transformer import RecordTransformer
from row_source.operations import (
    AddRecord,
    AddToRelatedRecords,
    FindRecord,
    FindRecords,
    QueryExpression,
    RecordOperation,
    RemoveFromRelatedRecords,
    RemoveRecord,
    ReplaceRelatedRecord,
    ReplaceRelatedRecords,
    UpdateRecord,
)

logger = structlog.get_logger("row_source.source")


class _DispatchState(Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    BACKEND_CALL = "backend_call"
    TRANSFORMING = "transforming"
    DONE = "done"
    FAILED = "failed"


class _Dispatch:
    """Tracks one intent through the dispatch states.

    Writes pass through TRANSFORMING twice: once to build the outgoing
    row, once to read back the stored one. A RowSource error leaving the
    block is tagged with the state it was raised in.
    """

    def __init__(
        self,
        source: str,
        operation: str,
        record_type: str,
        record_id: Any = None,
    ) -> None:
        self.operation = operation
        self.record_type = record_type
        self.record_id = record_id
        self.state = _DispatchState.IDLE
        self._log = logger.bind(
            source=source,
            operation=operation,
            record_type=record_type,
            record_id=record_id,
        )

    def advance(self, state: _DispatchState) -> None:
        self.state = state
        self._log.debug("dispatch.transition", state=state.value)

    def __enter__(self) -> _Dispatch:
        self.advance(_DispatchState.RESOLVING)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if exc_val is None:
            self.advance(_DispatchState.DONE)
            return
        if isinstance(exc_val, RowSourceError):
            if exc_val.stage is None:
                exc_val.stage = self.state.value
            if exc_val.operation is None:
                exc_val.operation = self.operation
            if exc_val.record_type is None:
                exc_val.record_type = self.record_type
            if exc_val.record_id is None:
                exc_val.record_id = self.record_id
            self._log.warning(
                "dispatch.failed",
                stage=exc_val.stage,
                error=type(exc_val).__name__,
            )
        self.state = _DispatchState.FAILED


def _as_list(items: Any) -> list[Any]:
    if isinstance(items, (list, tuple)):
        return list(items)
    return [items]


class RecordSource:
    """Maps normalized records onto backend tables.

    Args:
        backend: Collaborator performing the table requests.
        settings: Global and per-type settings. Defaults to
            ``SourceSettings()`` (which reads ``ROW_SOURCE_*`` variables).
        schema: Optional record schema; when given, the type map is
            validated against it once, here.
        subject_accessor: Returns the current subject; overrides
            ``settings.subject_accessor``.

    Raises:
        ConfigurationError: If the type map contradicts the schema.
    """

    def __init__(
        self,
        backend: Backend,
        settings: SourceSettings | None = None,
        *,
        schema: RecordSchema | None = None,
        subject_accessor: Callable[[], Any] | None = None,
    ) -> None:
        self._backend = backend
        self._settings = settings if settings is not None else SourceSettings()
        if schema is not None:
            validate_settings(self._settings, schema)
        self._conventions = Conventions(self._settings, schema)
        self._policy = AccessPolicy(
            self._conventions,
            subject_accessor or self._settings.subject_accessor,
        )
        self._transformer = RecordTransformer(self._conventions)

    @classmethod
    def from_config(
        cls,
        config: ConnectionConfig,
        settings: SourceSettings | None = None,
        *,
        schema: RecordSchema | None = None,
        subject_accessor: Callable[[], Any] | None = None,
    ) -> RecordSource:
        """Create a RecordSource over the bundled backend for ``config.driver``."""
        return cls(
            load_backend(config),
            settings,
            schema=schema,
            subject_accessor=subject_accessor,
        )

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def settings(self) -> SourceSettings:
        return self._settings

    @property
    def conventions(self) -> Conventions:
        return self._conventions

    @property
    def policy(self) -> AccessPolicy:
        return self._policy

    @property
    def transformer(self) -> RecordTransformer:
        return self._transformer

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    async def query(
        self,
        expressions: QueryExpression | Sequence[QueryExpression],
    ) -> list[NormalizedRecord]:
        """Run query intents in order and return their records, flattened."""
        results: list[NormalizedRecord] = []
        for index, expression in enumerate(_as_list(expressions)):
            try:
                results.extend(await self._query_expression(expression))
            except RowSourceError as e:
                e.index = index
                e.completed = results + e.completed
                raise
        return results

    async def perform(
        self,
        operations: RecordOperation | Sequence[RecordOperation],
    ) -> list[NormalizedRecord]:
        """Run write intents in order; returns the records created or updated."""
        results: list[NormalizedRecord] = []
        for index, operation in enumerate(_as_list(operations)):
            try:
                record = await self._perform_operation(operation)
            except RowSourceError as e:
                e.index = index
                e.completed = list(results)
                raise
            if record is not None:
                results.append(record)
        return results

    # ------------------------------------------------------------------
    # Single intents
    # ------------------------------------------------------------------

    async def find_all(self, record_type: str) -> list[NormalizedRecord]:
        return await self.query(FindRecords(record_type))

    async def find_one(self, record_type: str, record_id: Any) -> NormalizedRecord | None:
        results = await self.query(FindRecord(RecordIdentity(record_type, record_id)))
        return results[0] if results else None

    async def create(self, record: NormalizedRecord) -> NormalizedRecord:
        return (await self.perform(AddRecord(record)))[0]

    async def update(self, record: NormalizedRecord) -> NormalizedRecord:
        return (await self.perform(UpdateRecord(record)))[0]

    async def delete(self, identity: RecordIdentity) -> None:
        await self.perform(RemoveRecord(identity))

    async def set_one(
        self,
        owner: RecordIdentity,
        relationship: str,
        target: RecordIdentity | None,
    ) -> None:
        await self.perform(ReplaceRelatedRecord(owner, relationship, target))

    async def set_many(
        self,
        owner: RecordIdentity,
        relationship: str,
        targets: Iterable[RecordIdentity],
        previous: Iterable[RecordIdentity] | None = None,
    ) -> None:
        await self.perform(
            ReplaceRelatedRecords(
                owner,
                relationship,
                tuple(targets),
                tuple(previous) if previous is not None else None,
            )
        )

    async def add_to(
        self,
        owner: RecordIdentity,
        relationship: str,
        target: RecordIdentity,
    ) -> None:
        await self.perform(AddToRelatedRecords(owner, relationship, target))

    async def remove_from(
        self,
        owner: RecordIdentity,
        relationship: str,
        target: RecordIdentity,
    ) -> None:
        await self.perform(RemoveFromRelatedRecords(owner, relationship, target))

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    async def _query_expression(self, expression: Any) -> list[NormalizedRecord]:
        if isinstance(expression, FindRecords):
            return await self._find_records(expression.type)
        if isinstance(expression, FindRecord):
            record = await self._find_record(expression.record)
            return [record] if record is not None else []
        raise UnsupportedOperationError(expression)

    async def _perform_operation(self, operation: Any) -> NormalizedRecord | None:
        if isinstance(operation, AddRecord):
            return await self._add_record(operation.record)
        if isinstance(operation, UpdateRecord):
            return await self._update_record(operation.record)
        if isinstance(operation, RemoveRecord):
            await self._remove_record(operation.record)
            return None
        if isinstance(operation, (ReplaceRelatedRecord, AddToRelatedRecords)):
            name = "set_one" if isinstance(operation, ReplaceRelatedRecord) else "add_to"
            with self._dispatch(name, operation.record) as dispatch:
                await self._replace_related(
                    dispatch, operation.record, operation.relationship, operation.related_record
                )
            return None
        if isinstance(operation, ReplaceRelatedRecords):
            await self._replace_related_records(operation)
            return None
        if isinstance(operation, RemoveFromRelatedRecords):
            logger.debug(
                "dispatch.remove_from_ignored",
                record_type=operation.record.type,
                record_id=operation.record.id,
                relationship=operation.relationship,
            )
            return None
        raise UnsupportedOperationError(operation)

    def _dispatch(self, operation: str, identity: RecordIdentity) -> _Dispatch:
        return _Dispatch(self._settings.name, operation, identity.type, identity.id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _find_records(self, record_type: str) -> list[NormalizedRecord]:
        with _Dispatch(self._settings.name, "find_all", record_type) as dispatch:
            table = self._conventions.table_name(record_type)
            embeds = self._conventions.embeds(record_type)
            filters = self._policy.read_filters(record_type, operation="find_all")
            order_by = None
            if self._settings.order_by_created:
                order_by = self._conventions.timestamp_columns(record_type).created_at

            dispatch.advance(_DispatchState.BACKEND_CALL)
            response = await self._backend.select(
                table, filters=filters, embeds=embeds, order_by=order_by
            )
            self._raise_for_error(response, "select", table, dispatch)

            dispatch.advance(_DispatchState.TRANSFORMING)
            records: list[NormalizedRecord] = []
            for row in response.data or []:
                try:
                    records.append(self._transformer.deserialize(record_type, row))
                except TransformError as e:
                    e.completed = records
                    raise
            return records

    async def _find_record(self, identity: RecordIdentity) -> NormalizedRecord | None:
        with self._dispatch("find_one", identity) as dispatch:
            table = self._conventions.table_name(identity.type)
            embeds = self._conventions.embeds(identity.type)
            filters = {"id": identity.id}
            filters.update(self._policy.read_filters(identity.type, operation="find_one"))

            dispatch.advance(_DispatchState.BACKEND_CALL)
            response = await self._backend.select(
                table, filters=filters, embeds=embeds, single=True
            )
            if response.error is not None and response.error.code == NOT_FOUND_CODE:
                return None
            self._raise_for_error(response, "select", table, dispatch)

            dispatch.advance(_DispatchState.TRANSFORMING)
            return self._transformer.deserialize(identity.type, response.data)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _add_record(self, record: NormalizedRecord) -> NormalizedRecord:
        with self._dispatch("create", record.identity) as dispatch:
            table = self._conventions.table_name(record.type)
            subject = self._policy.require_subject(record.type, operation="create")

            dispatch.advance(_DispatchState.TRANSFORMING)
            row = self._transformer.serialize(record)
            row = self._policy.inject(record.type, row, subject=subject, operation="create")

            dispatch.advance(_DispatchState.BACKEND_CALL)
            response = await self._backend.insert(table, row)
            self._raise_for_error(response, "insert", table, dispatch)

            dispatch.advance(_DispatchState.TRANSFORMING)
            return self._transformer.deserialize(record.type, response.data)

    async def _update_record(self, record: NormalizedRecord) -> NormalizedRecord:
        with self._dispatch("update", record.identity) as dispatch:
            if record.id is None:
                raise RowSourceError(
                    f"Cannot update a '{record.type}' record without an id",
                    operation="update",
                    record_type=record.type,
                )
            table = self._conventions.table_name(record.type)
            filters = {"id": record.id}
            filters.update(self._policy.write_filters(record.type, operation="update"))

            dispatch.advance(_DispatchState.TRANSFORMING)
            values = self._transformer.serialize(record)
            values.pop("id", None)

            dispatch.advance(_DispatchState.BACKEND_CALL)
            response = await self._backend.update(table, values, filters)
            self._raise_for_error(response, "update", table, dispatch)

            dispatch.advance(_DispatchState.TRANSFORMING)
            return self._transformer.deserialize(record.type, response.data)

    async def _remove_record(self, identity: RecordIdentity) -> None:
        with self._dispatch("delete", identity) as dispatch:
            table = self._conventions.table_name(identity.type)
            filters = {"id": identity.id}
            filters.update(self._policy.write_filters(identity.type, operation="delete"))

            dispatch.advance(_DispatchState.BACKEND_CALL)
            response = await self._backend.delete(table, filters)
            self._raise_for_error(response, "delete", table, dispatch)

    async def _replace_related(
        self,
        dispatch: _Dispatch,
        owner: RecordIdentity,
        relationship: str,
        target: RecordIdentity | None,
    ) -> None:
        """Write the foreign key behind one relationship link.

        To-one: the owner's foreign-key column. To-many: the target row's
        ``{owner type}_id`` column, so each call links a single child.
        """
        kind = self._conventions.relationship_kind(owner.type, relationship)
        if kind is None:
            raise UnknownRelationshipError(owner.type, relationship)

        if kind is RelationshipKind.TO_ONE:
            await self._write_foreign_key(
                dispatch,
                owner,
                self._conventions.foreign_key_column(owner.type, relationship),
                target.id if target is not None else None,
            )
            return

        if target is None:
            return
        await self._write_foreign_key(
            dispatch,
            target,
            self._conventions.foreign_key_column(target.type, owner.type),
            owner.id,
        )

    async def _replace_related_records(self, operation: ReplaceRelatedRecords) -> None:
        owner = operation.record
        with self._dispatch("set_many", owner) as dispatch:
            for target in operation.related_records:
                await self._replace_related(dispatch, owner, operation.relationship, target)

            if operation.previous_records is None:
                return
            kind = self._conventions.relationship_kind(owner.type, operation.relationship)
            if kind is not RelationshipKind.TO_MANY:
                return
            current = set(operation.related_records)
            for child in operation.previous_records:
                if child in current:
                    continue
                await self._write_foreign_key(
                    dispatch,
                    child,
                    self._conventions.foreign_key_column(child.type, owner.type),
                    None,
                )

    async def _write_foreign_key(
        self,
        dispatch: _Dispatch,
        row_identity: RecordIdentity,
        column: str,
        value: Any,
    ) -> None:
        dispatch.advance(_DispatchState.RESOLVING)
        table = self._conventions.table_name(row_identity.type)
        filters = {"id": row_identity.id}
        filters.update(self._policy.write_filters(row_identity.type, operation=dispatch.operation))

        dispatch.advance(_DispatchState.BACKEND_CALL)
        response = await self._backend.update(table, {column: value}, filters)
        self._raise_for_error(response, "update", table, dispatch)

    @staticmethod
    def _raise_for_error(
        response: BackendResponse,
        operation: str,
        table: str,
        dispatch: _Dispatch,
    ) -> None:
        if response.error is None:
            return
        raise BackendRequestError(
            operation,
            table,
            response.error.code,
            response.error.message,
            record_type=dispatch.record_type,
            record_id=dispatch.record_id,
        )
