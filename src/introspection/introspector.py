import logging
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

from common.errors import IntrospectionError, UnsupportedFeatureError
from common.interfaces import EngineAdapter
from dal.type_mapping import map_type
from introspection.column_hints import fake_data_hint_for, validation_hint_for
from schema import (
    ColumnDef,
    ConstraintDef,
    ConstraintKind,
    EngineMetadata,
    ForeignKeyDef,
    IndexDef,
    PartitionDef,
    PrimaryKeyDef,
    ReferentialAction,
    SemanticType,
    SequenceDef,
    TableDef,
    TriggerDef,
)
from schema.raw import RawColumn, RawIndex, RawPrimaryKey

logger = logging.getLogger(__name__)

T = TypeVar("T")

TIMESTAMP_COLUMNS = ("created_at", "updated_at")
SOFT_DELETE_COLUMN = "deleted_at"


class SchemaIntrospector:
    """Builds one canonical ``TableDef`` per call from an engine adapter.

    Introspection of a table either fully succeeds or raises ``IntrospectionError``;
    partially built tables are never returned. Optional catalog features the engine
    lacks are left empty.
    """

    def __init__(self, adapter: EngineAdapter) -> None:
        """Bind to the adapter of one connection."""
        self._adapter = adapter

    @property
    def adapter(self) -> EngineAdapter:
        """The engine adapter used for catalog reads."""
        return self._adapter

    async def introspect(self, table: str) -> TableDef:
        """Introspect ``table``.

        Raises:
            IntrospectionError: Wrapping any adapter failure, including
                ``TableNotFoundError`` and ``EngineConnectionError``.
        """
        try:
            result = await self._build(table)
        except IntrospectionError:
            raise
        except Exception as exc:
            logger.debug("table_introspection_failed table=%s error=%s", table, exc)
            raise IntrospectionError.wrap(table, exc) from exc
        logger.debug(
            "table_introspected engine=%s table=%s columns=%d",
            self._adapter.engine.value,
            table,
            len(result.columns),
        )
        return result

    async def _build(self, table: str) -> TableDef:
        adapter = self._adapter
        raw_columns = await adapter.get_columns(table)
        raw_pk = await adapter.get_primary_key(table)
        raw_indexes = await adapter.get_indexes(table)
        raw_fks = await adapter.get_foreign_keys(table)
        raw_metadata = await adapter.get_table_metadata(table)
        raw_constraints = await self._optional(table, "constraints", adapter.get_constraints)
        raw_triggers = await self._optional(table, "triggers", adapter.get_triggers)
        raw_partitions = await self._optional(table, "partitions", adapter.get_partitions)
        raw_sequences = await self._optional(table, "sequences", adapter.get_sequences)

        foreign_keys = [
            ForeignKeyDef(
                name=fk.name,
                column=fk.column,
                foreign_table=fk.foreign_table,
                foreign_column=fk.foreign_column,
                on_update=ReferentialAction.parse(fk.on_update),
                on_delete=ReferentialAction.parse(fk.on_delete),
            )
            for fk in raw_fks
        ]
        references = {fk.column: fk for fk in foreign_keys}

        columns: List[ColumnDef] = []
        seen = set()
        for raw in raw_columns:
            if raw.name in seen:
                continue
            seen.add(raw.name)
            columns.append(self._build_column(raw, references.get(raw.name)))

        constraints = []
        for raw in raw_constraints:
            kind = ConstraintKind.parse(raw.kind)
            if kind is None:
                logger.debug(
                    "constraint_skipped table=%s name=%s kind=%s", table, raw.name, raw.kind
                )
                continue
            constraints.append(ConstraintDef(name=raw.name, kind=kind, definition=raw.definition))

        metadata = EngineMetadata(
            engine=adapter.engine,
            charset=raw_metadata.charset,
            collation=raw_metadata.collation,
            comment=raw_metadata.comment,
            storage_engine=raw_metadata.storage_engine,
            row_format=raw_metadata.row_format,
            auto_increment=raw_metadata.auto_increment,
            options=dict(raw_metadata.options),
            triggers=[
                TriggerDef(
                    name=raw.name, timing=raw.timing, event=raw.event, statement=raw.statement
                )
                for raw in raw_triggers
            ],
            partitions=[
                PartitionDef(
                    name=raw.name,
                    method=raw.method,
                    expression=raw.expression,
                    description=raw.description,
                    ordinal=raw.ordinal,
                )
                for raw in raw_partitions
            ],
            sequences=[SequenceDef(name=raw.name, column=raw.column) for raw in raw_sequences],
        )

        by_name: Dict[str, ColumnDef] = {column.name: column for column in columns}
        return TableDef(
            name=table,
            columns=columns,
            primary_key=_primary_key(raw_pk),
            indexes=_indexes(raw_indexes, raw_pk),
            foreign_keys=foreign_keys,
            constraints=constraints,
            engine_metadata=metadata,
            has_timestamps=all(
                name in by_name and by_name[name].semantic_type.is_datetime_family
                for name in TIMESTAMP_COLUMNS
            ),
            has_soft_deletes=(
                SOFT_DELETE_COLUMN in by_name and by_name[SOFT_DELETE_COLUMN].nullable
            ),
        )

    async def _optional(
        self, table: str, feature: str, fetch: Callable[[str], Awaitable[List[T]]]
    ) -> List[T]:
        try:
            return await fetch(table)
        except UnsupportedFeatureError:
            logger.debug(
                "catalog_feature_skipped engine=%s table=%s feature=%s",
                self._adapter.engine.value,
                table,
                feature,
            )
            return []

    def _build_column(self, raw: RawColumn, reference: Optional[ForeignKeyDef]) -> ColumnDef:
        mapping = map_type(self._adapter.engine, raw.native_type)
        semantic = mapping.semantic_type
        enum_values = list(raw.enum_values) if semantic == SemanticType.ENUM else []

        cast_hint = mapping.cast_hint
        if semantic == SemanticType.DECIMAL and raw.scale is not None:
            cast_hint = f"decimal:{raw.scale}"

        rules = ["nullable" if raw.nullable else "required"]
        named_rule = validation_hint_for(raw.name, semantic)
        if named_rule is not None:
            rules.append(named_rule)
        else:
            rules.append(mapping.validation_hint)
            if semantic == SemanticType.STRING and raw.length:
                rules.append(f"max:{raw.length}")
            if enum_values:
                rules.append("in:" + ",".join(enum_values))
            if semantic.is_numeric and raw.unsigned:
                rules.append("min:0")
        if reference is not None:
            rules.append(f"exists:{reference.foreign_table},{reference.foreign_column}")

        return ColumnDef(
            name=raw.name,
            native_type=raw.native_type,
            semantic_type=semantic,
            nullable=raw.nullable,
            default_value=raw.default_value,
            auto_increment=raw.auto_increment,
            unsigned=raw.unsigned,
            length=raw.length,
            precision=raw.precision,
            scale=raw.scale,
            enum_values=enum_values,
            comment=raw.comment,
            type_name=raw.type_name,
            cast_hint=cast_hint,
            validation_hint="|".join(rules),
            fake_data_hint=fake_data_hint_for(raw.name, semantic) or mapping.fake_data_hint,
        )


def _primary_key(raw: Optional[RawPrimaryKey]) -> Optional[PrimaryKeyDef]:
    if raw is None or not raw.columns:
        return None
    return PrimaryKeyDef(columns=list(raw.columns), name=raw.name)


def _indexes(raw_indexes: List[RawIndex], raw_pk: Optional[RawPrimaryKey]) -> List[IndexDef]:
    """Translate indexes, synthesizing the primary index when the engine reports none."""
    indexes = [
        IndexDef(
            name=raw.name,
            columns=list(raw.columns),
            unique=raw.unique or raw.primary,
            primary=raw.primary,
            index_type=raw.index_type,
        )
        for raw in raw_indexes
    ]
    if raw_pk is not None and raw_pk.columns and not any(index.primary for index in indexes):
        indexes.insert(
            0,
            IndexDef(
                name=raw_pk.name or "primary",
                columns=list(raw_pk.columns),
                unique=True,
                primary=True,
            ),
        )
    return indexes
