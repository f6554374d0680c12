"""Relationship inference over a fully introspected table set.

Inference needs the global view: reverse relationships, pivot detection and
polymorphic back-references all look at tables other than the owner. The
analyzer is pure and deterministic; it never touches the database.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from common.interfaces import Inflector
from introspection.inflector import EnglishInflector
from schema import ForeignKeyDef, RelationshipDef, RelationshipKind, TableDef

logger = logging.getLogger(__name__)

PIVOT_IGNORED_COLUMNS = frozenset({"created_at", "updated_at", "deleted_at"})

_FK_SUFFIXES = ("_id", "_uuid", "_fk")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_VOWELS = frozenset("aeiou")


@dataclass(frozen=True)
class PivotTable:
    """A join table consumed as a many-to-many link between two tables."""

    name: str
    first: ForeignKeyDef
    second: ForeignKeyDef

    @property
    def is_self_referencing(self) -> bool:
        """True when both keys point at the same table."""
        return self.first.foreign_table == self.second.foreign_table


@dataclass
class _Draft:
    kind: RelationshipKind
    owner: str
    fields: Dict[str, Any]
    # (name, also reject when it equals a column name)
    candidates: List[Tuple[str, bool]] = field(default_factory=list)

    @property
    def key_column(self) -> str:
        return (
            self.fields.get("foreign_key_column")
            or self.fields.get("foreign_pivot_key")
            or self.fields.get("type_column")
            or ""
        )


class _MethodNamer:
    """Hands out method names that are unique per owner table."""

    def __init__(self, tables: Sequence[TableDef]) -> None:
        self._columns = {table.name: set(table.column_names) for table in tables}
        self._used: Dict[str, Set[str]] = {table.name: set() for table in tables}

    def pick(self, owner: str, candidates: Sequence[Tuple[str, bool]]) -> str:
        used = self._used[owner]
        columns = self._columns[owner]
        for name, against_columns in candidates:
            if name and name not in used and not (against_columns and name in columns):
                used.add(name)
                return name
        base = candidates[0][0]
        suffix = 2
        while f"{base}_{suffix}" in used or f"{base}_{suffix}" in columns:
            suffix += 1
        name = f"{base}_{suffix}"
        used.add(name)
        return name


def group_foreign_keys(foreign_keys: Sequence[ForeignKeyDef]) -> List[List[ForeignKeyDef]]:
    """Group per-column foreign key rows into constraints, in first-seen order.

    Composite constraints arrive as one row per column pair sharing a name.
    """
    groups: Dict[Tuple[str, str], List[ForeignKeyDef]] = {}
    for fk in foreign_keys:
        groups.setdefault((fk.name, fk.foreign_table), []).append(fk)
    return list(groups.values())


def snake_case(name: str) -> str:
    """Convert ``camelCase`` or ``PascalCase`` to ``snake_case``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def strip_key_suffix(column: str) -> Optional[str]:
    """Strip a conventional foreign key suffix: ``user_id`` and ``userId`` become ``user``."""
    for suffix in _FK_SUFFIXES:
        if column.lower().endswith(suffix) and len(column) > len(suffix):
            return snake_case(column[: -len(suffix)])
    if column.endswith("Id") and len(column) > 2:
        return snake_case(column[:-2])
    return None


class RelationshipAnalyzer:
    """Infers BelongsTo, HasOne/HasMany, BelongsToMany and morph relationships.

    Output is ordered by owner table (input order), then relationship kind,
    then key column, related table and method name, so unchanged schemas
    always produce identical lists.
    """

    def __init__(
        self, inflector: Optional[Inflector] = None, pivot_extra_column_limit: int = 2
    ) -> None:
        """Configure the naming inflector and pivot leniency."""
        self.inflector = inflector or EnglishInflector()
        self.pivot_extra_column_limit = pivot_extra_column_limit

    def analyze(self, tables: Sequence[TableDef]) -> List[RelationshipDef]:
        """Infer relationships across ``tables``."""
        by_name = {table.name: table for table in tables}
        position = {name: index for index, name in enumerate(by_name)}
        pivots = self.detect_pivots(tables)

        drafts: List[_Draft] = []
        for table in by_name.values():
            if table.name in pivots:
                continue
            drafts.extend(self._foreign_key_drafts(table, by_name))
            drafts.extend(self._morph_drafts(table, by_name, pivots))
        for pivot in pivots.values():
            drafts.extend(self._pivot_drafts(pivot))

        drafts.sort(
            key=lambda draft: (
                position[draft.owner],
                draft.kind.sort_index,
                draft.key_column,
                draft.fields.get("related_table") or "",
            )
        )
        namer = _MethodNamer(list(by_name.values()))
        relationships = [
            RelationshipDef(
                kind=draft.kind,
                owner_table=draft.owner,
                method_name=namer.pick(draft.owner, draft.candidates),
                **draft.fields,
            )
            for draft in drafts
        ]
        relationships.sort(
            key=lambda rel: (
                position[rel.owner_table],
                rel.kind.sort_index,
                rel.key_column,
                rel.related_table or "",
                rel.method_name,
            )
        )
        logger.debug(
            "relationships_inferred tables=%d pivots=%d relationships=%d",
            len(by_name),
            len(pivots),
            len(relationships),
        )
        return relationships

    # ------------------------------------------------------------------
    # Pivot detection
    # ------------------------------------------------------------------

    def detect_pivots(self, tables: Sequence[TableDef]) -> Dict[str, PivotTable]:
        """Return the tables that act purely as many-to-many join tables."""
        by_name = {table.name: table for table in tables}
        referenced: Set[str] = set()
        for table in tables:
            for fk in table.foreign_keys:
                if fk.foreign_table != table.name:
                    referenced.add(fk.foreign_table)

        pivots: Dict[str, PivotTable] = {}
        for table in by_name.values():
            pivot = self._as_pivot(table, by_name, referenced)
            if pivot is not None:
                logger.debug(
                    "pivot_detected table=%s first=%s second=%s",
                    table.name,
                    pivot.first.foreign_table,
                    pivot.second.foreign_table,
                )
                pivots[table.name] = pivot
        return pivots

    def _as_pivot(
        self, table: TableDef, by_name: Dict[str, TableDef], referenced: Set[str]
    ) -> Optional[PivotTable]:
        constraints = group_foreign_keys(table.foreign_keys)
        if len(constraints) != 2 or table.name in referenced:
            return None
        if any(len(columns) != 1 for columns in constraints):
            return None
        fks = [columns[0] for columns in constraints]
        if any(fk.foreign_table not in by_name or fk.foreign_table == table.name for fk in fks):
            return None
        if fks[0].column == fks[1].column:
            return None

        order = {name: index for index, name in enumerate(table.column_names)}
        first, second = sorted(fks, key=lambda fk: order.get(fk.column, len(order)))
        key_columns = {first.column, second.column}

        surrogate: Set[str] = set()
        pk = table.primary_key
        if pk is not None and len(pk.columns) == 1 and pk.columns[0] not in key_columns:
            surrogate.add(pk.columns[0])

        remaining = [
            name
            for name in table.column_names
            if name not in key_columns
            and name not in surrogate
            and name not in PIVOT_IGNORED_COLUMNS
        ]
        if remaining and not (
            len(remaining) <= self.pivot_extra_column_limit
            and self._is_conventional_join_name(
                table.name, first.foreign_table, second.foreign_table
            )
        ):
            return None
        return PivotTable(name=table.name, first=first, second=second)

    def _is_conventional_join_name(self, pivot: str, first: str, second: str) -> bool:
        a = self.inflector.singularize(first)
        b = self.inflector.singularize(second)
        joined = {f"{a}_{b}", f"{b}_{a}"}
        joined |= {self.inflector.pluralize(name) for name in list(joined)}
        return pivot in joined

    def _pivot_drafts(self, pivot: PivotTable) -> List[_Draft]:
        first, second = pivot.first, pivot.second
        if pivot.is_self_referencing:
            stem = strip_key_suffix(second.column) or second.foreign_table
            name = self.inflector.pluralize(stem)
            candidates = [(name, True), (f"{name}_via_{pivot.name}", True)]
            return [self._pivot_draft(pivot, first, second, candidates)]
        drafts = []
        for own, other in ((first, second), (second, first)):
            name = self.inflector.pluralize(other.foreign_table)
            candidates = [(name, True), (f"{name}_via_{pivot.name}", True)]
            drafts.append(self._pivot_draft(pivot, own, other, candidates))
        return drafts

    @staticmethod
    def _pivot_draft(
        pivot: PivotTable,
        own: ForeignKeyDef,
        other: ForeignKeyDef,
        candidates: List[Tuple[str, bool]],
    ) -> _Draft:
        return _Draft(
            kind=RelationshipKind.BELONGS_TO_MANY,
            owner=own.foreign_table,
            fields={
                "related_table": other.foreign_table,
                "local_key_column": own.foreign_column,
                "pivot_table": pivot.name,
                "foreign_pivot_key": own.column,
                "related_pivot_key": other.column,
            },
            candidates=candidates,
        )

    # ------------------------------------------------------------------
    # BelongsTo and its reverse
    # ------------------------------------------------------------------

    def _foreign_key_drafts(self, table: TableDef, by_name: Dict[str, TableDef]) -> List[_Draft]:
        drafts = []
        for constraint in group_foreign_keys(table.foreign_keys):
            fk = constraint[0]
            if fk.foreign_table not in by_name:
                continue
            key_columns = [item.column for item in constraint]
            columns = [table.get_column(name) for name in key_columns]
            nullable = any(column is not None and column.nullable for column in columns)
            stem = strip_key_suffix(fk.column)
            shared = {
                "foreign_key_column": fk.column,
                "foreign_key_name": fk.name,
                "local_key_column": fk.foreign_column,
                "nullable": nullable,
                "on_delete": fk.on_delete,
            }
            belongs_to_name = stem or self.inflector.singularize(fk.foreign_table)
            drafts.append(
                _Draft(
                    kind=RelationshipKind.BELONGS_TO,
                    owner=table.name,
                    fields={"related_table": fk.foreign_table, **shared},
                    candidates=[(belongs_to_name, True), (fk.column, False)],
                )
            )

            if table.has_unique_index_on(key_columns):
                kind = RelationshipKind.HAS_ONE
                name = self.inflector.singularize(table.name)
            else:
                kind = RelationshipKind.HAS_MANY
                name = self.inflector.pluralize(table.name)
                if fk.foreign_table == table.name and stem == "parent":
                    name = "children"
            drafts.append(
                _Draft(
                    kind=kind,
                    owner=fk.foreign_table,
                    fields={"related_table": table.name, **shared},
                    candidates=[(name, True), (f"{name}_by_{stem or snake_case(fk.column)}", True)],
                )
            )
        return drafts

    # ------------------------------------------------------------------
    # Polymorphic relationships
    # ------------------------------------------------------------------

    def _morph_drafts(
        self, table: TableDef, by_name: Dict[str, TableDef], pivots: Dict[str, PivotTable]
    ) -> List[_Draft]:
        drafts = []
        fk_columns = {fk.column for fk in table.foreign_keys}
        columns = set(table.column_names)
        for type_column in table.column_names:
            if not type_column.endswith("_type"):
                continue
            morph = type_column[: -len("_type")]
            id_column = f"{morph}_id"
            if not morph or id_column not in columns or id_column in fk_columns:
                continue
            type_def = table.get_column(type_column)
            id_def = table.get_column(id_column)
            morph_fields = {
                "morph_name": morph,
                "type_column": type_column,
                "id_column": id_column,
            }
            drafts.append(
                _Draft(
                    kind=RelationshipKind.MORPH_TO,
                    owner=table.name,
                    fields={
                        "nullable": bool(type_def.nullable or id_def.nullable),
                        **morph_fields,
                    },
                    candidates=[(morph, True), (f"{morph}_morph", True)],
                )
            )

            unique = any(
                index.unique and set(index.columns) == {type_column, id_column}
                for index in table.indexes
            )
            if unique:
                kind, name = RelationshipKind.MORPH_ONE, self.inflector.singularize(table.name)
            else:
                kind, name = RelationshipKind.MORPH_MANY, self.inflector.pluralize(table.name)
            for target in by_name:
                if target == table.name or target in pivots:
                    continue
                if not self._morph_matches(morph, target):
                    continue
                drafts.append(
                    _Draft(
                        kind=kind,
                        owner=target,
                        fields={"related_table": table.name, **morph_fields},
                        candidates=[(name, True), (f"{name}_by_{morph}", True)],
                    )
                )
        return drafts

    def _morph_matches(self, morph: str, table: str) -> bool:
        """Best-effort match of a morph name against a table name."""
        stems = {morph}
        if morph.endswith("able") and len(morph) > 4:
            stem = morph[:-4]
            if len(stem) >= 2 and stem[-1] == stem[-2] and stem[-1] not in _VOWELS:
                stem = stem[:-1]
            stems.add(stem)
        forms = set()
        for stem in stems:
            forms |= {stem, self.inflector.singularize(stem), self.inflector.pluralize(stem)}
        return table in forms or self.inflector.singularize(table) in forms
