"""
DuckDB-backed catalog store.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

import duckdb
from pydantic import ValidationError as PydanticValidationError

from ..models import KIND_TO_PREFIX, EntityKind, SearchableEntity, parse_entity
from ..search.reference import district_code, generate_reference_id

logger = logging.getLogger(__name__)


class DuckDBCatalogStore:
    """Catalog entities persisted as JSON payloads keyed by (kind, id)."""

    def __init__(
        self,
        db_path: str,
        *,
        read_only: bool = False,
        initialize: bool = True,
    ) -> None:
        self.db_path = str(Path(db_path).expanduser().resolve())
        self.read_only = read_only
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = duckdb.connect(self.db_path, read_only=read_only)
        if initialize and not read_only:
            self.initialize()

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        self._conn.close()

    def initialize(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS entities (
                kind VARCHAR NOT NULL,
                id VARCHAR NOT NULL,
                reference_id VARCHAR NOT NULL,
                district VARCHAR,
                payload_json VARCHAR NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (kind, id)
            );
            """
        )

    def upsert_entities(self, entities: Iterable[SearchableEntity]) -> int:
        rows = [
            (
                entity.kind,
                entity.id,
                entity.reference_id,
                entity.district,
                entity.model_dump_json(),
            )
            for entity in entities
        ]
        if not rows:
            return 0
        self._conn.executemany(
            """
            INSERT INTO entities (kind, id, reference_id, district, payload_json)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(kind, id) DO UPDATE SET
                reference_id = excluded.reference_id,
                district = excluded.district,
                payload_json = excluded.payload_json,
                updated_at = now()
            """,
            rows,
        )
        logger.info("Upserted %d catalog entities into %s", len(rows), self.db_path)
        return len(rows)

    def load_entities(self) -> list[SearchableEntity]:
        rows = self._conn.execute(
            "SELECT kind, id, payload_json FROM entities ORDER BY kind, id"
        ).fetchall()
        entities: list[SearchableEntity] = []
        for kind, entity_id, payload_json in rows:
            try:
                entities.append(parse_entity(json.loads(payload_json)))
            except (json.JSONDecodeError, PydanticValidationError) as exc:
                logger.warning("Skipping stored %s %s: %s", kind, entity_id, exc)
        return entities

    def count_by_kind(self) -> dict[str, int]:
        rows = self._conn.execute(
            "SELECT kind, COUNT(*) FROM entities GROUP BY kind ORDER BY kind"
        ).fetchall()
        return {str(kind): int(count) for kind, count in rows}

    def highest_reference_number(self, kind: EntityKind, district: str) -> int:
        """Largest sequence number stored for the prefix and district code, or 0."""
        pattern = f"{KIND_TO_PREFIX[kind]}-{district_code(district)}-%"
        row = self._conn.execute(
            """
            SELECT MAX(TRY_CAST(split_part(reference_id, '-', 3) AS INTEGER))
            FROM entities
            WHERE reference_id LIKE ?
            """,
            [pattern],
        ).fetchone()
        return int(row[0]) if row and row[0] is not None else 0

    def next_reference_id(self, kind: EntityKind, district: str) -> str:
        # Numbers only grow; gaps left by imports or deletes are never refilled.
        return generate_reference_id(
            kind, district, self.highest_reference_number(kind, district)
        )

    def get_reference_id(self, kind: EntityKind, entity_id: str) -> str | None:
        row = self._conn.execute(
            "SELECT reference_id FROM entities WHERE kind = ? AND id = ?",
            [kind, entity_id],
        ).fetchone()
        return str(row[0]) if row else None
