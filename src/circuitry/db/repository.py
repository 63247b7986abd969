"""Repository pattern for all Circuitry database operations.

Single interface for circuits and their content items. The content-item half
is the Content Store the composer reads from: ``list_active``, ``append`` and
``archive``. Extracted text is never updated in place.
"""

from __future__ import annotations

import json
import sqlite3

from circuitry.db.models import Circuit, ContentItem
from circuitry.errors import CircuitNotFound, ContentNotFound

_CIRCUIT_COLUMNS = (
    "id, code, name, grade, owner, description, teaching_styles, homework_policies, "
    "response_types, state_alignment, archived, created_at"
)
_CONTENT_COLUMNS = (
    "id, circuit_id, title, description, kind, category, content, content_url, "
    "archived, created_at"
)


class Repository:
    """Data access layer for circuits and content items.

    Wraps an open sqlite3.Connection. Every write commits on its own, so each
    insert or archive is atomic and no transaction spans composer logic. The
    connection is owned by the caller and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see circuitry.db.schema.initialize).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Circuits
    # ------------------------------------------------------------------

    def add_circuit(self, circuit: Circuit) -> Circuit:
        """Insert a new circuit and return it with id and created_at set."""
        cur = self._conn.execute(
            """
            INSERT INTO circuits (
                code, name, grade, owner, description, teaching_styles,
                homework_policies, response_types, state_alignment, archived
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                circuit.code,
                circuit.name,
                circuit.grade,
                circuit.owner,
                circuit.description,
                json.dumps(circuit.teaching_styles),
                json.dumps(circuit.homework_policies),
                json.dumps(circuit.response_types),
                circuit.state_alignment,
                int(circuit.archived),
            ),
        )
        self._conn.commit()
        return self._require_circuit(cur.lastrowid)

    def get_circuit(self, circuit_id: int) -> Circuit | None:
        """Return a circuit by id, or None if not found."""
        row = self._conn.execute(
            f"SELECT {_CIRCUIT_COLUMNS} FROM circuits WHERE id = ?", (circuit_id,)
        ).fetchone()
        return _row_to_circuit(row) if row else None

    def get_circuit_by_code(self, code: str) -> Circuit | None:
        """Return a circuit by its join code (case-insensitive), or None."""
        row = self._conn.execute(
            f"SELECT {_CIRCUIT_COLUMNS} FROM circuits WHERE code = ?", (code.upper(),)
        ).fetchone()
        return _row_to_circuit(row) if row else None

    def list_circuits(self, owner: str | None = None, archived: bool = False) -> list[Circuit]:
        """Return circuits (optionally for one owner) ordered by creation time."""
        sql = f"SELECT {_CIRCUIT_COLUMNS} FROM circuits WHERE archived = ?"
        params: list[object] = [int(archived)]
        if owner is not None:
            sql += " AND owner = ?"
            params.append(owner)
        sql += " ORDER BY created_at, id"
        return [_row_to_circuit(r) for r in self._conn.execute(sql, params).fetchall()]

    def update_circuit(self, circuit: Circuit) -> Circuit:
        """Persist the mutable fields of *circuit*.

        Raises:
            CircuitNotFound: If the circuit no longer exists.
        """
        cur = self._conn.execute(
            """
            UPDATE circuits SET
                name = ?, grade = ?, description = ?, teaching_styles = ?,
                homework_policies = ?, response_types = ?, state_alignment = ?
            WHERE id = ?
            """,
            (
                circuit.name,
                circuit.grade,
                circuit.description,
                json.dumps(circuit.teaching_styles),
                json.dumps(circuit.homework_policies),
                json.dumps(circuit.response_types),
                circuit.state_alignment,
                circuit.id,
            ),
        )
        self._conn.commit()
        if cur.rowcount == 0:
            raise CircuitNotFound(circuit.id)
        return self._require_circuit(circuit.id)

    def set_circuit_archived(self, circuit_id: int, archived: bool) -> Circuit:
        """Flip the archived flag on a circuit and return the updated row."""
        cur = self._conn.execute(
            "UPDATE circuits SET archived = ? WHERE id = ?", (int(archived), circuit_id)
        )
        self._conn.commit()
        if cur.rowcount == 0:
            raise CircuitNotFound(circuit_id)
        return self._require_circuit(circuit_id)

    def delete_circuit(self, circuit_id: int) -> Circuit:
        """Delete a circuit after removing its content items.

        Returns:
            The circuit as it was before deletion.
        """
        circuit = self._require_circuit(circuit_id)
        self._conn.execute("DELETE FROM content_items WHERE circuit_id = ?", (circuit_id,))
        self._conn.execute("DELETE FROM circuits WHERE id = ?", (circuit_id,))
        self._conn.commit()
        return circuit

    def _require_circuit(self, circuit_id: int | None) -> Circuit:
        circuit = self.get_circuit(circuit_id) if circuit_id is not None else None
        if circuit is None:
            raise CircuitNotFound(circuit_id)
        return circuit

    # ------------------------------------------------------------------
    # Content items (Content Store)
    # ------------------------------------------------------------------

    def append(self, item: ContentItem) -> ContentItem:
        """Insert a content item and return it with id and created_at set."""
        cur = self._conn.execute(
            """
            INSERT INTO content_items (
                circuit_id, title, description, kind, category, content,
                content_url, archived
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.circuit_id,
                item.title,
                item.description,
                item.kind,
                item.category,
                item.content,
                item.content_url,
                int(item.archived),
            ),
        )
        self._conn.commit()
        return self._require_content(cur.lastrowid)

    def get_content(self, content_id: int) -> ContentItem | None:
        """Return a content item by id (archived or not), or None."""
        row = self._conn.execute(
            f"SELECT {_CONTENT_COLUMNS} FROM content_items WHERE id = ?", (content_id,)
        ).fetchone()
        return _row_to_content(row) if row else None

    def list_active(self, circuit_id: int) -> list[ContentItem]:
        """Return the circuit's non-archived items, oldest first."""
        return self.list_content(circuit_id, include_archived=False)

    def list_content(self, circuit_id: int, include_archived: bool = False) -> list[ContentItem]:
        """Return the circuit's items ordered by (created_at, id) ascending."""
        sql = f"SELECT {_CONTENT_COLUMNS} FROM content_items WHERE circuit_id = ?"
        if not include_archived:
            sql += " AND archived = 0"
        sql += " ORDER BY created_at, id"
        return [_row_to_content(r) for r in self._conn.execute(sql, (circuit_id,)).fetchall()]

    def archive(self, content_id: int) -> ContentItem:
        """Soft-delete a content item. Raises ContentNotFound for unknown ids."""
        return self._set_content_archived(content_id, True)

    def unarchive(self, content_id: int) -> ContentItem:
        """Restore an archived content item. Raises ContentNotFound for unknown ids."""
        return self._set_content_archived(content_id, False)

    def count_content(self, circuit_id: int, include_archived: bool = False) -> int:
        sql = "SELECT COUNT(*) FROM content_items WHERE circuit_id = ?"
        if not include_archived:
            sql += " AND archived = 0"
        return self._conn.execute(sql, (circuit_id,)).fetchone()[0]

    def _set_content_archived(self, content_id: int, archived: bool) -> ContentItem:
        cur = self._conn.execute(
            "UPDATE content_items SET archived = ? WHERE id = ?", (int(archived), content_id)
        )
        self._conn.commit()
        if cur.rowcount == 0:
            raise ContentNotFound(content_id)
        return self._require_content(content_id)

    def _require_content(self, content_id: int | None) -> ContentItem:
        item = self.get_content(content_id) if content_id is not None else None
        if item is None:
            raise ContentNotFound(content_id if content_id is not None else -1)
        return item


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _row_to_circuit(row: sqlite3.Row) -> Circuit:
    return Circuit(
        id=row["id"],
        code=row["code"],
        name=row["name"],
        grade=row["grade"],
        owner=row["owner"],
        description=row["description"],
        teaching_styles=json.loads(row["teaching_styles"]),
        homework_policies=json.loads(row["homework_policies"]),
        response_types=json.loads(row["response_types"]),
        state_alignment=row["state_alignment"],
        archived=bool(row["archived"]),
        created_at=row["created_at"],
    )


def _row_to_content(row: sqlite3.Row) -> ContentItem:
    return ContentItem(
        id=row["id"],
        circuit_id=row["circuit_id"],
        title=row["title"],
        description=row["description"],
        kind=row["kind"],
        category=row["category"],
        content=row["content"],
        content_url=row["content_url"],
        archived=bool(row["archived"]),
        created_at=row["created_at"],
    )
