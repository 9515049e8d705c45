"""
DuckDB-backed storage for projects, experiences and contact messages.
Why: embedded, zero-ops database with plain parameterized SQL.
"""

import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import duckdb

from devfolio.core.logging import get_logger
from devfolio.core.schemas import (
    ContactCreate,
    ContactMessage,
    Experience,
    ExperienceCreate,
    ExperienceUpdate,
    Project,
    ProjectCreate,
    ProjectUpdate,
)

_LOG = get_logger(__name__)

TABLES = ("projects", "experiences", "contacts")

_SCHEMA = [
    "CREATE SEQUENCE IF NOT EXISTS projects_id_seq START 1",
    "CREATE SEQUENCE IF NOT EXISTS experiences_id_seq START 1",
    "CREATE SEQUENCE IF NOT EXISTS contacts_id_seq START 1",
    """
    CREATE TABLE IF NOT EXISTS projects (
        id INTEGER NOT NULL DEFAULT nextval('projects_id_seq'),
        title VARCHAR NOT NULL,
        description VARCHAR NOT NULL,
        tech_stack VARCHAR[] NOT NULL,
        github_url VARCHAR,
        demo_url VARCHAR,
        image_url VARCHAR NOT NULL,
        featured BOOLEAN NOT NULL DEFAULT false,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS experiences (
        id INTEGER NOT NULL DEFAULT nextval('experiences_id_seq'),
        company VARCHAR NOT NULL,
        position VARCHAR NOT NULL,
        start_date DATE NOT NULL,
        end_date DATE,
        description VARCHAR NOT NULL,
        achievements VARCHAR[] NOT NULL,
        technologies VARCHAR[] NOT NULL,
        company_logo VARCHAR,
        location VARCHAR NOT NULL,
        employment_type VARCHAR NOT NULL,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS contacts (
        id INTEGER NOT NULL DEFAULT nextval('contacts_id_seq'),
        name VARCHAR NOT NULL,
        email VARCHAR NOT NULL,
        message VARCHAR NOT NULL,
        "read" BOOLEAN NOT NULL DEFAULT false,
        created_at TIMESTAMP NOT NULL
    )
    """,
]

_PROJECT_COLUMNS = (
    "id, title, description, tech_stack, github_url, demo_url, image_url, "
    "featured, created_at, updated_at"
)
_EXPERIENCE_COLUMNS = (
    "id, company, position, start_date, end_date, description, achievements, "
    "technologies, company_logo, location, employment_type, created_at, updated_at"
)
_CONTACT_COLUMNS = 'id, name, email, message, "read", created_at'

_UPDATABLE_PROJECT_FIELDS = (
    "title",
    "description",
    "tech_stack",
    "github_url",
    "demo_url",
    "image_url",
    "featured",
)
_NULLABLE_PROJECT_FIELDS = ("github_url", "demo_url")

_UPDATABLE_EXPERIENCE_FIELDS = (
    "company",
    "position",
    "start_date",
    "end_date",
    "description",
    "achievements",
    "technologies",
    "company_logo",
    "location",
    "employment_type",
)
_NULLABLE_EXPERIENCE_FIELDS = ("end_date", "company_logo")
_LIST_FIELDS = ("tech_stack", "achievements", "technologies")


class DatabaseError(RuntimeError):
    """Raised when a DuckDB statement fails."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PortfolioDatabase:
    def __init__(self, path: str = ":memory:") -> None:
        self.path = path
        self._conn: Optional[duckdb.DuckDBPyConnection] = None

    def connect(self) -> "PortfolioDatabase":
        if self._conn is None:
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = duckdb.connect(self.path)
            _LOG.info(f"database connected path={self.path}")
        return self

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def init_schema(self) -> None:
        for statement in _SCHEMA:
            self._execute(statement)

    # -- low level --------------------------------------------------------

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            raise DatabaseError("database is not connected")
        return self._conn

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> duckdb.DuckDBPyConnection:
        try:
            return self.conn.execute(sql, list(params))
        except duckdb.Error as exc:
            _LOG.error(f"database query failed: {exc}")
            raise DatabaseError(str(exc)) from exc

    def _fetch(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        cursor = self._execute(sql, params)
        columns = [col[0] for col in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    # -- projects ---------------------------------------------------------

    def list_projects(self, featured_only: bool = False) -> List[Project]:
        sql = f"SELECT {_PROJECT_COLUMNS} FROM projects"
        if featured_only:
            sql += " WHERE featured = true"
        sql += " ORDER BY featured DESC, created_at DESC, id DESC"
        return [Project(**row) for row in self._fetch(sql)]

    def get_project(self, project_id: int) -> Optional[Project]:
        rows = self._fetch(f"SELECT {_PROJECT_COLUMNS} FROM projects WHERE id = ?", [project_id])
        return Project(**rows[0]) if rows else None

    def create_project(self, data: ProjectCreate) -> Project:
        now = _utcnow()
        rows = self._fetch(
            f"""
            INSERT INTO projects (title, description, tech_stack, github_url, demo_url,
                                  image_url, featured, created_at, updated_at)
            VALUES (?, ?, ?::VARCHAR[], ?, ?, ?, ?, ?, ?)
            RETURNING {_PROJECT_COLUMNS}
            """,
            [
                data.title.strip(),
                data.description.strip(),
                data.tech_stack,
                data.github_url or None,
                data.demo_url or None,
                data.image_url,
                data.featured,
                now,
                now,
            ],
        )
        return Project(**rows[0])

    def _update(
        self,
        table: str,
        columns: str,
        row_id: int,
        changes: Dict[str, Any],
        updatable: Sequence[str],
        nullable: Sequence[str],
    ) -> Optional[Dict[str, Any]]:
        assignments: List[str] = []
        params: List[Any] = []
        for name in updatable:
            if name not in changes:
                continue
            value = changes[name]
            if isinstance(value, str):
                value = value.strip()
            if name in nullable and not value:
                value = None
            cast = "::VARCHAR[]" if name in _LIST_FIELDS else ""
            assignments.append(f"{name} = ?{cast}")
            params.append(value)
        assignments.append("updated_at = ?")
        params.extend([_utcnow(), row_id])
        rows = self._fetch(
            f"UPDATE {table} SET {', '.join(assignments)} WHERE id = ? RETURNING {columns}",
            params,
        )
        return rows[0] if rows else None

    def update_project(self, project_id: int, data: ProjectUpdate) -> Optional[Project]:
        row = self._update(
            "projects",
            _PROJECT_COLUMNS,
            project_id,
            data.model_dump(exclude_unset=True),
            _UPDATABLE_PROJECT_FIELDS,
            _NULLABLE_PROJECT_FIELDS,
        )
        return Project(**row) if row else None

    def delete_project(self, project_id: int) -> bool:
        rows = self._fetch("DELETE FROM projects WHERE id = ? RETURNING id", [project_id])
        return bool(rows)

    # -- experiences ------------------------------------------------------

    def list_experiences(self) -> List[Experience]:
        # current positions first, then most recent
        sql = f"""
            SELECT {_EXPERIENCE_COLUMNS} FROM experiences
            ORDER BY
                CASE WHEN end_date IS NULL THEN 1 ELSE 0 END DESC,
                COALESCE(end_date, start_date) DESC,
                start_date DESC,
                id DESC
        """
        return [Experience(**row) for row in self._fetch(sql)]

    def create_experience(self, data: ExperienceCreate) -> Experience:
        now = _utcnow()
        rows = self._fetch(
            f"""
            INSERT INTO experiences (company, position, start_date, end_date, description,
                                     achievements, technologies, company_logo, location,
                                     employment_type, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?::VARCHAR[], ?::VARCHAR[], ?, ?, ?, ?, ?)
            RETURNING {_EXPERIENCE_COLUMNS}
            """,
            [
                data.company.strip(),
                data.position.strip(),
                data.start_date,
                data.end_date,
                data.description.strip(),
                data.achievements,
                data.technologies,
                data.company_logo or None,
                data.location.strip(),
                data.employment_type,
                now,
                now,
            ],
        )
        return Experience(**rows[0])

    def get_experience(self, experience_id: int) -> Optional[Experience]:
        rows = self._fetch(
            f"SELECT {_EXPERIENCE_COLUMNS} FROM experiences WHERE id = ?", [experience_id]
        )
        return Experience(**rows[0]) if rows else None

    def update_experience(
        self, experience_id: int, data: ExperienceUpdate
    ) -> Optional[Experience]:
        row = self._update(
            "experiences",
            _EXPERIENCE_COLUMNS,
            experience_id,
            data.model_dump(exclude_unset=True),
            _UPDATABLE_EXPERIENCE_FIELDS,
            _NULLABLE_EXPERIENCE_FIELDS,
        )
        return Experience(**row) if row else None

    def delete_experience(self, experience_id: int) -> bool:
        rows = self._fetch("DELETE FROM experiences WHERE id = ? RETURNING id", [experience_id])
        return bool(rows)

    # -- contacts ---------------------------------------------------------

    def create_contact(self, data: ContactCreate) -> ContactMessage:
        rows = self._fetch(
            f"""
            INSERT INTO contacts (name, email, message, "read", created_at)
            VALUES (?, ?, ?, false, ?)
            RETURNING {_CONTACT_COLUMNS}
            """,
            [data.name, data.email, data.message, _utcnow()],
        )
        return ContactMessage(**rows[0])

    def list_contacts(self, unread_only: bool = False) -> List[ContactMessage]:
        sql = f"SELECT {_CONTACT_COLUMNS} FROM contacts"
        if unread_only:
            sql += ' WHERE "read" = false'
        sql += " ORDER BY created_at DESC, id DESC"
        return [ContactMessage(**row) for row in self._fetch(sql)]

    def get_contact(self, contact_id: int) -> Optional[ContactMessage]:
        rows = self._fetch(f"SELECT {_CONTACT_COLUMNS} FROM contacts WHERE id = ?", [contact_id])
        return ContactMessage(**rows[0]) if rows else None

    def mark_read(self, contact_id: int, read: bool = True) -> Optional[ContactMessage]:
        rows = self._fetch(
            f'UPDATE contacts SET "read" = ? WHERE id = ? RETURNING {_CONTACT_COLUMNS}',
            [read, contact_id],
        )
        return ContactMessage(**rows[0]) if rows else None

    def delete_contact(self, contact_id: int) -> bool:
        rows = self._fetch("DELETE FROM contacts WHERE id = ? RETURNING id", [contact_id])
        return bool(rows)

    # -- health -----------------------------------------------------------

    def health(self) -> Dict[str, Any]:
        start = time.perf_counter()
        report: Dict[str, Any] = {
            "connected": False,
            "tables_exist": {name: False for name in TABLES},
            "response_time_ms": 0,
        }
        try:
            self._execute("SELECT 1").fetchone()
            report["connected"] = True
            present = {
                row["table_name"]
                for row in self._fetch(
                    "SELECT table_name FROM information_schema.tables WHERE table_schema = 'main'"
                )
            }
            report["tables_exist"] = {name: name in present for name in TABLES}
        except DatabaseError as exc:
            report["error"] = str(exc)
        report["response_time_ms"] = int((time.perf_counter() - start) * 1000)
        report["healthy"] = report["connected"] and all(report["tables_exist"].values())
        return report
