"""SQLite database setup and report storage.

Table: reports
- id (text, primary key, opaque uuid)
- url (text)
- site_name (text)
- overall_score (integer)
- summary (text)
- categories / strengths / improvements (text, JSON lists)
- tool (text: plg | accessibility | structure | seo-aeo)
- slug (text, unique)
- created_at (text, ISO timestamp)

Slugs are allocated with a read-then-insert. The UNIQUE constraint turns a
concurrent collision into an IntegrityError, which is retried with a
freshly computed slug.
"""

import json
import logging
import os
import re
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv

from models import AuditMode, tool_for
from schemas import AuditReport

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")

logger = logging.getLogger(__name__)

DB_PATH = Path(os.getenv("REPORTS_DB_PATH") or Path(__file__).parent / "shrinktools.db")
SLUG_INSERT_ATTEMPTS = 3

_NUMERIC_SUFFIX = re.compile(r"-(\d+)$")
_SLUG_UNSAFE = re.compile(r"[^a-z0-9-]")


def get_connection() -> sqlite3.Connection:
    """Return a connection to the SQLite database."""
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    """Create the reports table if it does not exist."""
    conn = get_connection()
    try:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS reports (
                id TEXT PRIMARY KEY,
                url TEXT NOT NULL,
                site_name TEXT NOT NULL,
                overall_score INTEGER NOT NULL,
                summary TEXT NOT NULL,
                categories TEXT NOT NULL,
                strengths TEXT NOT NULL,
                improvements TEXT NOT NULL,
                tool TEXT NOT NULL,
                slug TEXT NOT NULL UNIQUE,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_reports_created_at ON reports (created_at)")
        conn.commit()
    finally:
        conn.close()


def generate_slug(site_name: str, tool: AuditMode | str) -> str:
    """Base slug for a hostname and tool, e.g. "example-com-plg-assessment"."""
    domain = site_name.strip().lower()
    if domain.startswith("www."):
        domain = domain[4:]
    domain = _SLUG_UNSAFE.sub("", domain.replace(".", "-"))
    return f"{domain}-{tool_for(tool).slug_suffix}"


def next_available_slug(conn: sqlite3.Connection, base_slug: str) -> str:
    """Base slug, or base slug with the next numeric suffix if it is taken."""
    row = conn.execute(
        """
        SELECT slug FROM reports
        WHERE slug LIKE ?
        ORDER BY created_at DESC, rowid DESC
        LIMIT 1
        """,
        (f"{base_slug}%",),
    ).fetchone()
    if row is None:
        return base_slug

    match = _NUMERIC_SUFFIX.search(row["slug"])
    if match:
        return f"{base_slug}-{int(match.group(1)) + 1}"
    return f"{base_slug}-2"


def _row_to_report(row: sqlite3.Row) -> dict:
    return {
        "id": row["id"],
        "url": row["url"],
        "site_name": row["site_name"],
        "overall_score": row["overall_score"],
        "summary": row["summary"],
        "categories": json.loads(row["categories"]),
        "strengths": json.loads(row["strengths"]),
        "improvements": json.loads(row["improvements"]),
        "tool": row["tool"],
        "slug": row["slug"],
        "created_at": row["created_at"],
    }


def save_report(report: AuditReport, url: str, site_name: str, tool: AuditMode) -> dict | None:
    """
    Store a report under a unique slug and return {"id", "slug"}.
    On any database failure, logs and returns None so the caller can
    still show the report.
    """
    tool = AuditMode(tool)
    data = report.model_dump()
    base_slug = generate_slug(site_name, tool)

    try:
        conn = get_connection()
    except sqlite3.Error as exc:
        logger.error("REPORT SAVE ERROR: could not connect: %s", exc)
        return None

    try:
        for attempt in range(1, SLUG_INSERT_ATTEMPTS + 1):
            report_id = uuid.uuid4().hex
            try:
                slug = next_available_slug(conn, base_slug)
                conn.execute(
                    """
                    INSERT INTO reports (
                        id, url, site_name, overall_score, summary,
                        categories, strengths, improvements, tool, slug, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        report_id,
                        url,
                        site_name,
                        data["overall_score"],
                        data["summary"],
                        json.dumps(data["categories"]),
                        json.dumps(data["strengths"]),
                        json.dumps(data["improvements"]),
                        tool.value,
                        slug,
                        datetime.now(timezone.utc).isoformat(),
                    ),
                )
                conn.commit()
                return {"id": report_id, "slug": slug}
            except sqlite3.IntegrityError as exc:
                conn.rollback()
                logger.warning("REPORT SLUG CONFLICT: %s attempt=%d: %s", base_slug, attempt, exc)
            except sqlite3.Error as exc:
                logger.error("REPORT SAVE ERROR: %s", exc)
                return None
    finally:
        conn.close()

    logger.error("REPORT SAVE ERROR: no free slug for %s after %d attempts", base_slug, SLUG_INSERT_ATTEMPTS)
    return None


def get_report_by_slug(slug: str) -> dict | None:
    """Fetch a stored report by slug."""
    conn = get_connection()
    try:
        row = conn.execute("SELECT * FROM reports WHERE slug = ?", (slug,)).fetchone()
        return _row_to_report(row) if row else None
    finally:
        conn.close()


def get_report_by_id(report_id: str) -> dict | None:
    """Fetch a stored report by its opaque id."""
    conn = get_connection()
    try:
        row = conn.execute("SELECT * FROM reports WHERE id = ?", (report_id,)).fetchone()
        return _row_to_report(row) if row else None
    finally:
        conn.close()


def get_report_slug(report_id: str) -> str | None:
    """Slug for a report id; None if the report is unknown or the lookup fails."""
    try:
        conn = get_connection()
    except sqlite3.Error as exc:
        logger.warning("REPORT LOOKUP ERROR: %s", exc)
        return None
    try:
        row = conn.execute("SELECT slug FROM reports WHERE id = ?", (report_id,)).fetchone()
        return row["slug"] if row else None
    except sqlite3.Error as exc:
        logger.warning("REPORT LOOKUP ERROR: %s", exc)
        return None
    finally:
        conn.close()
