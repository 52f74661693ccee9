"""SQLite database layer for profiles, filters, scored listings and run history."""

import json
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from guidepost.core.config import SearchFilter
from guidepost.core.errors import InsertError, ProfileLoadError
from guidepost.core.schemas import NormalizedListing, PipelineRunSummary, ScoredListing
from guidepost.profile.schema import CandidateProfile

# SQLite's default SQLITE_MAX_VARIABLE_NUMBER is 999 on older builds.
_MAX_IN_PARAMS = 500

_PROFILES_TABLE = """
CREATE TABLE IF NOT EXISTS profiles (
    id              TEXT    PRIMARY KEY,
    label           TEXT    NOT NULL DEFAULT '',
    parsed_data     TEXT,
    is_active       INTEGER NOT NULL DEFAULT 1,
    created_at      TEXT    NOT NULL
);
"""

_SEARCH_FILTERS_TABLE = """
CREATE TABLE IF NOT EXISTS search_filters (
    profile_id      TEXT PRIMARY KEY REFERENCES profiles(id) ON DELETE CASCADE,
    filters_json    TEXT NOT NULL
);
"""

_JOB_LISTINGS_TABLE = """
CREATE TABLE IF NOT EXISTS job_listings (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    profile_id      TEXT REFERENCES profiles(id) ON DELETE SET NULL,
    title           TEXT    NOT NULL,
    company         TEXT    NOT NULL,
    location        TEXT,
    description     TEXT,
    url             TEXT,
    source          TEXT,
    posted_at       TEXT,
    discovered_at   TEXT    NOT NULL,
    match_score     INTEGER CHECK (match_score >= 0 AND match_score <= 100),
    match_reasoning TEXT,
    status          TEXT    NOT NULL DEFAULT 'new'
                    CHECK (status IN ('new', 'saved', 'dismissed', 'applied')),
    salary_info     TEXT,
    is_remote       INTEGER NOT NULL DEFAULT 0
);
"""

# Final dedup authority: overlapping runs race here, not in memory.
_JOB_LISTINGS_URL_INDEX = """
CREATE UNIQUE INDEX IF NOT EXISTS job_listings_url_idx
    ON job_listings(url) WHERE url IS NOT NULL;
"""

_PIPELINE_RUNS_TABLE = """
CREATE TABLE IF NOT EXISTS pipeline_runs (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    started_at      TEXT    NOT NULL,
    finished_at     TEXT,
    profiles        INTEGER NOT NULL,
    new_listings    INTEGER NOT NULL,
    summary_json    TEXT    NOT NULL
);
"""


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute(_PROFILES_TABLE)
    conn.execute(_SEARCH_FILTERS_TABLE)
    conn.execute(_JOB_LISTINGS_TABLE)
    conn.execute(_JOB_LISTINGS_URL_INDEX)
    conn.execute(_PIPELINE_RUNS_TABLE)
    conn.commit()
    return conn


# --- Profiles and filters ---


def save_profile(
    conn: sqlite3.Connection,
    profile: CandidateProfile,
    *,
    label: str = "",
    is_active: bool = True,
    profile_id: str | None = None,
) -> str:
    """Insert (or replace) a profile. Returns its id."""
    pid = profile_id or str(uuid.uuid4())
    conn.execute(
        """
        INSERT INTO profiles (id, label, parsed_data, is_active, created_at)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            label = excluded.label,
            parsed_data = excluded.parsed_data,
            is_active = excluded.is_active
        """,
        (pid, label, profile.model_dump_json(), int(is_active), datetime.now().isoformat()),
    )
    conn.commit()
    return pid


def load_active_profiles(
    conn: sqlite3.Connection,
    profile_id: str | None = None,
) -> list[tuple[str, CandidateProfile]]:
    """Return (id, profile) for every active profile with parsed data.

    Optionally scoped to a single profile id. Any database or validation
    failure is raised as ProfileLoadError.
    """
    sql = "SELECT id, parsed_data FROM profiles WHERE is_active = 1 AND parsed_data IS NOT NULL"
    params: tuple[str, ...] = ()
    if profile_id is not None:
        sql += " AND id = ?"
        params = (profile_id,)
    sql += " ORDER BY created_at, id"

    try:
        rows = conn.execute(sql, params).fetchall()
    except sqlite3.Error as e:
        msg = f"Failed to fetch profiles: {e}"
        raise ProfileLoadError(msg) from e

    profiles: list[tuple[str, CandidateProfile]] = []
    for row in rows:
        try:
            profiles.append((row["id"], CandidateProfile.model_validate_json(row["parsed_data"])))
        except ValidationError as e:
            msg = f"Stored profile {row['id']} is invalid: {e}"
            raise ProfileLoadError(msg) from e
    return profiles


def list_profiles(conn: sqlite3.Connection) -> list[sqlite3.Row]:
    """Return id, label, is_active and created_at for every stored profile."""
    return conn.execute(
        "SELECT id, label, is_active, created_at FROM profiles ORDER BY created_at, id"
    ).fetchall()


def save_search_filter(
    conn: sqlite3.Connection,
    profile_id: str,
    search_filter: SearchFilter,
) -> None:
    """Store the filter set for a profile (one per profile)."""
    conn.execute(
        """
        INSERT INTO search_filters (profile_id, filters_json)
        VALUES (?, ?)
        ON CONFLICT(profile_id) DO UPDATE SET filters_json = excluded.filters_json
        """,
        (profile_id, search_filter.model_dump_json()),
    )
    conn.commit()


def load_search_filter(conn: sqlite3.Connection, profile_id: str) -> SearchFilter | None:
    """Return the stored filter set for a profile, or None if it has none."""
    row = conn.execute(
        "SELECT filters_json FROM search_filters WHERE profile_id = ?",
        (profile_id,),
    ).fetchone()
    if row is None:
        return None
    return SearchFilter.model_validate_json(row["filters_json"])


# --- Listings ---


def find_existing_urls(conn: sqlite3.Connection, urls: list[str]) -> set[str]:
    """Return the subset of ``urls`` already stored, using batched IN queries."""
    unique = list(dict.fromkeys(urls))
    found: set[str] = set()
    for start in range(0, len(unique), _MAX_IN_PARAMS):
        chunk = unique[start:start + _MAX_IN_PARAMS]
        placeholders = ", ".join("?" for _ in chunk)
        rows = conn.execute(
            f"SELECT url FROM job_listings WHERE url IN ({placeholders})",  # noqa: S608
            chunk,
        ).fetchall()
        found.update(row["url"] for row in rows)
    return found


def insert_listing(conn: sqlite3.Connection, scored: ScoredListing) -> int:
    """Insert one scored listing with status 'new'. Returns the row ID.

    Raises InsertError on any database failure, including a duplicate URL.
    """
    listing: NormalizedListing = scored.listing
    try:
        cursor = conn.execute(
            """
            INSERT INTO job_listings
                (profile_id, title, company, location, description, url, source,
                 posted_at, discovered_at, match_score, match_reasoning, status,
                 salary_info, is_remote)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 'new', ?, ?)
            """,
            (
                listing.profile_id,
                listing.title,
                listing.company,
                listing.location,
                listing.description,
                listing.url,
                listing.source,
                listing.posted_at.isoformat() if listing.posted_at else None,
                datetime.now().isoformat(),
                scored.match.score,
                scored.match.reasoning,
                listing.salary_info,
                int(listing.is_remote),
            ),
        )
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        msg = f"Failed to insert \"{listing.title}\": {e}"
        raise InsertError(msg) from e
    return cursor.lastrowid or 0


def count_listings(conn: sqlite3.Connection, profile_id: str | None = None) -> int:
    """Count stored listings, optionally for one profile."""
    if profile_id is None:
        row = conn.execute("SELECT COUNT(*) FROM job_listings").fetchone()
    else:
        row = conn.execute(
            "SELECT COUNT(*) FROM job_listings WHERE profile_id = ?", (profile_id,)
        ).fetchone()
    return int(row[0])


# --- Run history ---


def record_pipeline_run(conn: sqlite3.Connection, summary: PipelineRunSummary) -> int:
    """Record a completed pipeline run. Returns the row ID."""
    cursor = conn.execute(
        """
        INSERT INTO pipeline_runs
            (started_at, finished_at, profiles, new_listings, summary_json)
        VALUES (?, ?, ?, ?, ?)
        """,
        (
            summary.started_at.isoformat(),
            summary.finished_at.isoformat() if summary.finished_at else None,
            len(summary.profiles),
            summary.new_listings,
            json.dumps({"totals": summary.totals(), **summary.model_dump(mode="json")}),
        ),
    )
    conn.commit()
    return cursor.lastrowid or 0
