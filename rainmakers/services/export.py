"""CSV exports for the admin dashboard."""
import csv
import io
from datetime import datetime
from typing import Iterable, List, Sequence

from rainmakers.models.domain import Pledge, Submission

PLEDGE_COLUMNS = [
    "ID", "GC Username", "Email", "Title", "Cache Type", "Cache Size",
    "Suburb", "State", "Status", "Concept Notes", "Created At",
]
SUBMISSION_COLUMNS = [
    "ID", "GC Code", "Cache Name", "GC Username", "Email", "Type",
    "Difficulty", "Terrain", "Suburb", "State", "Hidden Date", "Created At",
]
CONFIRMATION_COLUMNS = [
    "Username", "Email", "GC Code", "Cache Name", "Type", "Difficulty",
    "Terrain", "Suburb", "State", "Notes", "Pledge ID", "Created At",
]


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, float):
        return f"{value:g}"
    return str(getattr(value, "value", value))


def to_csv(header: Sequence[str], rows: Iterable[Sequence]) -> str:
    """
    Header row as-is, then every data cell double-quoted with ``"`` doubled.

    Rows are separated by ``\\n`` with no trailing newline.
    """
    buf = io.StringIO()
    buf.write(",".join(header) + "\n")
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        writer.writerow([_cell(value) for value in row])
    return buf.getvalue()[:-1]


def pledges_csv(pledges: List[Pledge]) -> str:
    rows = (
        [
            p.id, p.gc_username, p.user.email if p.user else "", p.title,
            p.cache_type, p.cache_size, p.approx_suburb, p.approx_state,
            p.status, p.concept_notes, p.created_at,
        ]
        for p in pledges
    )
    return to_csv(PLEDGE_COLUMNS, rows)


def submissions_csv(submissions: List[Submission]) -> str:
    rows = (
        [
            s.id, s.gc_code, s.cache_name, s.gc_username, s.user.email if s.user else "",
            s.type, s.difficulty, s.terrain, s.suburb, s.state, s.hidden_date, s.created_at,
        ]
        for s in submissions
    )
    return to_csv(SUBMISSION_COLUMNS, rows)


def confirmations_csv(submissions: List[Submission]) -> str:
    """Submissions keyed by the owner's current profile username rather than the snapshot."""
    rows = (
        [
            s.user.gc_username if s.user else "", s.user.email if s.user else "",
            s.gc_code, s.cache_name, s.type, s.difficulty, s.terrain,
            s.suburb, s.state, s.notes, s.pledge_id, s.created_at,
        ]
        for s in submissions
    )
    return to_csv(CONFIRMATION_COLUMNS, rows)


def export_filename(kind: str) -> str:
    return f"rainmakers-{kind}-{datetime.utcnow().date().isoformat()}.csv"
