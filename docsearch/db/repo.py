import sqlite3
import threading
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence, Tuple

from docsearch.core.text import clean_text

SQLITE_MAX_INTEGER = 2**63 - 1

_RESULT_COLUMNS = """
    d.id,
    d.filename,
    d.original_filename,
    d.file_size,
    d.file_type,
    d.content_text,
    d.created_at
"""

_RELEVANCE_MATCHES_SQL = """
WITH matches AS (
    SELECT rowid AS doc_id, -bm25(documents_fts) AS score
    FROM documents_fts
    WHERE documents_fts MATCH ?
    UNION ALL
    SELECT id AS doc_id, 0.0 AS score
    FROM documents
    WHERE instr(unicode_lower(original_filename), ?) > 0
),
scored AS (
    SELECT doc_id, MAX(score) AS score
    FROM matches
    GROUP BY doc_id
)
"""


def _now_iso() -> str:
    return (
        datetime.now(timezone.utc)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z")
    )


def insert_document(
    conn,
    lock: threading.Lock,
    filename: str,
    original_filename: str,
    content_text: str,
    file_size: int,
    file_type: str,
) -> Tuple[int, str]:
    created_at = _now_iso()
    with lock:
        cursor = conn.execute(
            """
            INSERT INTO documents (filename, original_filename, file_size, file_type, content_text, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                filename,
                original_filename,
                file_size,
                file_type,
                clean_text(content_text),
                created_at,
                created_at,
            ),
        )
        conn.commit()
    return int(cursor.lastrowid), created_at


def get_document(conn, lock: threading.Lock, document_id: int) -> Optional[dict[str, Any]]:
    with lock:
        row = conn.execute(
            """
            SELECT id, original_filename, content_text, file_type, created_at
            FROM documents
            WHERE id = ?;
            """,
            (document_id,),
        ).fetchone()
    return dict(row) if row else None


def list_documents(
    conn,
    lock: threading.Lock,
    page: int,
    limit: int,
) -> Tuple[List[dict[str, Any]], int]:
    window = _page_window(limit, (page - 1) * limit)
    rows = []
    with lock:
        if window:
            rows = conn.execute(
                """
                SELECT id, filename, original_filename, file_size, file_type, created_at, updated_at
                FROM documents
                ORDER BY created_at DESC, id DESC
                LIMIT ? OFFSET ?;
                """,
                window,
            ).fetchall()
        total = conn.execute("SELECT COUNT(*) FROM documents;").fetchone()[0]
    return [dict(row) for row in rows], int(total)


def count_all_documents(conn, lock: threading.Lock) -> int:
    with lock:
        row = conn.execute("SELECT COUNT(*) FROM documents;").fetchone()
    return int(row[0]) if row else 0


def ping(conn, lock: threading.Lock) -> bool:
    try:
        with lock:
            conn.execute("SELECT 1;").fetchone()
    except sqlite3.Error:
        return False
    return True


def _substring_clause(needles: Sequence[str]) -> Tuple[str, List[str]]:
    conditions = []
    params: List[str] = []
    for needle in needles:
        conditions.append(
            "instr(unicode_lower(d.content_text), ?) > 0"
            " OR instr(unicode_lower(d.original_filename), ?) > 0"
        )
        params.extend([needle, needle])
    return " OR ".join(conditions), params


def _page_window(limit: int, offset: int) -> Optional[Tuple[int, int]]:
    # Offsets SQLite cannot bind lie past the last row anyway.
    if offset > SQLITE_MAX_INTEGER:
        return None
    return min(limit, SQLITE_MAX_INTEGER), offset


def _substring_rows(
    conn, needles: Sequence[str], limit: int, offset: int
) -> List[dict[str, Any]]:
    where, params = _substring_clause(needles)
    rows = conn.execute(
        f"""
        SELECT {_RESULT_COLUMNS}, 1.0 AS score
        FROM documents d
        WHERE {where}
        ORDER BY d.created_at DESC, d.id DESC
        LIMIT ? OFFSET ?;
        """,
        (*params, limit, offset),
    ).fetchall()
    return [dict(row) for row in rows]


def _substring_count(conn, needles: Sequence[str]) -> int:
    where, params = _substring_clause(needles)
    row = conn.execute(
        f"""
        SELECT COUNT(*)
        FROM documents d
        WHERE {where};
        """,
        params,
    ).fetchone()
    return int(row[0]) if row else 0


def search_substring(
    conn,
    lock: threading.Lock,
    needles: Sequence[str],
    limit: int,
    offset: int,
) -> List[dict[str, Any]]:
    window = _page_window(limit, offset)
    if window is None:
        return []
    with lock:
        return _substring_rows(conn, needles, *window)


def substring_page(
    conn,
    lock: threading.Lock,
    needles: Sequence[str],
    limit: int,
    offset: int,
) -> Tuple[List[dict[str, Any]], int]:
    window = _page_window(limit, offset)
    with lock:
        rows = _substring_rows(conn, needles, *window) if window else []
        total = _substring_count(conn, needles)
    return rows, total


def fts_query(tokens: Sequence[str]) -> str:
    """Build an any-term FTS5 query; every token is quoted so punctuation is literal."""
    quoted = ['"' + token.replace('"', '""') + '"' for token in tokens]
    return " OR ".join(quoted)


def _relevance_rows(
    conn,
    query: str,
    tokens: Sequence[str],
    order_by_date: bool,
    limit: int,
    offset: int,
) -> List[dict[str, Any]]:
    order = (
        "d.created_at DESC, d.id DESC"
        if order_by_date
        else "s.score DESC, d.created_at DESC, d.id DESC"
    )
    rows = conn.execute(
        f"""
        {_RELEVANCE_MATCHES_SQL}
        SELECT {_RESULT_COLUMNS}, s.score AS score
        FROM scored s
        JOIN documents d ON d.id = s.doc_id
        ORDER BY {order}
        LIMIT ? OFFSET ?;
        """,
        (fts_query(tokens), query.lower(), limit, offset),
    ).fetchall()
    return [dict(row) for row in rows]


def _relevance_count(conn, query: str, tokens: Sequence[str]) -> int:
    row = conn.execute(
        f"""
        {_RELEVANCE_MATCHES_SQL}
        SELECT COUNT(*) FROM scored;
        """,
        (fts_query(tokens), query.lower()),
    ).fetchone()
    return int(row[0]) if row else 0


def search_relevance(
    conn,
    lock: threading.Lock,
    query: str,
    tokens: Sequence[str],
    order_by_date: bool,
    limit: int,
    offset: int,
) -> List[dict[str, Any]]:
    window = _page_window(limit, offset)
    if window is None:
        return []
    with lock:
        return _relevance_rows(conn, query, tokens, order_by_date, *window)


def relevance_page(
    conn,
    lock: threading.Lock,
    query: str,
    tokens: Sequence[str],
    order_by_date: bool,
    limit: int,
    offset: int,
) -> Tuple[List[dict[str, Any]], int]:
    window = _page_window(limit, offset)
    with lock:
        rows = (
            _relevance_rows(conn, query, tokens, order_by_date, *window)
            if window
            else []
        )
        total = _relevance_count(conn, query, tokens)
    return rows, total
