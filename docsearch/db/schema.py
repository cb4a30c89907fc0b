SCHEMA_SQL = """
-- Base table
CREATE TABLE IF NOT EXISTS documents (
  id                INTEGER PRIMARY KEY AUTOINCREMENT,
  filename          TEXT NOT NULL,
  original_filename TEXT NOT NULL,
  file_size         INTEGER NOT NULL,
  file_type         TEXT NOT NULL,
  content_text      TEXT NOT NULL,
  created_at        TEXT NOT NULL, -- ISO8601
  updated_at        TEXT NOT NULL  -- ISO8601
);

CREATE INDEX IF NOT EXISTS idx_documents_created
ON documents(created_at DESC);

-- External-content FTS5 table (links to documents via id)
CREATE VIRTUAL TABLE IF NOT EXISTS documents_fts USING fts5(
  content_text,
  content='documents',
  content_rowid='id'
);

-- Triggers to keep FTS in sync
CREATE TRIGGER IF NOT EXISTS documents_ai AFTER INSERT ON documents BEGIN
  INSERT INTO documents_fts(rowid, content_text)
  VALUES (new.id, new.content_text);
END;

CREATE TRIGGER IF NOT EXISTS documents_ad AFTER DELETE ON documents BEGIN
  INSERT INTO documents_fts(documents_fts, rowid, content_text)
  VALUES('delete', old.id, old.content_text);
END;

CREATE TRIGGER IF NOT EXISTS documents_au AFTER UPDATE ON documents BEGIN
  INSERT INTO documents_fts(documents_fts, rowid, content_text)
  VALUES('delete', old.id, old.content_text);
  INSERT INTO documents_fts(rowid, content_text)
  VALUES (new.id, new.content_text);
END;
"""


def apply_schema(conn) -> None:
    conn.executescript(SCHEMA_SQL)
