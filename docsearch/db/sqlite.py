import os
import sqlite3


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def get_connection(db_path: str) -> sqlite3.Connection:
    dir_name = os.path.dirname(db_path)
    if dir_name:
        os.makedirs(dir_name, exist_ok=True)
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    # SQLite's lower() only folds ASCII.
    conn.create_function("unicode_lower", 1, _unicode_lower, deterministic=True)
    return conn
