import importlib
import threading

import pytest
from fastapi.testclient import TestClient

from docsearch.core import config
from docsearch.db import repo
from docsearch.db.schema import apply_schema
from docsearch.db.sqlite import get_connection


class FakeClock:
    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _add_doc(conn, lock, name, content, created_at=None, file_type="text/plain"):
    document_id, _ = repo.insert_document(
        conn, lock, name, name, content, len(content), file_type
    )
    if created_at:
        with lock:
            conn.execute(
                "UPDATE documents SET created_at = ? WHERE id = ?",
                (created_at, document_id),
            )
            conn.commit()
    return document_id


@pytest.fixture()
def client(tmp_path, monkeypatch) -> TestClient:
    monkeypatch.setenv("DB_PATH", str(tmp_path / "test.db"))
    monkeypatch.setenv("LOG_LEVEL", "CRITICAL")
    monkeypatch.setenv("APP_DISABLE_AUTOCREATE", "1")
    monkeypatch.delenv("CACHE_BACKEND", raising=False)
    config.get_settings.cache_clear()
    from docsearch import main as main_module

    importlib.reload(main_module)
    app = main_module.create_app()
    with TestClient(app) as client:
        yield client
    config.get_settings.cache_clear()


@pytest.fixture()
def db(tmp_path):
    conn = get_connection(str(tmp_path / "store.db"))
    apply_schema(conn)
    yield conn, threading.Lock()
    conn.close()


@pytest.fixture()
def add_doc():
    return _add_doc


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()
