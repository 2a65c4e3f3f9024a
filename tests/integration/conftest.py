import os
from collections.abc import Generator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import psycopg
import pytest

from docview.config.settings import Settings
from docview.database.connection import close_pool, get_connection, init_pool
from docview.database.repositories.document_repository import DocumentRepository
from docview.lifecycle.models import Document, DocumentMetadata

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "docview" / "database" / "schema.sql"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "docview_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            conn.execute(SCHEMA_PATH.read_text())
            conn.commit()
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env vars.")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(
    integration_pool: None,
) -> Generator[list[tuple[str, int]], None, None]:
    cleanup: list[tuple[str, int]] = []
    yield cleanup
    if not cleanup:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for table, row_id in cleanup:
                if table == "document_index_jobs":
                    cur.execute("DELETE FROM document_index_jobs WHERE document_id = %s", (row_id,))
                elif table == "document_search_index":
                    cur.execute("DELETE FROM document_search_index WHERE document_id = %s", (row_id,))
            for table, row_id in cleanup:
                if table == "documents":
                    cur.execute("DELETE FROM documents WHERE id = %s", (row_id,))
            for table, row_id in cleanup:
                if table == "users":
                    cur.execute("DELETE FROM users WHERE id = %s", (row_id,))
        conn.commit()


@pytest.fixture
def seed_user(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[tuple[str, int]],
) -> tuple[int, str]:
    with db_conn.cursor() as cur:
        cur.execute("INSERT INTO users (username) VALUES ('jsmith') RETURNING id")
        row = cur.fetchone()
        assert row is not None
        user_id = row[0]
    db_conn.commit()
    integration_cleanup.append(("users", user_id))
    return user_id, "jsmith"


@pytest.fixture
def seed_document(integration_cleanup: list[tuple[str, int]]):
    """Factory inserting a documents row; removed (with its history) after the test."""
    repo = DocumentRepository()

    def _seed(**overrides: Any) -> Document:
        fields: dict[str, Any] = {
            "id": None,
            "filename": "policy_renewal.pdf",
            "metadata": DocumentMetadata(
                policy_number="PLCY-12345", document_description="Policy Document"
            ),
            "created_at": datetime(2023, 5, 1, 9, 0, tzinfo=UTC),
            "updated_at": datetime(2023, 5, 1, 9, 0, tzinfo=UTC),
        }
        fields.update(overrides)
        document = repo.insert_document(Document(**fields))
        assert document.id is not None
        integration_cleanup.append(("documents", document.id))
        integration_cleanup.append(("document_index_jobs", document.id))
        integration_cleanup.append(("document_search_index", document.id))
        return document

    return _seed
