import sqlite3

import pytest

from backend.src.services.database import DatabaseService, init_database


def test_initialize_is_idempotent(tmp_path):
    path = tmp_path / "nested" / "notes.db"

    assert init_database(path) == path
    assert init_database(path) == path

    conn = DatabaseService(path).connect()
    try:
        tables = {
            row["name"] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
    finally:
        conn.close()
    expected = {"notes", "note_links", "note_tags", "categories", "tags"}
    assert expected | {"posts", "post_tags", "comments"} <= tables


def test_foreign_keys_are_enforced(db_service):
    conn = db_service.connect()
    try:
        with pytest.raises(sqlite3.IntegrityError):
            with conn:
                conn.execute(
                    """
                    INSERT INTO note_links (id, source_id, target_id, position, created_at)
                    VALUES ('l1', 'missing', 'missing', 0, '2025-01-01')
                    """
                )
    finally:
        conn.close()


def test_casefold_function_is_registered(db_service):
    conn = db_service.connect()
    try:
        row = conn.execute("SELECT casefold('ÄPFEL Straße') AS folded").fetchone()
    finally:
        conn.close()
    assert row["folded"] == "äpfel strasse"
