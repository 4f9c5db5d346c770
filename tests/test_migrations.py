"""Alembic migrations produce the staff table the ORM expects."""
from __future__ import annotations

from sqlalchemy import create_engine, inspect

from yatri.database import run_migrations


def test_run_migrations_creates_staff_table(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"

    run_migrations(database_url=url)

    inspector = inspect(create_engine(url))
    columns = {column["name"] for column in inspector.get_columns("staff")}
    assert columns == {
        "id",
        "name",
        "staff_id",
        "email",
        "password",
        "progress",
        "quiz_score",
        "created_by",
    }
    indexes = {index["name"]: index for index in inspector.get_indexes("staff")}
    assert indexes["ix_staff_staff_id"]["unique"]
