from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from classgrid.db.base import Base
from classgrid.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "schedule_versions": {"id", "level", "semester", "groups", "status", "conflicts", "deleted_at"},
    "group_settings": {"id", "level", "semester", "num_groups", "group_names"},
    "students": {"id", "student_number", "level", "is_irregular", "group_name"},
    "scheduling_policy": {"id", "payload"},
}


def missing_schema_items(connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    for table_name, columns in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(columns - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_schema(create_missing: bool) -> None:
    import classgrid.models  # noqa: F401

    if create_missing:
        Base.metadata.create_all(bind=engine)
        logger.info("Database schema ensured")
        return

    try:
        with engine.connect() as connection:
            missing_tables, missing_columns = missing_schema_items(connection)
    except SQLAlchemyError:
        logger.exception("Database schema check failed at startup")
        return
    if missing_tables or missing_columns:
        logger.warning(
            "Database schema is behind the models (missing tables=%s, columns=%s); run alembic upgrade head",
            missing_tables,
            missing_columns,
        )
