from __future__ import annotations

from pathlib import Path

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from taskapi.core.logging import get_logger
from taskapi.db.engine import create_engine_from_url, ensure_database_parent_dir

SCHEMA_SCRIPT_PATH = Path(__file__).resolve().parent / "migrations" / "001_init.sql"

logger = get_logger("taskapi.db.bootstrap")


class SchemaBootstrapError(RuntimeError):
    """The schema script could not be read or applied. Fatal at startup."""


def _split_statements(script: str) -> list[str]:
    lines = [line for line in script.splitlines() if not line.lstrip().startswith("--")]
    return [statement.strip() for statement in "\n".join(lines).split(";") if statement.strip()]


def apply_schema(engine: Engine, *, script_path: Path = SCHEMA_SCRIPT_PATH) -> None:
    try:
        script = script_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaBootstrapError(f"Failed reading schema script {script_path}: {exc}") from exc

    statements = _split_statements(script)
    if not statements:
        raise SchemaBootstrapError(f"Schema script {script_path} contains no statements")

    try:
        with engine.begin() as connection:
            for statement in statements:
                connection.exec_driver_sql(statement)
    except SQLAlchemyError as exc:
        raise SchemaBootstrapError(f"Failed applying schema script {script_path}: {exc}") from exc

    logger.info("db.schema_applied", script=script_path.name, statements=len(statements))


def initialize_database(database_url: str, *, script_path: Path = SCHEMA_SCRIPT_PATH) -> None:
    ensure_database_parent_dir(database_url)
    engine = create_engine_from_url(database_url)
    try:
        apply_schema(engine, script_path=script_path)
    finally:
        engine.dispose()
