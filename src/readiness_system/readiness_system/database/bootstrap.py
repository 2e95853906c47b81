"""Schema bootstrap for a fresh MySQL database.

`apply_schema` is safe to run on every start: schema.sql only uses
CREATE TABLE IF NOT EXISTS.
"""

from __future__ import annotations

import logging
import re
from contextlib import closing
from pathlib import Path
from typing import Any, Iterator, List, Mapping

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

# The database name comes from settings, never from the file.
_DATABASE_SELECTION = re.compile(r"(?im)^\s*(?:CREATE\s+DATABASE|USE)\b[^;]*;")


def iter_statements(sql: str) -> Iterator[str]:
    """Split a SQL script on top-level semicolons.

    Quoted strings, backtick identifiers and '--' line comments are respected.
    DELIMITER blocks are not supported.
    """
    buf: List[str] = []
    quote = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote:
            buf.append(ch)
            if ch == "\\" and i + 1 < len(sql):
                buf.append(sql[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "'\"`":
            quote = ch
            buf.append(ch)
        elif sql.startswith("--", i):
            newline = sql.find("\n", i)
            i = len(sql) if newline == -1 else newline
            continue
        elif ch == ";":
            statement = "".join(buf).strip()
            if statement:
                yield statement
            buf = []
        else:
            buf.append(ch)
        i += 1

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(config: DBConfig) -> None:
    conn = DatabaseConnection(config).connect(with_database=False)
    try:
        with closing(conn.cursor()) as cur:
            cur.execute(
                f"CREATE DATABASE IF NOT EXISTS `{config.database}` "
                "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
            )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: Mapping[str, Any], *, schema_path: str | Path) -> int:
    """Create the database if needed and run every statement of schema.sql.

    Returns the number of statements executed.
    """
    config = DBConfig.from_settings(db_config)
    ensure_database_exists(config)

    schema_path = Path(schema_path)
    sql = _DATABASE_SELECTION.sub("", schema_path.read_text(encoding="utf-8"))

    conn = DatabaseConnection(config).connect()
    try:
        count = 0
        with closing(conn.cursor()) as cur:
            for statement in iter_statements(sql):
                cur.execute(statement)
                count += 1
        conn.commit()
    except Exception:
        conn.rollback()
        logger.error("Applying %s to %s failed after %d statements", schema_path.name, config.describe(), count)
        raise
    finally:
        conn.close()

    logger.info("Applied %d statements from %s to %s", count, schema_path.name, config.describe())
    return count


def list_tables(db_config: Mapping[str, Any]) -> List[str]:
    conn = DatabaseConnection(DBConfig.from_settings(db_config)).connect()
    try:
        with closing(conn.cursor()) as cur:
            cur.execute("SHOW TABLES")
            return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
