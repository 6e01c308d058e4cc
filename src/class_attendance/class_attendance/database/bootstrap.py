from __future__ import annotations

import logging
import re
from contextlib import closing
from pathlib import Path
from typing import Iterable, Mapping

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

DEMO_USERS = (
    # (name, email, password, role)
    ("Demo Student", "student@example.com", "student123", "student"),
    ("Demo Admin", "admin@example.com", "admin123", "admin"),
)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql usable regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ``;`` outside quotes; ``--`` comment lines are dropped."""
    lines = [ln for ln in sql.splitlines() if not ln.lstrip().startswith("--")]
    buf: list[str] = []
    quote = None
    escape = False

    for ch in "\n".join(lines):
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in {"'", '"'}:
            quote = ch
        elif ch == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue
        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: Mapping) -> None:
    target = DBConfig.from_mapping(db_config)
    with closing(DatabaseConnection(target).connect(with_database=False)) as conn:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: Mapping, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    with closing(DatabaseConnection(DBConfig.from_mapping(db_config)).connect()) as conn:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    logger.info("Applied schema %s", schema_path)


def ensure_demo_users(db_config: Mapping) -> None:
    with closing(DatabaseConnection(DBConfig.from_mapping(db_config)).connect()) as conn:
        cur = conn.cursor(dictionary=True)
        for name, email, password, role in DEMO_USERS:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM users WHERE email=%s", (email,))
            if cur.fetchone():
                cur.execute(
                    "UPDATE users SET name=%s, password_hash=%s, role=%s, is_active=1 WHERE email=%s",
                    (name, password_hash, role, email),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO users (name, email, password_hash, role, auth_provider)
                    VALUES (%s, %s, %s, %s, 'local')
                    """,
                    (name, email, password_hash, role),
                )
        conn.commit()
    logger.info("Demo users ready")


def list_tables(db_config: Mapping) -> list[str]:
    with closing(DatabaseConnection(DBConfig.from_mapping(db_config)).connect()) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
