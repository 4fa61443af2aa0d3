from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Connection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimestampTriggers:
    table: str
    entity: str
    tracked: Tuple[str, ...]

    @property
    def created_trigger(self) -> str:
        return f"{self.table}_created_at_trigger"

    @property
    def updated_trigger(self) -> str:
        return f"{self.table}_updated_at_trigger"


TRIGGERS: List[TimestampTriggers] = [
    TimestampTriggers("cities", "city", ("name",)),
    TimestampTriggers("weather", "weather", ("temperature", "humidity", "city_id")),
    TimestampTriggers("predictions", "prediction", ("temperature", "humidity", "forecast_for")),
]


# ---------- PostgreSQL ----------
def _pg_exists(conn: Connection, trigger: str, table: str) -> bool:
    return bool(
        conn.execute(
            text(
                "SELECT EXISTS (SELECT 1 FROM pg_trigger "
                "WHERE tgname = :name AND tgrelid = CAST(:table AS regclass))"
            ),
            {"name": trigger, "table": table},
        ).scalar()
    )


def _pg_statements(t: TimestampTriggers, which: str) -> List[str]:
    if which == "created":
        func = f"set_{t.entity}_created_at"
        return [
            f"""
            CREATE OR REPLACE FUNCTION {func}()
            RETURNS TRIGGER AS $$
            BEGIN
                NEW.created_at = NOW();
                RETURN NEW;
            END;
            $$ LANGUAGE plpgsql
            """,
            f"""
            CREATE TRIGGER {t.created_trigger}
            BEFORE INSERT ON {t.table}
            FOR EACH ROW
            EXECUTE FUNCTION {func}()
            """,
        ]

    func = f"update_{t.entity}_timestamp"
    changed = " OR ".join(f"OLD.{c} IS DISTINCT FROM NEW.{c}" for c in t.tracked)
    return [
        f"""
        CREATE OR REPLACE FUNCTION {func}()
        RETURNS TRIGGER AS $$
        BEGIN
            IF {changed} THEN
                NEW.updated_at = NOW();
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
        """,
        f"""
        CREATE TRIGGER {t.updated_trigger}
        BEFORE UPDATE ON {t.table}
        FOR EACH ROW
        EXECUTE FUNCTION {func}()
        """,
    ]


# ---------- SQLite ----------
def _sqlite_exists(conn: Connection, trigger: str, table: str) -> bool:
    return bool(
        conn.execute(
            text(
                "SELECT EXISTS (SELECT 1 FROM sqlite_master "
                "WHERE type = 'trigger' AND name = :name AND tbl_name = :table)"
            ),
            {"name": trigger, "table": table},
        ).scalar()
    )


def _sqlite_statements(t: TimestampTriggers, which: str) -> List[str]:
    if which == "created":
        return [
            f"""
            CREATE TRIGGER {t.created_trigger}
            AFTER INSERT ON {t.table}
            FOR EACH ROW
            BEGIN
                UPDATE {t.table} SET created_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
            END
            """
        ]

    columns = ", ".join(t.tracked)
    changed = " OR ".join(f"OLD.{c} IS NOT NEW.{c}" for c in t.tracked)
    return [
        f"""
        CREATE TRIGGER {t.updated_trigger}
        AFTER UPDATE OF {columns} ON {t.table}
        FOR EACH ROW
        WHEN {changed}
        BEGIN
            UPDATE {t.table} SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
        END
        """
    ]


_DIALECTS = {
    "postgresql": (_pg_exists, _pg_statements),
    "sqlite": (_sqlite_exists, _sqlite_statements),
}


def install_timestamp_triggers(conn: Connection) -> int:
    """Installiert fehlende Trigger, gibt die Anzahl neu angelegter zurück."""
    dialect = conn.dialect.name
    if dialect not in _DIALECTS:
        raise ValueError(f"unsupported database dialect: {dialect}")
    exists, statements = _DIALECTS[dialect]

    created = 0
    for t in TRIGGERS:
        for which, name in (("created", t.created_trigger), ("updated", t.updated_trigger)):
            if exists(conn, name, t.table):
                continue
            for stmt in statements(t, which):
                conn.execute(text(stmt))
            logger.info("created trigger %s on %s", name, t.table)
            created += 1
    return created
