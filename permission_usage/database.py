from __future__ import annotations

import sqlite3
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .config import ensure_parent
from .models import (
    FilterSelection,
    PermissionApp,
    PermissionGroup,
    UsageKey,
    UsageRecord,
    UsageSnapshot,
)


class UsageStore:
    """
    Thin SQLite wrapper holding the usage snapshot and per-screen UI state.
    Uses WAL mode so a collector can write while a screen reads.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        ensure_parent(self.db_path)
        self._initialize()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize(self) -> None:
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS permission_groups (
                    name TEXT PRIMARY KEY,
                    label TEXT NOT NULL,
                    declaring_package TEXT NOT NULL,
                    icon TEXT
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS apps (
                    key TEXT PRIMARY KEY,
                    label TEXT NOT NULL,
                    icon TEXT,
                    system INTEGER NOT NULL DEFAULT 1
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS app_groups (
                    app_key TEXT NOT NULL,
                    group_name TEXT NOT NULL,
                    PRIMARY KEY (app_key, group_name)
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS usages (
                    app_key TEXT NOT NULL,
                    group_name TEXT NOT NULL,
                    access_time INTEGER NOT NULL,
                    PRIMARY KEY (app_key, group_name, access_time)
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS launcher_packages (
                    package TEXT PRIMARY KEY
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS ui_state (
                    screen TEXT PRIMARY KEY,
                    show_system INTEGER NOT NULL DEFAULT 0,
                    group_index INTEGER NOT NULL DEFAULT 0,
                    group_label TEXT,
                    time_index INTEGER NOT NULL DEFAULT 0,
                    updated_at INTEGER NOT NULL
                );
                """
            )
            conn.commit()

    # Permission groups and apps
    def upsert_group(self, group: PermissionGroup) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO permission_groups(name, label, declaring_package, icon)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(name)
                DO UPDATE SET label=excluded.label,
                              declaring_package=excluded.declaring_package,
                              icon=excluded.icon
                """,
                (group.name, group.label, group.declaring_package, group.icon),
            )
            conn.commit()

    def upsert_app(self, app: PermissionApp) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO apps(key, label, icon, system)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(key)
                DO UPDATE SET label=excluded.label, icon=excluded.icon, system=excluded.system
                """,
                (app.key, app.label, app.icon, int(app.system)),
            )
            conn.commit()

    def add_app_group(self, app_key: str, group_name: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO app_groups(app_key, group_name) VALUES (?, ?)",
                (app_key, group_name),
            )
            conn.commit()

    # Usage records
    def record_usage(self, app_key: str, group_name: str, access_time: int) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO app_groups(app_key, group_name) VALUES (?, ?)",
                (app_key, group_name),
            )
            conn.execute(
                "INSERT OR IGNORE INTO usages(app_key, group_name, access_time) VALUES (?, ?, ?)",
                (app_key, group_name, access_time),
            )
            conn.commit()

    def clear_usages(self, app_key: Optional[str] = None) -> None:
        with self._connect() as conn:
            if app_key is None:
                conn.execute("DELETE FROM usages")
            else:
                conn.execute("DELETE FROM usages WHERE app_key=?", (app_key,))
            conn.commit()

    # Launcher packages
    def set_launcher_packages(self, packages: Iterable[str]) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM launcher_packages")
            conn.executemany(
                "INSERT OR IGNORE INTO launcher_packages(package) VALUES (?)",
                [(p,) for p in packages],
            )
            conn.commit()

    def load_snapshot(self) -> UsageSnapshot:
        """
        Build a snapshot of everything stored. Usage records are listed most
        recent first per (app, group) pair.
        """
        with self._connect() as conn:
            group_rows = conn.execute(
                "SELECT name, label, declaring_package, icon FROM permission_groups ORDER BY rowid"
            ).fetchall()
            app_rows = conn.execute("SELECT key, label, icon, system FROM apps").fetchall()
            grant_rows = conn.execute(
                "SELECT app_key, group_name FROM app_groups ORDER BY rowid"
            ).fetchall()
            usage_rows = conn.execute(
                """
                SELECT app_key, group_name, access_time FROM usages
                ORDER BY app_key, group_name, access_time DESC
                """
            ).fetchall()
            launcher_rows = conn.execute("SELECT package FROM launcher_packages").fetchall()

        groups = [
            PermissionGroup(
                name=row["name"],
                label=row["label"],
                declaring_package=row["declaring_package"],
                icon=row["icon"],
            )
            for row in group_rows
        ]
        labels = {g.name: g.label for g in groups}
        apps = {
            row["key"]: PermissionApp(
                key=row["key"], label=row["label"], icon=row["icon"], system=bool(row["system"])
            )
            for row in app_rows
        }

        apps_by_group: Dict[str, List[PermissionApp]] = {}
        for row in grant_rows:
            app = apps.get(row["app_key"])
            if app is None or row["group_name"] not in labels:
                continue
            apps_by_group.setdefault(row["group_name"], []).append(app)

        usages: Dict[UsageKey, List[UsageRecord]] = {}
        for row in usage_rows:
            label = labels.get(row["group_name"])
            if label is None:
                continue
            usages.setdefault((row["app_key"], row["group_name"]), []).append(
                UsageRecord(
                    app_key=row["app_key"],
                    group_name=row["group_name"],
                    group_label=label,
                    access_time=row["access_time"],
                )
            )

        return UsageSnapshot(
            groups=groups,
            apps_by_group=apps_by_group,
            usages=usages,
            launcher_packages=frozenset(row["package"] for row in launcher_rows),
        )

    # UI state
    def load_ui_state(self, screen: str) -> FilterSelection:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT show_system, group_index, group_label, time_index FROM ui_state WHERE screen=?",
                (screen,),
            ).fetchone()
        if row is None:
            return FilterSelection()
        return FilterSelection(
            group_label=row["group_label"],
            group_index=row["group_index"],
            time_index=row["time_index"],
            show_system=bool(row["show_system"]),
        )

    def save_ui_state(self, screen: str, selection: FilterSelection) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO ui_state(screen, show_system, group_index, group_label, time_index, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(screen)
                DO UPDATE SET show_system=excluded.show_system,
                              group_index=excluded.group_index,
                              group_label=excluded.group_label,
                              time_index=excluded.time_index,
                              updated_at=excluded.updated_at
                """,
                (
                    screen,
                    int(selection.show_system),
                    selection.group_index,
                    selection.group_label,
                    selection.time_index,
                    int(time.time()),
                ),
            )
            conn.commit()
