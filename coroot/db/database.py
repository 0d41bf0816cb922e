"""SQLite storage of projects and their settings."""

from __future__ import annotations

import json
import secrets
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

from coroot.db.integrations import IntegrationType, Integrations, IntegrationsPrometheus
from coroot.model.categories import APPLICATION, is_builtin, is_default

DEFAULT_REFRESH_INTERVAL = 30

_ID_ALPHABET = "_-0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


class NotFoundError(LookupError):
    """The requested record does not exist."""


class ConflictError(Exception):
    """The record clashes with an existing one."""


def nano_id(size: int = 8) -> str:
    """A random URL-safe identifier."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(size))


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


@dataclass
class ApplicationCategorySettings:
    notify_of_deployments: bool = False


@dataclass
class Settings:
    application_categories: dict[str, list[str]] | None = None
    application_category_settings: dict[str, ApplicationCategorySettings] | None = None
    integrations: Integrations = field(default_factory=Integrations)

    def to_dict(self) -> dict[str, Any]:
        cats = self.application_categories
        cat_settings = self.application_category_settings
        return {
            "application_categories": (
                {k: list(v) if v is not None else None for k, v in cats.items()}
                if cats is not None
                else None
            ),
            "application_category_settings": (
                {k: {"notify_of_deployments": v.notify_of_deployments}
                 for k, v in cat_settings.items()}
                if cat_settings is not None
                else None
            ),
            "integrations": self.integrations.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Settings:
        data = data or {}
        cats = data.get("application_categories")
        cat_settings = data.get("application_category_settings")
        return cls(
            application_categories=(
                {k: list(v) if v is not None else None for k, v in cats.items()}
                if cats is not None
                else None
            ),
            application_category_settings=(
                {
                    k: ApplicationCategorySettings(
                        notify_of_deployments=bool((v or {}).get("notify_of_deployments", False))
                    )
                    for k, v in cat_settings.items()
                }
                if cat_settings is not None
                else None
            ),
            integrations=Integrations.from_dict(data.get("integrations")),
        )


@dataclass
class Project:
    id: str = ""
    name: str = ""
    prometheus: IntegrationsPrometheus = field(default_factory=IntegrationsPrometheus)
    settings: Settings = field(default_factory=Settings)

    def _apply_defaults(self) -> None:
        if self.prometheus.refresh_interval == 0:
            self.prometheus.refresh_interval = DEFAULT_REFRESH_INTERVAL
        cat_settings = self.settings.application_category_settings
        if cat_settings is None or APPLICATION not in cat_settings:
            if cat_settings is None:
                cat_settings = self.settings.application_category_settings = {}
            cat_settings[APPLICATION] = ApplicationCategorySettings(notify_of_deployments=True)
        slack = self.settings.integrations.slack
        if slack is not None:
            if not slack.incidents:
                slack.incidents = slack.enabled
            if not slack.deployments:
                slack.deployments = slack.enabled


_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS check_configs (
        project_id TEXT NOT NULL REFERENCES project(id),
        application_id TEXT NOT NULL,
        configs TEXT,
        PRIMARY KEY (project_id, application_id)
    )""",
    """
    CREATE TABLE IF NOT EXISTS incident (
        project_id TEXT NOT NULL REFERENCES project(id),
        application_id TEXT NOT NULL,
        key TEXT NOT NULL,
        opened_at INT NOT NULL,
        resolved_at INT NOT NULL DEFAULT 0,
        severity INT NOT NULL,
        PRIMARY KEY (project_id, application_id, opened_at)
    )""",
    "CREATE UNIQUE INDEX IF NOT EXISTS incident_key ON incident (project_id, key)",
    """
    CREATE TABLE IF NOT EXISTS incident_notification (
        project_id TEXT NOT NULL REFERENCES project(id),
        application_id TEXT NOT NULL,
        incident_key TEXT NOT NULL,
        status INT NOT NULL,
        destination TEXT NOT NULL,
        timestamp INT NOT NULL,
        sent_at INT NOT NULL DEFAULT 0,
        external_key TEXT NOT NULL DEFAULT '',
        details TEXT
    )""",
    """
    CREATE TABLE IF NOT EXISTS application_deployment (
        project_id TEXT NOT NULL REFERENCES project(id),
        application_id TEXT NOT NULL,
        name TEXT NOT NULL,
        started_at INT NOT NULL,
        finished_at INT NOT NULL DEFAULT 0,
        details TEXT,
        metrics_snapshot TEXT,
        notifications TEXT,
        PRIMARY KEY (project_id, application_id, started_at)
    )""",
    """
    CREATE TABLE IF NOT EXISTS application_settings (
        project_id TEXT NOT NULL REFERENCES project(id),
        application_id TEXT NOT NULL,
        settings TEXT NOT NULL,
        PRIMARY KEY (project_id, application_id)
    )""",
)


class Database:
    """A connection to the SQLite database holding projects and their data."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self.connection = connection

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self.connection.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run statements atomically; roll back if the block raises."""
        self.connection.execute("BEGIN")
        try:
            yield self.connection
        except BaseException:
            self.connection.execute("ROLLBACK")
            raise
        self.connection.execute("COMMIT")

    def _add_column_if_not_exists(self, table: str, column: str, data_type: str) -> None:
        rows = self.connection.execute(f"SELECT name FROM pragma_table_info('{table}')")
        if column in {row[0] for row in rows}:
            return
        self.connection.execute(f"ALTER TABLE {table} ADD COLUMN {column} {data_type}")

    def migrate_default(self) -> None:
        """Create every table the application uses, if it does not exist yet."""
        self.connection.execute(
            """
            CREATE TABLE IF NOT EXISTS project (
                id TEXT NOT NULL PRIMARY KEY,
                name TEXT NOT NULL UNIQUE,
                prometheus TEXT
            )"""
        )
        self._add_column_if_not_exists("project", "settings", "text")
        for statement in _SCHEMA:
            self.connection.execute(statement)

    @staticmethod
    def _load_project(
        project_id: str, name: str, prometheus: str | None, settings: str | None
    ) -> Project:
        p = Project(id=project_id, name=name)
        if prometheus is not None:
            p.prometheus = IntegrationsPrometheus.from_dict(json.loads(prometheus))
        if settings is not None:
            p.settings = Settings.from_dict(json.loads(settings))
        p._apply_defaults()
        return p

    def get_projects(self) -> list[Project]:
        rows = self.connection.execute("SELECT id, name, prometheus, settings FROM project")
        return [self._load_project(*row) for row in rows]

    def get_project_names(self) -> dict[str, str]:
        return dict(self.connection.execute("SELECT id, name FROM project"))

    def get_project(self, project_id: str) -> Project:
        """Load a project; raise NotFoundError if there is none with this id."""
        row = self.connection.execute(
            "SELECT name, prometheus, settings FROM project WHERE id = ?", (project_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError(f"project {project_id} not found")
        return self._load_project(project_id, *row)

    def save_project(self, project: Project) -> str:
        """Insert a new project (one without an id) or rename an existing one."""
        if not project.id:
            project_id = nano_id(8)
            try:
                self.connection.execute(
                    "INSERT INTO project (id, name) VALUES (?, ?)", (project_id, project.name)
                )
            except sqlite3.IntegrityError as e:
                raise ConflictError(f"project {project.name!r} already exists") from e
            return project_id
        self.connection.execute(
            "UPDATE project SET name = ? WHERE id = ?", (project.name, project.id)
        )
        return project.id

    def delete_project(self, project_id: str) -> None:
        """Delete a project together with everything stored for it."""
        with self.transaction() as conn:
            for table in (
                "check_configs",
                "incident_notification",
                "incident",
                "application_deployment",
                "application_settings",
            ):
                conn.execute(f"DELETE FROM {table} WHERE project_id = ?", (project_id,))
            conn.execute("DELETE FROM project WHERE id = ?", (project_id,))

    def save_application_category(
        self,
        project_id: str,
        category: str,
        new_name: str,
        custom_patterns: Iterable[str],
        notify_about_deployments: bool,
    ) -> None:
        """Update a category's patterns and settings; empty patterns remove a custom one."""
        p = self.get_project(project_id)
        s = p.settings
        current = (s.application_category_settings or {}).get(category)
        current_notify = current.notify_of_deployments if current else False
        if current_notify != notify_about_deployments:
            if s.application_category_settings is None:
                s.application_category_settings = {}
            s.application_category_settings[category] = ApplicationCategorySettings(
                notify_of_deployments=notify_about_deployments
            )

        if not is_default(category):
            patterns = [p.strip() for p in custom_patterns if p.strip()]
            if not patterns:
                if s.application_categories is not None:
                    s.application_categories.pop(category, None)
                if s.application_category_settings is not None:
                    s.application_category_settings.pop(category, None)
            else:
                if s.application_categories is None:
                    s.application_categories = {}
                if category != new_name and not is_builtin(category):
                    s.application_categories.pop(category, None)
                    if s.application_category_settings is None:
                        s.application_category_settings = {}
                    s.application_category_settings[new_name] = (
                        s.application_category_settings.pop(
                            category, ApplicationCategorySettings()
                        )
                    )
                    category = new_name
                s.application_categories[category] = patterns

        self._save_settings(p)

    def _save_settings(self, p: Project) -> None:
        self.connection.execute(
            "UPDATE project SET settings = ? WHERE id = ?", (_dumps(p.settings.to_dict()), p.id)
        )

    def save_project_integration(self, project: Project, typ: IntegrationType | str) -> None:
        """Persist the Prometheus config or, for any other type, the project settings."""
        if IntegrationType(typ) is IntegrationType.PROMETHEUS:
            if project.prometheus.refresh_interval == 0:
                project.prometheus.refresh_interval = DEFAULT_REFRESH_INTERVAL
            self.connection.execute(
                "UPDATE project SET prometheus = ? WHERE id = ?",
                (_dumps(project.prometheus.to_dict()), project.id),
            )
            return
        self._save_settings(project)

    def save_integrations_base_url(self, project_id: str, base_url: str) -> None:
        p = self.get_project(project_id)
        p.settings.integrations.base_url = base_url
        self._save_settings(p)


def open_database(data_dir: str | Path) -> Database:
    """Open (creating if needed) ``db.sqlite`` in the data directory."""
    connection = sqlite3.connect(
        str(Path(data_dir) / "db.sqlite"), isolation_level=None, check_same_thread=False
    )
    connection.execute("PRAGMA foreign_keys = ON")
    return Database(connection)