"""Storage of application incidents and the notifications sent about them."""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Mapping

from coroot.db.database import Database, NotFoundError, nano_id
from coroot.db.integrations import IntegrationType
from coroot.model.ids import ApplicationId, parse_application_id
from coroot.model.incidents import ApplicationIncident
from coroot.model.status import Status

log = logging.getLogger(__name__)


@dataclass
class IncidentNotificationDetailsReport:
    name: str = ""
    check: str = ""
    message: str = ""


@dataclass
class IncidentNotificationDetails:
    reports: list[IncidentNotificationDetailsReport] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "reports": [
                {"name": str(r.name), "check": r.check, "message": r.message}
                for r in self.reports
            ]
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> IncidentNotificationDetails:
        reports = (data or {}).get("reports") or []
        return cls(
            reports=[
                IncidentNotificationDetailsReport(
                    name=r.get("name") or "",
                    check=r.get("check") or "",
                    message=r.get("message") or "",
                )
                for r in reports
            ]
        )


@dataclass
class IncidentNotification:
    project_id: str
    application_id: ApplicationId
    incident_key: str
    status: Status
    destination: IntegrationType | str
    timestamp: int
    sent_at: int = 0
    external_key: str = ""
    details: IncidentNotificationDetails | None = None


def _destination(value: str) -> IntegrationType | str:
    try:
        return IntegrationType(value)
    except ValueError:
        return value


_NOTIFICATION_COLUMNS = (
    "project_id, application_id, incident_key, status, destination, timestamp, "
    "external_key, details"
)


def _notifications(rows: Any) -> list[IncidentNotification]:
    res = []
    for project_id, app_id, key, status, destination, timestamp, external_key, details in rows:
        n = IncidentNotification(
            project_id=project_id,
            application_id=parse_application_id(app_id),
            incident_key=key,
            status=Status(status),
            destination=_destination(destination),
            timestamp=timestamp,
            external_key=external_key,
        )
        if details:
            try:
                n.details = IncidentNotificationDetails.from_dict(json.loads(details))
            except (ValueError, TypeError, AttributeError) as e:
                log.warning("%s", e)
        res.append(n)
    return res


def get_incident_by_key(db: Database, project_id: str, key: str) -> ApplicationIncident:
    """Load an incident by its key; raise NotFoundError if there is none."""
    row = db.connection.execute(
        "SELECT opened_at, resolved_at, severity FROM incident "
        "WHERE project_id = ? AND key = ? LIMIT 1",
        (project_id, key),
    ).fetchone()
    if row is None:
        raise NotFoundError(f"incident {key} not found")
    return ApplicationIncident(
        key=key, opened_at=row[0], resolved_at=row[1], severity=Status(row[2])
    )


def get_application_incidents(
    db: Database, project_id: str, start: int, end: int
) -> dict[ApplicationId, list[ApplicationIncident]]:
    """Incidents that were open at any moment of the interval, per application."""
    rows = db.connection.execute(
        "SELECT application_id, key, opened_at, resolved_at, severity FROM incident "
        "WHERE project_id = ? AND opened_at <= ? AND (resolved_at = 0 OR resolved_at >= ?)",
        (project_id, end, start),
    )
    res: dict[ApplicationId, list[ApplicationIncident]] = {}
    for app_id_str, key, opened_at, resolved_at, severity in rows:
        app_id = parse_application_id(app_id_str)
        res.setdefault(app_id, []).append(
            ApplicationIncident(
                key=key, opened_at=opened_at, resolved_at=resolved_at, severity=Status(severity)
            )
        )
    return res


def create_or_update_incident(
    db: Database, project_id: str, app_id: ApplicationId, now: int, severity: Status
) -> ApplicationIncident | None:
    """Open, resolve or re-grade the application's incident; return it if it changed."""
    severity = Status(severity)
    app_id_str = str(app_id)
    row = db.connection.execute(
        "SELECT key, opened_at, resolved_at, severity FROM incident "
        "WHERE project_id = ? AND application_id = ? ORDER BY opened_at DESC LIMIT 1",
        (project_id, app_id_str),
    ).fetchone()

    if row is None or not row[1] or row[2]:
        if severity > Status.OK:
            incident = ApplicationIncident(
                key=nano_id(8), opened_at=now, resolved_at=0, severity=severity
            )
            db.connection.execute(
                "INSERT INTO incident (project_id, application_id, key, opened_at, severity) "
                "VALUES (?, ?, ?, ?, ?)",
                (project_id, app_id_str, incident.key, now, int(severity)),
            )
            return incident
        return None

    last = ApplicationIncident(
        key=row[0], opened_at=row[1], resolved_at=row[2], severity=Status(row[3])
    )
    if severity == Status.OK:
        last.resolved_at = now
        db.connection.execute(
            "UPDATE incident SET resolved_at = ? "
            "WHERE project_id = ? AND application_id = ? AND opened_at = ?",
            (now, project_id, app_id_str, last.opened_at),
        )
        return last
    if severity != last.severity:
        last.severity = severity
        db.connection.execute(
            "UPDATE incident SET severity = ? "
            "WHERE project_id = ? AND application_id = ? AND opened_at = ?",
            (int(severity), project_id, app_id_str, last.opened_at),
        )
        return last
    return None


def put_incident_notification(db: Database, notification: IncidentNotification) -> None:
    """Queue a notification; failures are logged, not raised."""
    n = notification
    details = (
        json.dumps(n.details.to_dict(), separators=(",", ":")) if n.details is not None else None
    )
    try:
        db.connection.execute(
            f"INSERT INTO incident_notification ({_NOTIFICATION_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                n.project_id,
                str(n.application_id),
                n.incident_key,
                int(n.status),
                str(n.destination),
                n.timestamp,
                n.external_key,
                details,
            ),
        )
    except sqlite3.Error as e:
        log.error("%s", e)


def update_incident_notification(db: Database, notification: IncidentNotification) -> None:
    n = notification
    db.connection.execute(
        "UPDATE incident_notification SET sent_at = ?, external_key = ? "
        "WHERE project_id = ? AND application_id = ? AND incident_key = ? "
        "AND timestamp = ? AND destination = ?",
        (
            n.sent_at,
            n.external_key,
            n.project_id,
            str(n.application_id),
            n.incident_key,
            n.timestamp,
            str(n.destination),
        ),
    )


def get_not_sent_incident_notifications(db: Database, start: int) -> list[IncidentNotification]:
    rows = db.connection.execute(
        f"SELECT {_NOTIFICATION_COLUMNS} FROM incident_notification "
        "WHERE timestamp >= ? AND sent_at = 0 "
        "ORDER BY project_id, application_id, incident_key, timestamp",
        (start,),
    )
    return _notifications(rows)


def get_previous_incident_notifications(
    db: Database, notification: IncidentNotification
) -> list[IncidentNotification]:
    """Earlier notifications of the same incident to the same destination."""
    n = notification
    rows = db.connection.execute(
        f"SELECT {_NOTIFICATION_COLUMNS} FROM incident_notification "
        "WHERE project_id = ? AND application_id = ? AND incident_key = ? "
        "AND destination = ? AND timestamp < ? ORDER BY timestamp",
        (n.project_id, str(n.application_id), n.incident_key, str(n.destination), n.timestamp),
    )
    return _notifications(rows)


def get_sent_incident_notifications_stat(
    db: Database, start: int
) -> dict[IntegrationType | str, int] | None:
    """Number of notifications sent since ``start`` per destination; None on failure."""
    try:
        rows = db.connection.execute(
            "SELECT destination, count(*) FROM incident_notification "
            "WHERE timestamp >= ? AND sent_at > 0 GROUP BY destination",
            (start,),
        ).fetchall()
    except sqlite3.Error as e:
        log.error("%s", e)
        return None
    return {_destination(destination): count for destination, count in rows}