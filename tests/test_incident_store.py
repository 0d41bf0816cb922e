import pytest

from coroot.db.database import NotFoundError, Project, open_database
from coroot.db.incident_store import (
    IncidentNotification,
    IncidentNotificationDetails,
    IncidentNotificationDetailsReport,
    create_or_update_incident,
    get_application_incidents,
    get_incident_by_key,
    get_not_sent_incident_notifications,
    get_previous_incident_notifications,
    get_sent_incident_notifications_stat,
    put_incident_notification,
    update_incident_notification,
)
from coroot.db.integrations import IntegrationType
from coroot.model.ids import ApplicationId
from coroot.model.status import Status

APP = ApplicationId("default", "Deployment", "api")


@pytest.fixture
def db(tmp_path):
    database = open_database(tmp_path)
    database.migrate_default()
    yield database
    database.close()


@pytest.fixture
def project_id(db):
    return db.save_project(Project(name="demo"))


def test_ok_without_incident_does_nothing(db, project_id):
    assert create_or_update_incident(db, project_id, APP, 100, Status.OK) is None
    assert get_application_incidents(db, project_id, 0, 1000) == {}


def test_open_and_fetch_by_key(db, project_id):
    i = create_or_update_incident(db, project_id, APP, 100, Status.WARNING)
    assert i.opened_at == 100
    assert i.severity == Status.WARNING
    assert not i.resolved()
    got = get_incident_by_key(db, project_id, i.key)
    assert (got.opened_at, got.resolved_at, got.severity) == (100, 0, Status.WARNING)


def test_missing_key_raises(db, project_id):
    with pytest.raises(NotFoundError):
        get_incident_by_key(db, project_id, "nope")


def test_severity_change_then_resolve(db, project_id):
    opened = create_or_update_incident(db, project_id, APP, 100, Status.WARNING)
    assert create_or_update_incident(db, project_id, APP, 150, Status.WARNING) is None
    upgraded = create_or_update_incident(db, project_id, APP, 200, Status.CRITICAL)
    assert upgraded.key == opened.key
    assert upgraded.severity == Status.CRITICAL
    resolved = create_or_update_incident(db, project_id, APP, 300, Status.OK)
    assert resolved.resolved()
    assert resolved.resolved_at == 300
    reopened = create_or_update_incident(db, project_id, APP, 400, Status.WARNING)
    assert reopened.key != opened.key


def test_incidents_in_range(db, project_id):
    create_or_update_incident(db, project_id, APP, 100, Status.WARNING)
    create_or_update_incident(db, project_id, APP, 200, Status.OK)
    assert get_application_incidents(db, project_id, 300, 400) == {}
    res = get_application_incidents(db, project_id, 150, 400)
    assert [i.opened_at for i in res[APP]] == [100]
    assert get_application_incidents(db, project_id, 0, 50) == {}


def _notification(project_id, ts, destination=IntegrationType.SLACK):
    return IncidentNotification(
        project_id=project_id,
        application_id=APP,
        incident_key="k1",
        status=Status.CRITICAL,
        destination=destination,
        timestamp=ts,
        details=IncidentNotificationDetails(
            reports=[IncidentNotificationDetailsReport(name="SLO", check="Latency", message="m")]
        ),
    )


def test_notifications_flow(db, project_id):
    first = _notification(project_id, 10)
    second = _notification(project_id, 20)
    put_incident_notification(db, first)
    put_incident_notification(db, second)

    pending = get_not_sent_incident_notifications(db, 0)
    assert [n.timestamp for n in pending] == [10, 20]
    assert pending[0].details == first.details
    assert pending[0].status == Status.CRITICAL
    assert pending[0].application_id == APP

    first.sent_at = 15
    first.external_key = "ext"
    update_incident_notification(db, first)
    assert [n.timestamp for n in get_not_sent_incident_notifications(db, 0)] == [20]

    previous = get_previous_incident_notifications(db, second)
    assert [(n.timestamp, n.external_key) for n in previous] == [(10, "ext")]

    assert get_sent_incident_notifications_stat(db, 0) == {IntegrationType.SLACK: 1}
    assert get_sent_incident_notifications_stat(db, 11) == {}


def test_previous_filters_destination(db, project_id):
    put_incident_notification(db, _notification(project_id, 10, IntegrationType.TEAMS))
    later = _notification(project_id, 20)
    put_incident_notification(db, later)
    assert get_previous_incident_notifications(db, later) == []