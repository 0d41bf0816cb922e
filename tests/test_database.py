import pytest

from coroot.db.database import (
    DEFAULT_REFRESH_INTERVAL,
    ApplicationCategorySettings,
    ConflictError,
    NotFoundError,
    Project,
    open_database,
)
from coroot.db.integrations import (
    IntegrationClickhouse,
    IntegrationSlack,
    IntegrationType,
    IntegrationsPrometheus,
)
from coroot.model.categories import APPLICATION, MONITORING


@pytest.fixture
def db(tmp_path):
    database = open_database(tmp_path)
    database.migrate_default()
    yield database
    database.close()


def test_open_creates_file(tmp_path):
    with open_database(tmp_path) as database:
        database.migrate_default()
        database.migrate_default()
        assert database.get_projects() == []
    assert (tmp_path / "db.sqlite").exists()


def test_save_and_get_project_applies_defaults(db):
    pid = db.save_project(Project(name="default"))
    assert len(pid) == 8
    p = db.get_project(pid)
    assert p.id == pid
    assert p.name == "default"
    assert p.prometheus.refresh_interval == DEFAULT_REFRESH_INTERVAL
    assert p.settings.application_category_settings[APPLICATION] == ApplicationCategorySettings(
        notify_of_deployments=True
    )


def test_duplicate_name_conflicts(db):
    db.save_project(Project(name="default"))
    with pytest.raises(ConflictError):
        db.save_project(Project(name="default"))


def test_missing_project(db):
    with pytest.raises(NotFoundError):
        db.get_project("missing")


def test_rename_project(db):
    pid = db.save_project(Project(name="a"))
    assert db.save_project(Project(id=pid, name="b")) == pid
    assert db.get_project_names() == {pid: "b"}


def test_get_projects_lists_all(db):
    ids = {db.save_project(Project(name="a")), db.save_project(Project(name="b"))}
    projects = db.get_projects()
    assert {p.id for p in projects} == ids
    assert all(p.prometheus.refresh_interval == DEFAULT_REFRESH_INTERVAL for p in projects)


def test_delete_project(db):
    pid = db.save_project(Project(name="a"))
    db.connection.execute(
        "INSERT INTO check_configs (project_id, application_id, configs) VALUES (?, ?, ?)",
        (pid, "ns:Deployment:app", "{}"),
    )
    db.delete_project(pid)
    with pytest.raises(NotFoundError):
        db.get_project(pid)
    count = db.connection.execute("SELECT count(*) FROM check_configs").fetchone()[0]
    assert count == 0


def test_custom_category_create_rename_delete(db):
    pid = db.save_project(Project(name="a"))
    db.save_application_category(pid, "team-a", "team-a", [" ns/* ", "", "  "], False)
    s = db.get_project(pid).settings
    assert s.application_categories == {"team-a": ["ns/*"]}

    db.save_application_category(pid, "team-a", "team-b", ["ns/*"], True)
    s = db.get_project(pid).settings
    assert s.application_categories == {"team-b": ["ns/*"]}
    assert s.application_category_settings["team-b"].notify_of_deployments is True
    assert "team-a" not in s.application_category_settings

    db.save_application_category(pid, "team-b", "team-b", [], True)
    s = db.get_project(pid).settings
    assert "team-b" not in s.application_categories
    assert "team-b" not in s.application_category_settings


def test_builtin_category_is_not_renamed(db):
    pid = db.save_project(Project(name="a"))
    db.save_application_category(pid, MONITORING, "mon", ["x/*"], False)
    s = db.get_project(pid).settings
    assert s.application_categories == {MONITORING: ["x/*"]}


def test_default_category_keeps_no_patterns(db):
    pid = db.save_project(Project(name="a"))
    db.save_application_category(pid, APPLICATION, APPLICATION, ["x/*"], False)
    s = db.get_project(pid).settings
    assert not s.application_categories
    assert s.application_category_settings[APPLICATION].notify_of_deployments is False


def test_save_prometheus_integration(db):
    pid = db.save_project(Project(name="a"))
    p = db.get_project(pid)
    p.prometheus = IntegrationsPrometheus(url="http://localhost:9090", refresh_interval=0)
    db.save_project_integration(p, IntegrationType.PROMETHEUS)
    loaded = db.get_project(pid).prometheus
    assert loaded.url == "http://localhost:9090"
    assert loaded.refresh_interval == DEFAULT_REFRESH_INTERVAL


def test_save_settings_integration_and_slack_defaults(db):
    pid = db.save_project(Project(name="a"))
    p = db.get_project(pid)
    p.settings.integrations.slack = IntegrationSlack(
        token="token", default_channel="ops", enabled=True
    )
    p.settings.integrations.clickhouse = IntegrationClickhouse(protocol="native", addr="localhost")
    db.save_project_integration(p, IntegrationType.SLACK)
    loaded = db.get_project(pid).settings.integrations
    assert loaded.slack.incidents is True
    assert loaded.slack.deployments is True
    assert loaded.clickhouse == p.settings.integrations.clickhouse


def test_save_integrations_base_url(db):
    pid = db.save_project(Project(name="a"))
    db.save_integrations_base_url(pid, "http://localhost/coroot")
    assert db.get_project(pid).settings.integrations.base_url == "http://localhost/coroot"


def test_save_integrations_base_url_missing_project(db):
    with pytest.raises(NotFoundError):
        db.save_integrations_base_url("missing", "http://localhost")