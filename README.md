# coroot

Building blocks for an observability backend: a model of applications, their
health checks, SLO objectives, incidents, profiles and traces, and a small
SQLite store for projects, check configurations and incidents.

The package has no third-party dependencies.

## Installation

```
pip install .
```

With the test requirements:

```
pip install ".[test]"
```

## The model: `coroot.model`

- `coroot.model.ids` — `ApplicationKind`, `ApplicationId`,
  `new_application_id` and `parse_application_id`. Replica sets with a hash
  suffix become deployments, jobs with a numeric suffix become cron jobs, and an
  empty namespace becomes `_`.

  ```python
  from coroot.model.ids import new_application_id, parse_application_id

  app_id = new_application_id("default", "ReplicaSet", "frontend-5d4f8b7c9")
  str(app_id)                                   # "default:Deployment:frontend"
  parse_application_id("default:Deployment:frontend") == app_id  # True
  ```

  `parse_application_id` raises `ValueError` for a string without three parts.

- `coroot.model.status` — `Status` (`UNKNOWN`, `OK`, `INFO`, `WARNING`,
  `CRITICAL`, ordered by severity) with `color()`, and `calc_indicators`,
  which turns reports with a known status into `Indicator` values.
- `coroot.model.categories` — `calc_application_category` assigns
  `application`, `control-plane`, `monitoring` or a custom category by glob
  patterns over `namespace/name`; `is_default`, `is_builtin`, `is_auxiliary`,
  `is_monitoring` and `is_control_plane` classify a category name.

  ```python
  from coroot.model.categories import calc_application_category

  calc_application_category(new_application_id("kube-system", "DaemonSet", "coredns"), None)
  # "control-plane"
  ```

- `coroot.model.incidents` — `ApplicationIncident`, `ApplicationEvent`,
  `ApplicationEventType`, the SLO burn-rate rules `ALERT_RULES` with
  `AlertRule` and `BurnRate`, and `plural`, which formats a count with an
  English noun.
- `coroot.model.checks` — every built-in check definition (`CheckConfig`,
  looked up with `get_check_config` or listed by `all_check_configs`),
  `CheckUnit.format_value`, and `Check`, which counts events, collects items or
  holds a value and, on `calc()`, moves to `WARNING` with a rendered message
  once its threshold is crossed.

  ```python
  from coroot.model.checks import Check, get_check_config

  check = Check.from_config(get_check_config("CPUNode"))
  check.add_item("node-1")
  check.calc()
  check.status, check.message   # (Status.WARNING, "high CPU utilization of 1 node")
  ```

- `coroot.model.check_configs` — `CheckConfigs`, raw JSON configs per
  application and check id, with the zero `ApplicationId` holding project-wide
  values. `get_simple`, `get_simple_all`, `get_by_check`, `get_availability`
  and `get_latency` decode them into `CheckConfigSimple`,
  `CheckConfigSLOAvailability` and `CheckConfigSLOLatency`, falling back to
  the defaults when a config is missing or malformed.
- `coroot.model.profile` — profile types and their metadata (`PROFILES`), and
  `FlameGraphNode`, which builds a flame graph from stacks with
  `insert_stack`, merges a comparison graph with `diff`, and serialises with
  `to_dict`.
- `coroot.model.trace` — `TraceSpan` with `status()`, `labels()`,
  `error_message()` and `details()`.
- `coroot.model.table` — `Table`, `TableRow`, `TableCell` and
  `new_table_cell`; rows are kept ordered by their first cell unless
  `set_sorted()` is called.
- `coroot.model.dependency_map` — `DependencyMap`, whose `update_link` keeps
  the worst status seen for each link between instances.
- `coroot.model.costs` — `Costs`, hourly costs with monthly projections.
- `coroot.model.container` — `container_id_to_service_name`, which strips
  pod suffixes from Kubernetes container ids, and `guess_service`.

## Storage: `coroot.db`

- `coroot.db.integrations` — `Integrations` and the settings of each
  integration (`IntegrationsPrometheus`, `IntegrationClickhouse`,
  `IntegrationSlack`, `IntegrationTeams`, `IntegrationPagerduty`,
  `IntegrationOpsgenie`, `IntegrationWebhook`, `AWSConfig`, `BasicAuth`), with
  `to_dict` / `from_dict` and `Integrations.get_info()`.
- `coroot.db.database` — `open_database` opens `db.sqlite` inside an existing
  data directory; `Database` creates the schema with `migrate_default` and
  stores `Project` records: `save_project`, `get_project`, `get_projects`,
  `get_project_names`, `delete_project`, `save_application_category`,
  `save_project_integration` and `save_integrations_base_url`. A missing
  project raises `NotFoundError`; a duplicate project name raises
  `ConflictError`. `Database` is also a context manager that closes the
  connection.
- `coroot.db.check_config_store` — `get_check_configs` and
  `save_check_config` (a `None` config removes the check's entry).
- `coroot.db.incident_store` — `create_or_update_incident` opens, resolves or
  re-grades an application's incident; `get_incident_by_key`,
  `get_application_incidents`, and the notification queue:
  `put_incident_notification`, `update_incident_notification`,
  `get_not_sent_incident_notifications`,
  `get_previous_incident_notifications` and
  `get_sent_incident_notifications_stat`.

```python
from pathlib import Path

from coroot.db.database import Project, open_database
from coroot.db.incident_store import create_or_update_incident
from coroot.model.ids import new_application_id
from coroot.model.status import Status

Path("./data").mkdir(exist_ok=True)
with open_database("./data") as db:
    db.migrate_default()
    project_id = db.save_project(Project(name="default"))
    app_id = new_application_id("default", "Deployment", "frontend")
    incident = create_or_update_incident(db, project_id, app_id, 1700000000, Status.CRITICAL)
```

## What this package does not do

It is a library only: there is no command, no HTTP server or API and no user
interface. It does not collect or query metrics, send notifications, or
evaluate applications from live data. Only SQLite is supported for storage,
and there is no storage for per-application settings or for deployment
records.

## Running the tests

```
pytest
```