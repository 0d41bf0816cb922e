"""Storage of per-application check configurations."""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any

from coroot.db.database import Database
from coroot.model.check_configs import CheckConfigs
from coroot.model.ids import ApplicationId, parse_application_id

log = logging.getLogger(__name__)


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def _jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _parse(raw: str) -> dict[str, Any]:
    data = json.loads(raw)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("check configs must be a JSON object")
    return data


def get_check_configs(db: Database, project_id: str) -> CheckConfigs:
    """All check configs of a project as raw JSON per application and check."""
    rows = db.connection.execute(
        "SELECT application_id, configs FROM check_configs WHERE project_id = ?",
        (project_id,),
    )
    res = CheckConfigs()
    for app_id_str, raw in rows:
        try:
            app_id = parse_application_id(app_id_str or "")
        except ValueError as e:
            log.warning("%s", e)
            continue
        if raw is None:
            continue
        res[app_id] = {check_id: _dumps(cfg) for check_id, cfg in _parse(raw).items()}
    return res


def save_check_config(
    db: Database, project_id: str, app_id: ApplicationId, check_id: str, cfg: Any
) -> None:
    """Store a check config for an application; a None config removes it."""
    app_id_str = str(app_id)
    row = db.connection.execute(
        "SELECT configs FROM check_configs WHERE project_id = ? AND application_id = ?",
        (project_id, app_id_str),
    ).fetchone()
    configs = _parse(row[0]) if row is not None and row[0] is not None else {}
    value = _jsonable(cfg)
    if value is None:
        configs.pop(check_id, None)
    else:
        configs[check_id] = value
    data = _dumps(configs)
    cur = db.connection.execute(
        "UPDATE check_configs SET configs = ? WHERE project_id = ? AND application_id = ?",
        (data, project_id, app_id_str),
    )
    if cur.rowcount == 0:
        db.connection.execute(
            "INSERT INTO check_configs (project_id, application_id, configs) VALUES (?, ?, ?)",
            (project_id, app_id_str, data),
        )