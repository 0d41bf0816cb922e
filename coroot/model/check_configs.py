"""Per-application check configurations stored as raw JSON documents."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from coroot.model.categories import is_auxiliary
from coroot.model.checks import get_check_config
from coroot.model.ids import APPLICATION_ID_ZERO, ApplicationId

log = logging.getLogger(__name__)

SLO_AVAILABILITY = "SLOAvailability"
SLO_LATENCY = "SLOLatency"

T = TypeVar("T")


class _DecodeError(ValueError):
    pass


def _field(data: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if kind is bool:
        ok = isinstance(value, bool)
    elif kind is float:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    else:
        ok = isinstance(value, str)
    if not ok:
        raise _DecodeError(f"cannot unmarshal {type(value).__name__} into field {key}")
    return kind(value)


def _object(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise _DecodeError(f"cannot unmarshal {type(value).__name__} into an object")
    return value


@dataclass
class CheckConfigSimple:
    threshold: float = 0.0

    @classmethod
    def _from_obj(cls, data: dict[str, Any]) -> CheckConfigSimple:
        return cls(threshold=_field(data, "threshold", float, 0.0))


@dataclass
class CheckConfigSLOAvailability:
    custom: bool = False
    total_requests_query: str = ""
    failed_requests_query: str = ""
    objective_percentage: float = 0.0

    @classmethod
    def _from_obj(cls, data: dict[str, Any]) -> CheckConfigSLOAvailability:
        return cls(
            custom=_field(data, "custom", bool, False),
            total_requests_query=_field(data, "total_requests_query", str, ""),
            failed_requests_query=_field(data, "failed_requests_query", str, ""),
            objective_percentage=_field(data, "objective_percentage", float, 0.0),
        )

    def total(self) -> str:
        return f"sum(rate({self.total_requests_query}[$RANGE]))"

    def failed(self) -> str:
        return f"sum(rate({self.failed_requests_query}[$RANGE]))"


@dataclass
class CheckConfigSLOLatency:
    custom: bool = False
    histogram_query: str = ""
    objective_bucket: float = 0.0
    objective_percentage: float = 0.0

    @classmethod
    def _from_obj(cls, data: dict[str, Any]) -> CheckConfigSLOLatency:
        return cls(
            custom=_field(data, "custom", bool, False),
            histogram_query=_field(data, "histogram_query", str, ""),
            objective_bucket=_field(data, "objective_bucket", float, 0.0),
            objective_percentage=_field(data, "objective_percentage", float, 0.0),
        )

    def histogram(self) -> str:
        return f"sum by(le)(rate({self.histogram_query}[$RANGE]))"


def _decode_one(raw: str | bytes, build: Callable[[dict[str, Any]], T]) -> T:
    return build(_object(json.loads(raw)))


def _decode_list(raw: str | bytes, build: Callable[[dict[str, Any]], T]) -> list[T]:
    data = json.loads(raw)
    if data is None:
        return []
    if not isinstance(data, list):
        raise _DecodeError(f"cannot unmarshal {type(data).__name__} into a list")
    return [build(_object(item)) for item in data]


class CheckConfigs(dict):
    """Raw JSON check configs keyed by application id, then by check id.

    The zero application id holds project-wide defaults.
    """

    def _raw(self, app_id: ApplicationId, check_id: str) -> str | bytes | None:
        for i in (app_id, APPLICATION_ID_ZERO):
            app_configs = self.get(i)
            if app_configs is not None and check_id in app_configs:
                return app_configs[check_id]
        return None

    def get_simple(self, check_id: str, app_id: ApplicationId) -> CheckConfigSimple:
        """Threshold config for a check: the app's, else the project's, else the default."""
        definition = get_check_config(check_id)
        if definition is None:
            raise ValueError(f"unknown check: {check_id}")
        default = CheckConfigSimple(threshold=definition.default_threshold)
        raw = self._raw(app_id, check_id)
        if raw is None:
            return default
        try:
            return _decode_one(raw, CheckConfigSimple._from_obj)
        except ValueError as e:
            log.warning("failed to unmarshal check config: %s", e)
            return default

    def get_simple_all(
        self, check_id: str, app_id: ApplicationId
    ) -> list[CheckConfigSimple | None]:
        """The default config, then the project-wide and app configs (None where unset)."""
        definition = get_check_config(check_id)
        if definition is None:
            log.warning("unknown check: %s", check_id)
            return []
        res: list[CheckConfigSimple | None] = [
            CheckConfigSimple(threshold=definition.default_threshold)
        ]
        ids = [APPLICATION_ID_ZERO]
        if not app_id.is_zero():
            ids.append(app_id)
        for i in ids:
            app_configs = self.get(i)
            if app_configs is not None and check_id in app_configs:
                try:
                    res.append(_decode_one(app_configs[check_id], CheckConfigSimple._from_obj))
                    continue
                except ValueError as e:
                    log.warning("failed to unmarshal check config: %s", e)
            res.append(None)
        return res

    def get_by_check(self, check_id: str) -> dict[ApplicationId, list[Any]]:
        """Decoded configs of one check for every application that has one."""
        res: dict[ApplicationId, list[Any]] = {}
        for app_id, app_configs in self.items():
            for cid, raw in app_configs.items():
                if cid != check_id:
                    continue
                try:
                    if check_id == SLO_AVAILABILITY:
                        cfg: Any = _decode_list(raw, CheckConfigSLOAvailability._from_obj)
                    elif check_id == SLO_LATENCY:
                        cfg = _decode_list(raw, CheckConfigSLOLatency._from_obj)
                    else:
                        cfg = _decode_one(raw, CheckConfigSimple._from_obj)
                except ValueError as e:
                    log.warning("failed to unmarshal check config: %s", e)
                    continue
                res.setdefault(app_id, []).append(cfg)
        return res

    def get_availability(
        self, app_id: ApplicationId
    ) -> tuple[CheckConfigSLOAvailability, bool]:
        """The app's availability objective and whether it is the default one."""
        default = CheckConfigSLOAvailability(
            custom=False,
            objective_percentage=get_check_config(SLO_AVAILABILITY).default_threshold,
        )
        return self._first(app_id, SLO_AVAILABILITY, CheckConfigSLOAvailability._from_obj, default)

    def get_latency(
        self, app_id: ApplicationId, category: str
    ) -> tuple[CheckConfigSLOLatency, bool]:
        """The app's latency objective and whether it is the default one."""
        default = CheckConfigSLOLatency(
            custom=False,
            objective_percentage=get_check_config(SLO_LATENCY).default_threshold,
            objective_bucket=5.0 if is_auxiliary(category) else 0.5,
        )
        return self._first(app_id, SLO_LATENCY, CheckConfigSLOLatency._from_obj, default)

    def _first(
        self,
        app_id: ApplicationId,
        check_id: str,
        build: Callable[[dict[str, Any]], T],
        default: T,
    ) -> tuple[T, bool]:
        app_configs = self.get(app_id)
        if app_configs is None or check_id not in app_configs:
            return default, True
        try:
            res = _decode_list(app_configs[check_id], build)
        except ValueError as e:
            log.warning("failed to unmarshal check config: %s", e)
            return default, True
        if not res:
            return default, True
        return res[0], False