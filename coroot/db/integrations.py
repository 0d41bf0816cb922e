"""Integration settings of a project: metrics, storage, notifications and cloud access."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Mapping, TypeVar

T = TypeVar("T")


class IntegrationType(str, Enum):
    PROMETHEUS = "prometheus"
    CLICKHOUSE = "clickhouse"
    AWS = "aws"
    SLACK = "slack"
    PAGERDUTY = "pagerduty"
    TEAMS = "teams"
    OPSGENIE = "opsgenie"
    WEBHOOK = "webhook"

    def __str__(self) -> str:
        return self.value


def _load_flat(cls: type[T], data: Mapping[str, Any] | None) -> T:
    data = data or {}
    names = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    return cls(**{k: v for k, v in data.items() if k in names and v is not None})


def _dump_flat(obj: Any) -> dict[str, Any]:
    return {f.name: getattr(obj, f.name) for f in fields(obj)}


def _headers(value: Any) -> list[dict[str, Any]] | None:
    return [dict(h) for h in value] if value is not None else None


def _str_map(value: Any) -> dict[str, str] | None:
    return {str(k): str(v) for k, v in value.items()} if value is not None else None


@dataclass
class BasicAuth:
    user: str = ""
    password: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _dump_flat(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> BasicAuth:
        return _load_flat(cls, data)


def _auth(value: Any) -> BasicAuth | None:
    return BasicAuth.from_dict(value) if value is not None else None


@dataclass
class AWSConfig:
    region: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    rds_tag_filters: dict[str, str] | None = None
    elasticache_tag_filters: dict[str, str] | None = None

    def equal(self, other: AWSConfig) -> bool:
        """Compare field by field; missing and empty tag filters are the same."""
        return (
            self.region == other.region
            and self.access_key_id == other.access_key_id
            and self.secret_access_key == other.secret_access_key
            and (self.rds_tag_filters or {}) == (other.rds_tag_filters or {})
            and (self.elasticache_tag_filters or {}) == (other.elasticache_tag_filters or {})
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "region": self.region,
            "access_key_id": self.access_key_id,
            "secret_access_key": self.secret_access_key,
            "rds_tag_filters": _str_map(self.rds_tag_filters),
            "elasticache_tag_filters": _str_map(self.elasticache_tag_filters),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> AWSConfig:
        data = data or {}
        return cls(
            region=data.get("region") or "",
            access_key_id=data.get("access_key_id") or "",
            secret_access_key=data.get("secret_access_key") or "",
            rds_tag_filters=_str_map(data.get("rds_tag_filters")),
            elasticache_tag_filters=_str_map(data.get("elasticache_tag_filters")),
        )


@dataclass
class IntegrationsPrometheus:
    url: str = ""
    refresh_interval: int = 0
    tls_skip_verify: bool = False
    basic_auth: BasicAuth | None = None
    extra_selector: str = ""
    custom_headers: list[dict[str, Any]] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "refresh_interval": self.refresh_interval,
            "tls_skip_verify": self.tls_skip_verify,
            "basic_auth": self.basic_auth.to_dict() if self.basic_auth else None,
            "extra_selector": self.extra_selector,
            "custom_headers": _headers(self.custom_headers),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> IntegrationsPrometheus:
        data = data or {}
        return cls(
            url=data.get("url") or "",
            refresh_interval=int(data.get("refresh_interval") or 0),
            tls_skip_verify=bool(data.get("tls_skip_verify") or False),
            basic_auth=_auth(data.get("basic_auth")),
            extra_selector=data.get("extra_selector") or "",
            custom_headers=_headers(data.get("custom_headers")),
        )


@dataclass
class IntegrationClickhouse:
    protocol: str = ""
    addr: str = ""
    auth: BasicAuth | None = None
    database: str = ""
    tls_enable: bool = False
    tls_skip_verify: bool = False

    def __post_init__(self) -> None:
        if self.auth is None:
            self.auth = BasicAuth()

    def to_dict(self) -> dict[str, Any]:
        res = _dump_flat(self)
        res["auth"] = self.auth.to_dict() if self.auth else BasicAuth().to_dict()
        return res

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> IntegrationClickhouse:
        data = dict(data or {})
        auth = BasicAuth.from_dict(data.pop("auth", None))
        res = _load_flat(cls, data)
        res.auth = auth
        return res


@dataclass
class IntegrationSlack:
    token: str = ""
    default_channel: str = ""
    enabled: bool = False  # superseded by incidents and deployments
    incidents: bool = False
    deployments: bool = False

    def to_dict(self) -> dict[str, Any]:
        return _dump_flat(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> IntegrationSlack:
        return _load_flat(cls, data)


@dataclass
class IntegrationTeams:
    webhook_url: str = ""
    incidents: bool = False
    deployments: bool = False

    def to_dict(self) -> dict[str, Any]:
        return _dump_flat(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> IntegrationTeams:
        return _load_flat(cls, data)


@dataclass
class IntegrationPagerduty:
    integration_key: str = ""
    incidents: bool = False

    def to_dict(self) -> dict[str, Any]:
        return _dump_flat(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> IntegrationPagerduty:
        return _load_flat(cls, data)


@dataclass
class IntegrationOpsgenie:
    api_key: str = ""
    eu_instance: bool = False
    incidents: bool = False

    def to_dict(self) -> dict[str, Any]:
        return _dump_flat(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> IntegrationOpsgenie:
        return _load_flat(cls, data)


@dataclass
class IntegrationWebhook:
    url: str = ""
    tls_skip_verify: bool = False
    basic_auth: BasicAuth | None = None
    custom_headers: list[dict[str, Any]] | None = None
    incidents: bool = False
    deployments: bool = False
    incident_template: str = ""
    deployment_template: str = ""

    def to_dict(self) -> dict[str, Any]:
        res = _dump_flat(self)
        res["basic_auth"] = self.basic_auth.to_dict() if self.basic_auth else None
        res["custom_headers"] = _headers(self.custom_headers)
        return res

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> IntegrationWebhook:
        data = dict(data or {})
        auth = _auth(data.pop("basic_auth", None))
        headers = _headers(data.pop("custom_headers", None))
        res = _load_flat(cls, data)
        res.basic_auth = auth
        res.custom_headers = headers
        return res


@dataclass
class IntegrationInfo:
    type: IntegrationType
    title: str
    configured: bool = False
    incidents: bool = False
    deployments: bool = False
    details: str = ""


_OPTIONAL = {
    "slack": IntegrationSlack,
    "pagerduty": IntegrationPagerduty,
    "teams": IntegrationTeams,
    "opsgenie": IntegrationOpsgenie,
    "webhook": IntegrationWebhook,
    "clickhouse": IntegrationClickhouse,
}


@dataclass
class Integrations:
    base_url: str = ""
    slack: IntegrationSlack | None = None
    pagerduty: IntegrationPagerduty | None = None
    teams: IntegrationTeams | None = None
    opsgenie: IntegrationOpsgenie | None = None
    webhook: IntegrationWebhook | None = None
    clickhouse: IntegrationClickhouse | None = None
    aws: AWSConfig | None = None

    def get_info(self) -> list[IntegrationInfo]:
        """Summaries of the notification integrations, configured or not."""
        res = []

        info = IntegrationInfo(type=IntegrationType.SLACK, title="Slack")
        if (slack := self.slack) is not None:
            info.configured = True
            info.incidents = slack.incidents
            info.deployments = slack.deployments
            info.details = f"channel: #{slack.default_channel}"
        res.append(info)

        info = IntegrationInfo(type=IntegrationType.TEAMS, title="MS Teams")
        if (teams := self.teams) is not None:
            info.configured = True
            info.incidents = teams.incidents
            info.deployments = teams.deployments
        res.append(info)

        info = IntegrationInfo(type=IntegrationType.PAGERDUTY, title="Pagerduty")
        if (pagerduty := self.pagerduty) is not None:
            info.configured = True
            info.incidents = pagerduty.incidents
        res.append(info)

        info = IntegrationInfo(type=IntegrationType.OPSGENIE, title="Opsgenie")
        if (opsgenie := self.opsgenie) is not None:
            info.configured = True
            info.incidents = opsgenie.incidents
            info.details = f"region: {'EU' if opsgenie.eu_instance else 'US'}"
        res.append(info)

        info = IntegrationInfo(type=IntegrationType.WEBHOOK, title="Webhook")
        if (webhook := self.webhook) is not None:
            info.configured = True
            info.incidents = webhook.incidents
            info.deployments = webhook.deployments
        res.append(info)

        return res

    def to_dict(self) -> dict[str, Any]:
        res: dict[str, Any] = {"base_url": self.base_url}
        for key in _OPTIONAL:
            value = getattr(self, key)
            if value is not None:
                res[key] = value.to_dict()
        res["aws"] = self.aws.to_dict() if self.aws is not None else None
        return res

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Integrations:
        data = data or {}
        kwargs: dict[str, Any] = {"base_url": data.get("base_url") or ""}
        for key, kind in _OPTIONAL.items():
            value = data.get(key)
            if value is not None:
                kwargs[key] = kind.from_dict(value)
        aws = data.get("aws")
        if aws is not None:
            kwargs["aws"] = AWSConfig.from_dict(aws)
        return cls(**kwargs)