"""Application categories and the patterns that assign them."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Mapping

from coroot.model.ids import ApplicationId

APPLICATION = "application"
CONTROL_PLANE = "control-plane"
MONITORING = "monitoring"

_CONTROL_PLANE_PATTERNS = """
    kube-system/*  */kubelet  */kube-apiserver  */k3s  */k3s-agent
    */systemd*  */containerd  */docker*  */*chaos-*
    istio-system/*  amazon-cloudwatch/*  karpenter/*  cert-manager/*
    argocd/*  flux-system/*  linkerd/*  vault/*  keda/*  keycloak/*
"""

_MONITORING_PATTERNS = """
    monitoring/*  prometheus/*  */*prometheus*  grafana/*  */*grafana*
    */*alertmanager*  coroot/*  */*coroot*  metrics-server/*
"""

BUILTIN_CATEGORY_PATTERNS: dict[str, list[str]] = {
    APPLICATION: [],
    CONTROL_PLANE: _CONTROL_PLANE_PATTERNS.split(),
    MONITORING: _MONITORING_PATTERNS.split(),
}


def is_default(category: str) -> bool:
    return category == APPLICATION


def is_builtin(category: str) -> bool:
    return category in BUILTIN_CATEGORY_PATTERNS


def is_monitoring(category: str) -> bool:
    return category == MONITORING


def is_control_plane(category: str) -> bool:
    return category == CONTROL_PLANE


def is_auxiliary(category: str) -> bool:
    return is_monitoring(category) or is_control_plane(category)


@lru_cache(maxsize=1024)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(".*".join(re.escape(part) for part in pattern.split("*")), re.DOTALL)


def _glob_match(text: str, patterns: Iterable[str] | None) -> bool:
    return any(_compile(p).fullmatch(text) for p in patterns or ())


def calc_application_category(
    app_id: ApplicationId, custom_patterns: Mapping[str, list[str]] | None
) -> str:
    """Return the first category, in name order, whose patterns match the app."""
    custom_patterns = custom_patterns or {}
    categories = sorted(set(BUILTIN_CATEGORY_PATTERNS) | set(custom_patterns))
    key = f"{app_id.namespace}/{app_id.name}"
    for category in categories:
        if _glob_match(key, BUILTIN_CATEGORY_PATTERNS.get(category)) or _glob_match(
            key, custom_patterns.get(category)
        ):
            return category
    return APPLICATION