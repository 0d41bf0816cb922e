import json

import pytest

from coroot.model.check_configs import (
    CheckConfigs,
    CheckConfigSimple,
    CheckConfigSLOAvailability,
    CheckConfigSLOLatency,
)
from coroot.model.checks import get_check_config
from coroot.model.ids import APPLICATION_ID_ZERO, ApplicationId

APP = ApplicationId("default", "Deployment", "backend")
OTHER = ApplicationId("default", "Deployment", "frontend")


def test_get_simple_default():
    cc = CheckConfigs()
    assert cc.get_simple("CPUNode", APP).threshold == get_check_config("CPUNode").default_threshold


def test_get_simple_app_override():
    cc = CheckConfigs({APP: {"CPUNode": json.dumps({"threshold": 42})}})
    assert cc.get_simple("CPUNode", APP) == CheckConfigSimple(threshold=42)


def test_get_simple_project_fallback_and_priority():
    cc = CheckConfigs(
        {
            APPLICATION_ID_ZERO: {"CPUNode": '{"threshold": 50}'},
            APP: {"CPUNode": '{"threshold": 60}'},
        }
    )
    assert cc.get_simple("CPUNode", OTHER).threshold == 50
    assert cc.get_simple("CPUNode", APP).threshold == 60


def test_get_simple_invalid_json_gives_default():
    cc = CheckConfigs({APP: {"CPUNode": "{not json"}})
    assert cc.get_simple("CPUNode", APP).threshold == get_check_config("CPUNode").default_threshold
    cc = CheckConfigs({APP: {"CPUNode": '{"threshold": "high"}'}})
    assert cc.get_simple("CPUNode", APP).threshold == get_check_config("CPUNode").default_threshold


def test_get_simple_unknown_check():
    with pytest.raises(ValueError):
        CheckConfigs().get_simple("NoSuchCheck", APP)


def test_get_simple_all():
    default = get_check_config("StorageSpace").default_threshold
    cc = CheckConfigs({APP: {"StorageSpace": '{"threshold": 70}'}})
    res = cc.get_simple_all("StorageSpace", APP)
    assert res == [CheckConfigSimple(default), None, CheckConfigSimple(70)]
    assert cc.get_simple_all("StorageSpace", APPLICATION_ID_ZERO) == [CheckConfigSimple(default), None]
    assert cc.get_simple_all("NoSuchCheck", APP) == []


def test_get_by_check():
    availability = [{"custom": True, "total_requests_query": "t", "failed_requests_query": "f",
                     "objective_percentage": 95}]
    cc = CheckConfigs(
        {
            APP: {"SLOAvailability": json.dumps(availability), "CPUNode": '{"threshold": 1}'},
            OTHER: {"SLOAvailability": "broken"},
        }
    )
    res = cc.get_by_check("SLOAvailability")
    assert list(res) == [APP]
    assert res[APP] == [[CheckConfigSLOAvailability(True, "t", "f", 95)]]
    assert cc.get_by_check("CPUNode") == {APP: [CheckConfigSimple(1)]}


def test_get_availability_default():
    cfg, is_default = CheckConfigs().get_availability(APP)
    assert is_default is True
    assert cfg.objective_percentage == 99
    assert cfg.custom is False


def test_get_availability_custom_and_empty():
    raw = json.dumps([{"objective_percentage": 90}])
    cfg, is_default = CheckConfigs({APP: {"SLOAvailability": raw}}).get_availability(APP)
    assert is_default is False
    assert cfg.objective_percentage == 90
    _, is_default = CheckConfigs({APP: {"SLOAvailability": "[]"}}).get_availability(APP)
    assert is_default is True


def test_get_latency_default_bucket_by_category():
    cfg, is_default = CheckConfigs().get_latency(APP, "application")
    assert is_default and cfg.objective_bucket == 0.5
    cfg, _ = CheckConfigs().get_latency(APP, "monitoring")
    assert cfg.objective_bucket == 5


def test_get_latency_custom():
    raw = json.dumps([{"histogram_query": "h", "objective_bucket": 0.25, "objective_percentage": 95}])
    cfg, is_default = CheckConfigs({APP: {"SLOLatency": raw}}).get_latency(APP, "application")
    assert not is_default
    assert cfg == CheckConfigSLOLatency(False, "h", 0.25, 95)


def test_queries():
    a = CheckConfigSLOAvailability(total_requests_query="req_total", failed_requests_query="req_failed")
    assert a.total() == "sum(rate(req_total[$RANGE]))"
    assert a.failed() == "sum(rate(req_failed[$RANGE]))"
    lat = CheckConfigSLOLatency(histogram_query="req_bucket")
    assert lat.histogram() == "sum by(le)(rate(req_bucket[$RANGE]))"