import itertools
import logging

import pytest

from availability_engine.core.exceptions import ValidationException
from availability_engine.models.provider import ProviderProfile
from availability_engine.monitoring.prometheus_metrics import prometheus_metrics
from availability_engine.services import base as base_module
from availability_engine.services.base import BaseService


class ProbeService(BaseService):
    @BaseService.measure_operation("probe")
    def probe(self, fail: bool = False) -> str:
        if fail:
            raise ValidationException("nope")
        return "done"


def test_transaction_commits(unit_db):
    service = BaseService(unit_db)
    with service.transaction():
        unit_db.add(ProviderProfile(provider_id="dr-smith", timezone="UTC"))
    unit_db.expunge_all()
    assert unit_db.get(ProviderProfile, "dr-smith") is not None


def test_transaction_rolls_back_and_reraises_unchanged(unit_db):
    service = BaseService(unit_db)
    with pytest.raises(ValidationException):
        with service.transaction():
            unit_db.add(ProviderProfile(provider_id="dr-smith", timezone="UTC"))
            unit_db.flush()
            raise ValidationException("bad")
    assert unit_db.get(ProviderProfile, "dr-smith") is None


def test_measure_operation_tracks_success_and_failure(unit_db):
    service = ProbeService(unit_db)
    assert service.probe() == "done"
    with pytest.raises(ValidationException):
        service.probe(fail=True)

    metrics = service.get_metrics()["probe"]
    assert metrics["count"] == 2
    assert metrics["success_count"] == 1
    assert metrics["failure_count"] == 1

    exposition = prometheus_metrics.get_metrics().decode()
    assert (
        'availability_service_operations_total{service="ProbeService",operation="probe",status="success"}'
        in exposition
    )
    assert 'error_type="ValidationException"' in exposition


def test_slow_operation_is_logged(unit_db, monkeypatch, caplog):
    ticks = itertools.count(0.0, 2.5)
    monkeypatch.setattr(base_module.time, "time", lambda: next(ticks))
    with caplog.at_level(logging.WARNING):
        ProbeService(unit_db).probe()
    assert "Slow operation detected: probe took 2.50s" in caplog.text
