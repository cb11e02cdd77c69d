"""Tests for settings, configuration models, logging setup and composition."""

import logging
import sys

import pytest
from aioresponses import aioresponses
from pydantic import ValidationError

from cloudjobs.adapters.aiohttp_client_adapter import AioHttpClientAdapter
from cloudjobs.adapters.cloudstack_job_status import CloudStackJobStatusAdapter
from cloudjobs.adapters.job_status_inmemory import InMemoryJobStatusStore
from cloudjobs.adapters.logging_adapter import LoggingAdapter
from cloudjobs.core.config import JobCompletionConfig, StatusFetchConfig, TimeUnit
from cloudjobs.core.logging_config import (
    bind_correlation_id,
    coerce_level,
    configure_logging,
    correlation_id_var,
)
from cloudjobs.core.managers.operation_completer import AsyncOperationCompleter
from cloudjobs.core.models.job import JobRecord, JobStatus
from cloudjobs.core.settings import CloudJobsSettings
from cloudjobs.factory import build_completer, build_status_query


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setenv("CLOUDJOBS_LOG_LEVEL", "debug")
    monkeypatch.setenv("CLOUDJOBS_API_URL", "http://cloudstack.test/client/api")
    monkeypatch.setenv("CLOUDJOBS_JOB_MAX_DURATION", "0.05")
    monkeypatch.setenv("CLOUDJOBS_JOB_POLL_PERIOD", "0.001")
    monkeypatch.setenv("CLOUDJOBS_JOB_MAX_POLL_PERIOD", "0.002")
    monkeypatch.setenv("CLOUDJOBS_STATUS_FETCH_ATTEMPTS", "2")
    return CloudJobsSettings(_env_file=None)


class TestSettings:
    def test_env_overrides(self, settings):
        assert settings.CLOUDJOBS_LOG_LEVEL == "DEBUG"
        assert str(settings.CLOUDJOBS_API_URL) == "http://cloudstack.test/client/api"
        assert settings.CLOUDJOBS_JOB_MAX_DURATION == 0.05
        assert settings.CLOUDJOBS_STATUS_FETCH_ATTEMPTS == 2

    def test_defaults_follow_cloudstack_client(self, monkeypatch):
        for name in ("CLOUDJOBS_JOB_MAX_DURATION", "CLOUDJOBS_JOB_POLL_PERIOD", "CLOUDJOBS_JOB_MAX_POLL_PERIOD"):
            monkeypatch.delenv(name, raising=False)
        settings = CloudJobsSettings(_env_file=None)
        assert settings.CLOUDJOBS_JOB_MAX_DURATION == 1200
        assert settings.CLOUDJOBS_JOB_POLL_PERIOD == 1
        assert settings.CLOUDJOBS_JOB_MAX_POLL_PERIOD == 5

    def test_print_settings(self, settings, capsys):
        settings.print_settings(LoggingAdapter("cloudjobs.test"))
        assert "CLOUDJOBS_API_URL" in capsys.readouterr().out


class TestJobCompletionConfig:
    def test_units_convert_to_seconds(self):
        config = JobCompletionConfig(max_duration=2, period=500, max_period=1000, unit=TimeUnit.milliseconds)
        assert config.period_seconds == 0.5
        assert config.max_period_seconds == 1.0
        assert config.max_duration_seconds == 0.002

        minutes = JobCompletionConfig(max_duration=20, period=1, max_period=1, unit=TimeUnit.minutes)
        assert minutes.max_duration_seconds == 1200

    def test_max_period_below_period_rejected(self):
        with pytest.raises(ValidationError):
            JobCompletionConfig(period=5, max_period=1)

    def test_non_positive_values_rejected(self):
        with pytest.raises(ValidationError):
            JobCompletionConfig(max_duration=0)

    def test_frozen(self):
        config = JobCompletionConfig()
        with pytest.raises(ValidationError):
            config.period = 3

    def test_from_app_settings(self, settings):
        config = JobCompletionConfig.from_app_settings(settings)
        assert config.max_duration_seconds == 0.05
        assert config.period_seconds == 0.001
        assert config.backoff is True

    def test_status_fetch_from_app_settings(self, settings):
        config = StatusFetchConfig.from_app_settings(settings)
        assert config.attempts == 2
        assert config.request_timeout == 10.0


class TestLogging:
    def test_coerce_level(self):
        assert coerce_level("debug") == logging.DEBUG
        assert coerce_level(logging.WARNING) == logging.WARNING
        assert coerce_level(None) == logging.INFO
        assert coerce_level("nonsense") == logging.INFO

    def test_bind_correlation_id_restores_previous(self):
        assert correlation_id_var.get() == "-"
        with bind_correlation_id("job-1"):
            assert correlation_id_var.get() == "job-1"
            with bind_correlation_id("job-2"):
                assert correlation_id_var.get() == "job-2"
            assert correlation_id_var.get() == "job-1"
        assert correlation_id_var.get() == "-"

    def test_configure_logging_splits_streams(self):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        saved_library_level = logging.getLogger("cloudjobs").level
        try:
            configure_logging("INFO")
            streams = {handler.stream for handler in root.handlers}
            assert streams == {sys.stdout, sys.stderr}
            assert root.level == logging.INFO
            assert logging.getLogger("aiohttp").level == logging.WARNING
        finally:
            for handler in list(root.handlers):
                root.removeHandler(handler)
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)
            logging.getLogger("cloudjobs").setLevel(saved_library_level)


class TestFactory:
    @pytest.mark.asyncio
    async def test_build_completer_with_status_query(self, settings):
        store = InMemoryJobStatusStore()
        store.script(
            "job-1",
            [
                JobRecord(id="job-1", status=JobStatus.in_progress),
                JobRecord(id="job-1", status=JobStatus.succeeded, result="foo"),
            ],
        )

        completer = build_completer(settings=settings, status_query=store)

        assert isinstance(completer, AsyncOperationCompleter)
        assert await completer.complete("job-1") == "foo"

    def test_build_completer_needs_a_source(self, settings):
        with pytest.raises(ValueError):
            build_completer(settings=settings)

    def test_build_status_query_uses_settings(self, settings):
        adapter = build_status_query(AioHttpClientAdapter(), settings)
        assert isinstance(adapter, CloudStackJobStatusAdapter)
        assert adapter.config.attempts == 2

    @pytest.mark.asyncio
    async def test_completes_job_over_http(self, settings):
        url = (
            "http://cloudstack.test/client/api"
            "?command=queryAsyncJobResult&jobid=job-1&response=json"
        )
        with aioresponses() as m:
            m.get(url, payload={"queryasyncjobresultresponse": {"jobid": "job-1", "jobstatus": 0}})
            m.get(
                url,
                payload={
                    "queryasyncjobresultresponse": {
                        "jobid": "job-1",
                        "jobstatus": 1,
                        "jobresult": {"success": True},
                    }
                },
                repeat=True,
            )

            async with AioHttpClientAdapter() as client:
                completer = build_completer(client, settings)
                result = await completer.complete("job-1")

        assert result.success is True
