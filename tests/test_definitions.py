"""Tests for the Dagster wiring: definitions, ops, schedules and sensors."""

import json
from datetime import datetime
from unittest.mock import MagicMock
from uuid import UUID

from dagster import build_op_context, build_schedule_context, build_sensor_context

from job_recommendations.definitions import all_jobs, all_schedules, all_sensors, defs
from job_recommendations.jobs import (
    MatchingRunConfig,
    dispatch_recommendation_notifications,
    match_candidates_for_job,
    run_config_for_job,
)
from job_recommendations.schedules import daily_open_job_matching
from job_recommendations.sensors.new_job_sensor import new_open_job_sensor
from job_recommendations.sensors.run_failure_sensor import _classify_failure
from tests.conftest import FakeOpenRouter

JOB_A = UUID("00000000-0000-0000-0000-00000000000a")
JOB_B = UUID("00000000-0000-0000-0000-00000000000b")


class OpenJobs:
    def __init__(self, *job_ids):
        self.job_ids = list(job_ids)

    def list_open_job_ids(self):
        return list(self.job_ids)


class TestDefinitions:
    def test_jobs_schedules_and_sensors_registered(self):
        assert {job.name for job in all_jobs} == {"candidate_matching", "notification_dispatch"}
        assert {s.name for s in all_schedules} == {
            "daily_open_job_matching",
            "notification_dispatch_every_15_minutes",
        }
        assert {s.name for s in all_sensors} == {"new_open_job_sensor", "run_failure_tagger"}
        assert defs.get_job_def("candidate_matching") is not None

    def test_run_config_for_job(self):
        assert run_config_for_job(JOB_A) == {
            "ops": {"match_candidates_for_job": {"config": {"job_id": str(JOB_A)}}}
        }


class TestDailyOpenJobMatching:
    def test_one_run_per_open_job(self):
        context = build_schedule_context(
            resources={"matching_store": OpenJobs(JOB_A, JOB_B)},
            scheduled_execution_time=datetime(2026, 10, 18, 9, 0),
        )

        requests = daily_open_job_matching.evaluate_tick(context).run_requests

        assert [r.run_key for r in requests] == [
            f"daily-matching-{JOB_A}-202610180900",
            f"daily-matching-{JOB_B}-202610180900",
        ]
        assert requests[0].run_config == run_config_for_job(JOB_A)
        assert requests[0].tags["trigger"] == "schedule"

    def test_skips_without_open_jobs(self):
        context = build_schedule_context(resources={"matching_store": OpenJobs()})

        result = daily_open_job_matching.evaluate_tick(context)

        assert not result.run_requests
        assert result.skip_message == "No open jobs to match"


class TestNewOpenJobSensor:
    """Tests for cursor handling in the new-job sensor."""

    def test_only_unseen_jobs_trigger(self):
        store = OpenJobs(JOB_A)
        first = new_open_job_sensor.evaluate_tick(
            build_sensor_context(resources={"matching_store": store})
        )

        assert len(first.run_requests) == 1
        assert first.run_requests[0].tags["job_id"] == str(JOB_A)
        assert first.run_requests[0].run_config == run_config_for_job(str(JOB_A))

        store.job_ids.append(JOB_B)
        second = new_open_job_sensor.evaluate_tick(
            build_sensor_context(resources={"matching_store": store}, cursor=first.cursor)
        )

        assert [r.tags["job_id"] for r in second.run_requests] == [str(JOB_B)]

        third = new_open_job_sensor.evaluate_tick(
            build_sensor_context(resources={"matching_store": store}, cursor=second.cursor)
        )
        assert not third.run_requests
        assert third.skip_message == "2 open jobs, none new"

    def test_closed_jobs_are_pruned_from_cursor(self):
        cursor = json.dumps({"seen": {str(JOB_A): "2026-10-01T00:00:00+00:00"}})
        context = build_sensor_context(resources={"matching_store": OpenJobs(JOB_B)}, cursor=cursor)

        result = new_open_job_sensor.evaluate_tick(context)

        assert [r.tags["job_id"] for r in result.run_requests] == [str(JOB_B)]
        assert list(json.loads(result.cursor)["seen"]) == [str(JOB_B)]


class TestOps:
    def test_dispatch_skips_when_nothing_enqueued(self):
        store = MagicMock()
        context = build_op_context(resources={"matching_store": store, "email": MagicMock()})

        result = dispatch_recommendation_notifications(context, {"notified": 0, "run_key": "r"})

        assert result == {"pending": 0, "sent": 0, "failed": 0}
        store.get_pending_notifications.assert_not_called()

    def test_match_op_reports_missing_job(self):
        store = MagicMock()
        store.get_job.return_value = None
        context = build_op_context(
            resources={"openrouter": FakeOpenRouter(), "matching_store": store}
        )

        result = match_candidates_for_job(context, MatchingRunConfig(job_id=str(JOB_A)))

        assert result["status"] == "job_not_found"
        assert result["candidates_seen"] == 0
        store.get_eligible_candidates_page.assert_not_called()


class TestClassifyFailure:
    """Tests for run failure classification."""

    def test_known_failures(self):
        assert _classify_failure("ExternalServiceError: Resume download failed: 404") == [
            "RESUME_DOWNLOAD_FAILED"
        ]
        assert _classify_failure("OpenRouter embed_text failed: 429: Too Many Requests") == [
            "OPENROUTER_API_ERROR",
            "RATE_LIMIT",
        ]
        assert _classify_failure("ParseError: No JSON object found in response") == [
            "LLM_JSON_PARSE_ERROR"
        ]
        assert "DATABASE_ERROR" in _classify_failure(
            "sqlalchemy.exc.OperationalError: could not connect to server"
        )

    def test_unknown_failure(self):
        assert _classify_failure("ZeroDivisionError: division by zero") == []
