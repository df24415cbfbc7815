"""
Tests for the in-memory job store and its status state machine.
"""

import pytest

from modeforge.errors import InvalidTransition, NotFoundError
from modeforge.job_store import JobStore


class TestCreateGet:
    def test_new_job_is_generating(self):
        store = JobStore()
        job_id = store.create("guitar helper")
        job = store.get(job_id)
        assert job.status == "generating"
        assert job.device_type == "guitar helper"
        assert job.kind == "generate"

    def test_ids_unique_in_a_burst(self):
        store = JobStore()
        ids = [store.create("x") for _ in range(50)]
        assert len(set(ids)) == 50

    def test_unknown_job(self):
        with pytest.raises(NotFoundError):
            JobStore().get("nope")

    def test_get_returns_copy(self):
        store = JobStore()
        job_id = store.create("x")
        store.get(job_id).status = "failed"
        assert store.get(job_id).status == "generating"

    def test_serialized_with_camel_keys(self):
        store = JobStore()
        job_id = store.create("x")
        data = store.get(job_id).to_json_dict()
        assert data["jobId"] == job_id
        assert data["deviceType"] == "x"
        assert "artifactPath" not in data


class TestTransitions:
    def test_happy_path(self):
        store = JobStore()
        job_id = store.create("x")
        store.transition(job_id, "compiling")
        job = store.transition(job_id, "completed", artifact_path="/tmp/x.bin")
        assert job.status == "completed"
        assert job.artifact_path == "/tmp/x.bin"

    def test_fail_from_generating(self):
        store = JobStore()
        job_id = store.create("x")
        job = store.transition(job_id, "failed", error="boom")
        assert job.error == "boom"

    @pytest.mark.parametrize("path", [
        ["completed"],
        ["compiling", "generating"],
        ["compiling", "completed", "failed"],
        ["failed", "compiling"],
    ])
    def test_illegal_paths(self, path):
        store = JobStore()
        job_id = store.create("x")
        with pytest.raises(InvalidTransition):
            for status in path:
                store.transition(job_id, status)

    def test_annotate_keeps_status(self):
        store = JobStore()
        job_id = store.create("x")
        job = store.annotate(job_id, smart_name="tuner")
        assert job.status == "generating"
        assert job.smart_name == "tuner"

    def test_snapshot(self):
        store = JobStore()
        store.create("a")
        store.create("b")
        assert sorted(j.device_type for j in store.snapshot()) == ["a", "b"]
