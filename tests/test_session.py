"""Tests for latest-request-wins generation sessions."""
import threading

import pytest

import lowpoly.session
from lowpoly.session import GenerationSession
from lowpoly.types import LowPolyConfig, GenerationCancelled


class BlockingPipeline:
    """Stand-in pipeline whose runs wait for a release before finishing."""

    started = None
    release = None

    def __init__(self, config=None):
        self.config = config

    def generate(self, source, checkpoint=None):
        BlockingPipeline.started.set()
        assert BlockingPipeline.release.wait(timeout=10)
        if checkpoint is not None:
            checkpoint()
        return ("result", source, self.config)


@pytest.fixture
def blocking(monkeypatch):
    BlockingPipeline.started = threading.Event()
    BlockingPipeline.release = threading.Event()
    monkeypatch.setattr(lowpoly.session, "LowPolyPipeline", BlockingPipeline)
    return BlockingPipeline


class TestGenerationSession:
    """Test that stale runs never win."""

    def test_single_run(self, blocking):
        blocking.release.set()
        with GenerationSession() as session:
            future = session.submit("a")
            assert future.result(timeout=10)[1] == "a"
            assert session.latest_result[1] == "a"

    def test_newer_request_supersedes_running_one(self, blocking):
        with GenerationSession() as session:
            first = session.submit("first")
            assert blocking.started.wait(timeout=10)
            second = session.submit("second")
            blocking.release.set()

            with pytest.raises(GenerationCancelled):
                first.result(timeout=10)
            assert second.result(timeout=10)[1] == "second"
            assert session.latest_result[1] == "second"

    def test_queued_requests_are_skipped(self, blocking):
        """Only the last of several queued requests produces a result."""
        with GenerationSession() as session:
            futures = [session.submit(name) for name in ("a", "b", "c", "d")]
            blocking.release.set()

            for future in futures[:-1]:
                with pytest.raises(GenerationCancelled):
                    future.result(timeout=10)
            assert futures[-1].result(timeout=10)[1] == "d"

    def test_cancel_invalidates_in_flight(self, blocking):
        with GenerationSession() as session:
            future = session.submit("a")
            assert blocking.started.wait(timeout=10)
            session.cancel()
            blocking.release.set()

            with pytest.raises(GenerationCancelled):
                future.result(timeout=10)
            assert session.latest_result is None

    def test_per_run_config(self, blocking):
        blocking.release.set()
        session_config = LowPolyConfig(seed=1)
        run_config = LowPolyConfig(seed=2)

        with GenerationSession(session_config) as session:
            assert session.submit("a").result(timeout=10)[2] is session_config
            assert session.submit("b", run_config).result(timeout=10)[2] is run_config

    def test_is_current(self, blocking):
        blocking.release.set()
        with GenerationSession() as session:
            session.submit("a").result(timeout=10)
            assert session.is_current(1)
            session.cancel()
            assert not session.is_current(1)


def test_real_pipeline_in_session(circle_buffer):
    with GenerationSession(LowPolyConfig(seed=0)) as session:
        result = session.submit(circle_buffer).result(timeout=60)

    assert result.stats.triangles >= 2
    assert session.latest_result is result
