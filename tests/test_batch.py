"""Tests for the Batch builder."""

import pytest

from seobatch import Batch, BatchRun, SharedParams, submit_batch
from seobatch.core.job import JobState
from seobatch.exceptions import StateError, ValidationError
from tests.mocks import MockResearchClient


class TestBatch:
    """Tests for Batch class."""

    def setup_method(self):
        self.client = MockResearchClient()

    def test_init(self):
        batch = Batch(self.client, max_concurrent=2, max_jobs=10)
        assert batch.config.max_concurrent == 2
        assert batch.config.max_jobs == 10
        assert len(batch) == 0

    def test_fluent_interface(self):
        batch = (
            Batch(self.client)
            .set_params(client_id=7, country="US")
            .set_research_timeout(60)
            .add_job("shoes")
            .add_keywords(["sneakers", "boots"])
        )
        assert [job.keyword for job in batch.jobs] == ["shoes", "sneakers", "boots"]
        assert batch.config.params.language == "en"
        assert batch.config.research_timeout == 60

    def test_blank_entries_are_skipped(self):
        """Blank and whitespace-only keywords never become jobs."""
        batch = Batch(self.client).add_keywords(["shoes", "", "  ", "sneakers", "running shoes"])

        assert len(batch) == 3
        assert [job.keyword for job in batch.jobs] == ["shoes", "sneakers", "running shoes"]
        assert all(job.state == JobState.PENDING for job in batch.jobs)

    def test_duplicates_dropped(self):
        batch = Batch(self.client).add_keywords(["shoes", " shoes", "boots", "shoes"])
        batch.add_keywords(["boots", "sandals"])
        assert [job.keyword for job in batch.jobs] == ["shoes", "boots", "sandals"]

    def test_add_keywords_from_text(self):
        batch = Batch(self.client).add_keywords("shoes, boots\nsandals\n\n")
        assert [job.keyword for job in batch.jobs] == ["shoes", "boots", "sandals"]

    def test_add_job_blank_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            Batch(self.client).add_job("   ")

    def test_add_job_duplicate_rejected(self):
        batch = Batch(self.client).add_job("shoes")
        with pytest.raises(ValidationError, match="already"):
            batch.add_job("shoes")

    def test_limit_rejected_before_any_job_created(self):
        batch = Batch(self.client, max_jobs=3).add_job("a")
        with pytest.raises(ValidationError, match="limit is 3"):
            batch.add_keywords(["b", "c", "d"])
        assert [job.keyword for job in batch.jobs] == ["a"]

    def test_limit_counts_unique_keywords(self):
        batch = Batch(self.client, max_jobs=2).add_keywords(["a", "b", "a", " b "])
        assert len(batch) == 2

    def test_add_job_over_limit(self):
        batch = Batch(self.client, max_jobs=1).add_job("a")
        with pytest.raises(ValidationError):
            batch.add_job("b")

    def test_invalid_timeout(self):
        with pytest.raises(ValidationError):
            Batch(self.client).set_research_timeout(0)

    def test_run_without_jobs(self):
        with pytest.raises(ValidationError, match="No jobs"):
            Batch(self.client).set_params(client_id=1).run()

    def test_run_without_params(self):
        with pytest.raises(ValidationError, match="params"):
            Batch(self.client).add_job("shoes").run()

    def test_run_and_wait(self):
        run = (
            Batch(self.client, max_concurrent=2)
            .set_params(client_id=1)
            .add_keywords(["a", "b", "c"])
            .run(wait=True)
        )
        assert isinstance(run, BatchRun)
        assert run.is_complete
        assert run.snapshot().completed == 3

    def test_run_twice_rejected(self):
        batch = Batch(self.client).set_params(client_id=1).add_job("a")
        run = batch.run(wait=True)

        with pytest.raises(StateError, match="already run"):
            batch.run()
        assert run.snapshot().completed == 1
        assert self.client.keywords_called("create") == ["a"]

    def test_repr(self):
        batch = Batch(self.client, max_concurrent=2).add_job("a")
        assert repr(batch) == "Batch(jobs=1, max_concurrent=2, max_jobs=100)"


class TestSubmitBatch:
    """Tests for submit_batch."""

    def test_returns_started_run(self):
        client = MockResearchClient()
        run = submit_batch(["shoes", "boots"], SharedParams(client_id=1), client, max_concurrent=2)

        assert run.is_started
        assert run.wait(timeout=5.0)
        assert run.snapshot().completed == 2

    def test_all_blank_rejected(self):
        client = MockResearchClient()
        with pytest.raises(ValidationError, match="No jobs"):
            submit_batch(["", "   "], SharedParams(client_id=1), client)
        assert client.calls == []

    def test_over_limit_rejected_without_remote_calls(self):
        client = MockResearchClient()
        keywords = [f"keyword {i}" for i in range(101)]
        with pytest.raises(ValidationError, match="limit is 100"):
            submit_batch(keywords, SharedParams(client_id=1), client)
        assert client.calls == []

    def test_callbacks_forwarded(self):
        client = MockResearchClient()
        client.set_research_failure("bad", "Keyword research failed")
        errors = []
        snapshots = []

        run = submit_batch(
            ["good", "bad"],
            SharedParams(client_id=1),
            client,
            research_timeout=10,
            progress_callback=lambda snapshot, elapsed: snapshots.append(snapshot),
            on_error=lambda job, error: errors.append((job.keyword, error)),
        )
        run.wait(timeout=5.0)

        assert run.config.research_timeout == 10
        assert errors == [("bad", "Keyword research failed")]
        assert snapshots[-1].is_complete
