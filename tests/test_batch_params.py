"""Tests for SharedParams and BatchConfig."""

import pytest

from seobatch.core.batch_config import BatchConfig
from seobatch.core.batch_params import SharedParams, default_language
from seobatch.core.job import Job
from seobatch.exceptions import ValidationError


class TestSharedParams:
    """Tests for SharedParams dataclass."""

    def test_defaults(self):
        params = SharedParams(client_id=7)
        assert params.client_id == 7
        assert params.country == "TR"
        assert params.language == "tr"

    def test_language_derived_from_country(self):
        assert SharedParams(client_id=1, country="us").language == "en"
        assert SharedParams(client_id=1, country="de").language == "en"
        assert default_language("tr") == "tr"

    def test_explicit_language(self):
        params = SharedParams(client_id=1, country="DE", language="DE")
        assert params.country == "DE"
        assert params.language == "de"

    @pytest.mark.parametrize("client_id", [0, -3, "7", None, True])
    def test_invalid_client_id(self, client_id):
        with pytest.raises(ValidationError, match="client_id"):
            SharedParams(client_id=client_id)

    @pytest.mark.parametrize("country", ["", "TUR", "1A", None])
    def test_invalid_country(self, country):
        with pytest.raises(ValidationError, match="country"):
            SharedParams(client_id=1, country=country)


class TestBatchConfig:
    """Tests for BatchConfig."""

    def test_defaults(self):
        config = BatchConfig()
        assert config.max_concurrent == 3
        assert config.max_jobs == 100
        assert config.research_timeout == 300.0
        assert config.record_status == "keywords_discovered"
        assert config.jobs == []

    @pytest.mark.parametrize("kwargs", [
        {"max_concurrent": 0},
        {"max_jobs": 0},
        {"research_timeout": 0},
    ])
    def test_invalid_limits(self, kwargs):
        with pytest.raises(ValidationError):
            BatchConfig(**kwargs)

    def test_validate_requires_params(self):
        config = BatchConfig(jobs=[Job(keyword="shoes")])
        with pytest.raises(ValidationError, match="params"):
            config.validate()

    def test_validate_requires_jobs(self):
        config = BatchConfig(params=SharedParams(client_id=1))
        with pytest.raises(ValidationError, match="No jobs"):
            config.validate()

    def test_validate_job_limit(self):
        config = BatchConfig(
            params=SharedParams(client_id=1),
            max_jobs=2,
            jobs=[Job(keyword=k) for k in ("a", "b", "c")],
        )
        with pytest.raises(ValidationError, match="limit is 2"):
            config.validate()
