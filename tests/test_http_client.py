"""Tests for HttpResearchClient."""

import json

import httpx
import pytest

from seobatch import Batch
from seobatch.core.batch_params import SharedParams
from seobatch.exceptions import RemoteCallError, RemoteTimeoutError
from seobatch.remote.client import ResultKind
from seobatch.remote.http_client import HttpResearchClient


API_URL = "https://seo.example.com/api"
WORKFLOW_URL = "https://flows.example.com/webhook"


class Recorder:
    """MockTransport handler returning queued responses and recording requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def make_client(handler, **kwargs) -> HttpResearchClient:
    kwargs.setdefault("retry_delay", 0)
    return HttpResearchClient(
        api_url=API_URL + "/",
        workflow_url=WORKFLOW_URL,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestHttpResearchClient:
    """Tests for the HTTP client."""

    def setup_method(self):
        self.params = SharedParams(client_id=7, country="TR")

    def test_create_tracking_record(self):
        handler = Recorder(httpx.Response(201, json={"success": True, "project": {"id": 31}}))
        client = make_client(handler, api_key="secret")

        response = client.create_tracking_record("ayakkabı", self.params)

        assert response.ok
        assert response.record_id == 31
        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url) == f"{API_URL}/projects"
        assert request.headers["X-API-Key"] == "secret"
        assert json.loads(request.content) == {
            "client_id": 7,
            "name": "Keyword Research: ayakkabı",
            "main_keyword": "ayakkabı",
            "target_country": "TR",
            "target_language": "tr",
        }

    def test_run_research_action(self):
        handler = Recorder(httpx.Response(200, json=[
            {"success": True, "keywords": [{"keyword": "a", "search_volume": 10}], "project_id": 31}
        ]))
        client = make_client(handler)

        response = client.run_research_action("shoes", self.params, 31, timeout=300.0)

        assert response.ok
        assert response.keywords[0].search_volume == 10
        request = handler.requests[0]
        assert str(request.url) == f"{WORKFLOW_URL}/keyword-research"
        assert json.loads(request.content) == {
            "keyword": "shoes",
            "country": "TR",
            "language": "tr",
            "project_id": 31,
            "client_id": 7,
        }
        assert request.extensions["timeout"]["read"] == 300.0

    def test_patch_tracking_record(self):
        handler = Recorder(httpx.Response(200, json={"success": True}))
        client = make_client(handler)

        assert client.patch_tracking_record(31, "keywords_discovered", 12).ok

        request = handler.requests[0]
        assert request.method == "PATCH"
        assert str(request.url) == f"{API_URL}/projects/31"
        assert json.loads(request.content) == {"status": "keywords_discovered", "total_keywords_found": 12}

    @pytest.mark.parametrize("kind, path", [
        (ResultKind.PRIMARY, "keywords"),
        (ResultKind.RAW, "keywords-raw"),
        ("raw", "keywords-raw"),
    ])
    def test_read_result(self, kind, path):
        handler = Recorder(httpx.Response(200, json={"success": True, "data": [{"keyword": "a"}]}))
        client = make_client(handler)

        response = client.read_result(31, kind)

        assert [item.keyword for item in response.items] == ["a"]
        assert handler.requests[0].method == "GET"
        assert str(handler.requests[0].url) == f"{API_URL}/projects/31/{path}"

    def test_error_body_is_parsed(self):
        handler = Recorder(httpx.Response(400, json={"success": False, "error": "Client not found"}))
        response = make_client(handler).create_tracking_record("shoes", self.params)

        assert not response.ok
        assert response.error == "Client not found"

    def test_error_status_overrides_success_flag(self):
        handler = Recorder(httpx.Response(404, json={"success": True}))
        response = make_client(handler).patch_tracking_record(1, "done", 0)

        assert not response.ok
        assert response.error == "API Error: 404 Not Found"

    def test_empty_body(self):
        handler = Recorder(httpx.Response(204))
        assert make_client(handler).patch_tracking_record(1, "done", 0).ok

    def test_invalid_json(self):
        handler = Recorder(httpx.Response(200, content=b"<html>oops</html>"))
        with pytest.raises(RemoteCallError, match="Invalid JSON") as exc_info:
            make_client(handler).read_result(1)
        assert exc_info.value.status_code == 200

    def test_unexpected_shape(self):
        handler = Recorder(httpx.Response(200, json="ok"))
        with pytest.raises(RemoteCallError, match="Unexpected response shape"):
            make_client(handler).patch_tracking_record(1, "done", 0)

    def test_malformed_payload(self):
        handler = Recorder(httpx.Response(200, json={"success": True, "data": [{"volume": 1}]}))
        with pytest.raises(RemoteCallError, match="Malformed response"):
            make_client(handler).read_result(1)

    def test_retries_transient_status(self):
        handler = Recorder(
            httpx.Response(503),
            httpx.Response(429),
            httpx.Response(200, json={"success": True}),
        )
        response = make_client(handler, retries=3).patch_tracking_record(1, "done", 0)

        assert response.ok
        assert len(handler.requests) == 3

    def test_transient_status_exhausted(self):
        handler = Recorder(httpx.Response(502, json={"success": False, "error": "Bad gateway"}))
        response = make_client(handler, retries=2).patch_tracking_record(1, "done", 0)

        assert not response.ok
        assert response.error == "Bad gateway"
        assert len(handler.requests) == 3

    def test_client_errors_not_retried(self):
        handler = Recorder(httpx.Response(422, json={"success": False, "error": "Invalid country"}))
        make_client(handler, retries=3).create_tracking_record("shoes", self.params)
        assert len(handler.requests) == 1

    def test_retries_connection_errors(self):
        handler = Recorder(
            httpx.ConnectError("connection refused"),
            httpx.Response(200, json={"success": True}),
        )
        assert make_client(handler).patch_tracking_record(1, "done", 0).ok
        assert len(handler.requests) == 2

    def test_create_not_resent_on_transient_status(self):
        """A gateway error on record creation is returned, not retried."""
        handler = Recorder(
            httpx.Response(502),
            httpx.Response(201, json={"success": True, "project": {"id": 31}}),
        )
        response = make_client(handler, retries=3).create_tracking_record("shoes", self.params)

        assert not response.ok
        assert response.error == "API Error: 502 Bad Gateway"
        assert len(handler.requests) == 1

    def test_research_not_resent_on_transient_status(self):
        handler = Recorder(
            httpx.Response(504),
            httpx.Response(200, json={"success": True, "keywords": [{"keyword": "a"}]}),
        )
        response = make_client(handler, retries=3).run_research_action("shoes", self.params, 31, timeout=300.0)

        assert not response.ok
        assert len(handler.requests) == 1

    def test_post_not_resent_after_dropped_connection(self):
        handler = Recorder(
            httpx.ReadError("connection reset by peer"),
            httpx.Response(201, json={"success": True, "project": {"id": 31}}),
        )
        with pytest.raises(RemoteCallError, match="Network error"):
            make_client(handler, retries=3).create_tracking_record("shoes", self.params)
        assert len(handler.requests) == 1

    def test_post_resent_when_connection_failed(self):
        handler = Recorder(
            httpx.ConnectError("connection refused"),
            httpx.Response(201, json={"success": True, "project": {"id": 31}}),
        )
        response = make_client(handler, retries=3).create_tracking_record("shoes", self.params)

        assert response.record_id == 31
        assert len(handler.requests) == 2

    def test_batch_creates_one_record_per_keyword(self):
        handler = Recorder(
            httpx.Response(502),
            httpx.Response(201, json={"success": True, "project": {"id": 31}}),
        )
        client = make_client(handler, retries=3)

        run = Batch(client).set_params(client_id=7).add_keywords(["shoes"]).run(wait=True)

        creates = [r for r in handler.requests if r.method == "POST" and r.url.path.endswith("/projects")]
        assert len(creates) == 1
        assert run.snapshot().error == 1

    def test_connection_errors_exhausted(self):
        handler = Recorder(httpx.ConnectError("connection refused"))
        with pytest.raises(RemoteCallError, match="Network error"):
            make_client(handler, retries=1).patch_tracking_record(1, "done", 0)
        assert len(handler.requests) == 2

    def test_read_timeout_not_retried(self):
        handler = Recorder(httpx.ReadTimeout("timed out"))
        client = make_client(handler, retries=3)

        with pytest.raises(RemoteTimeoutError, match="timed out after 300s") as exc_info:
            client.run_research_action("shoes", self.params, 1, timeout=300.0)

        assert exc_info.value.timeout == 300.0
        assert len(handler.requests) == 1

    def test_negative_retries(self):
        with pytest.raises(ValueError):
            HttpResearchClient(API_URL, WORKFLOW_URL, retries=-1)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SEOBATCH_API_URL", API_URL)
        monkeypatch.setenv("SEOBATCH_WORKFLOW_URL", WORKFLOW_URL)
        monkeypatch.setenv("SEOBATCH_API_KEY", "secret")
        monkeypatch.setenv("SEOBATCH_TIMEOUT", "12.5")

        with HttpResearchClient.from_env() as client:
            assert client.api_url == API_URL
            assert client.workflow_url == WORKFLOW_URL
            assert client.timeout == 12.5

    def test_from_env_missing_url(self, monkeypatch):
        monkeypatch.delenv("SEOBATCH_API_URL", raising=False)
        monkeypatch.setenv("SEOBATCH_WORKFLOW_URL", WORKFLOW_URL)
        with pytest.raises(ValueError, match="SEOBATCH_API_URL"):
            HttpResearchClient.from_env()
