# tests/application/services/test_poller.py
import asyncio

import pytest

from application.exceptions import PollingCancelledError, PollingFailedError, PollingTimeoutError
from application.services.poller import CancellationToken, Poller, is_absolute_url, resolve_poll_url
from domain.demo import PollingDefaults
from domain.steps.rest import PollSpec
from tests.mock_http_client import MockHttpClient, RecordingLogger, json_response, text_response

BASE = "http://api.test"


class FakeSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def _poller(client, logger=None, sleep=None):
    return Poller(client, logger or RecordingLogger(), sleep=sleep or FakeSleep())


def _run(coro):
    return asyncio.run(coro)


class TestPoller:
    def test_succeeds_on_third_attempt(self):
        client = MockHttpClient().add(
            "GET",
            f"{BASE}/jobs/j-1",
            json_response({"status": "pending"}),
            json_response({"status": "pending"}),
            json_response({"status": "done"}),
        )
        sleep = FakeSleep()
        spec = PollSpec(endpoint="/jobs/$jobId", success_when="status == 'done'", interval_ms=500)

        result = _run(_poller(client, sleep=sleep).poll(spec, BASE, {"X-Trace": "1"}, {"jobId": "j-1"}))

        assert result.attempts == 3
        assert result.final_response == {"status": "done"}
        assert result.status == 200
        assert sleep.calls == [0.5, 0.5]
        assert [c.method for c in client.calls] == ["GET", "GET", "GET"]
        assert client.calls[0].headers == {"X-Trace": "1"}

    def test_times_out_after_max_attempts(self):
        client = MockHttpClient().add("GET", f"{BASE}/jobs/1", json_response({"status": "pending"}))
        spec = PollSpec(endpoint="/jobs/1", success_when="status == 'done'", max_attempts=2)

        with pytest.raises(PollingTimeoutError) as excinfo:
            _run(_poller(client).poll(spec, BASE, {}, {}))

        assert excinfo.value.max_attempts == 2
        assert "2 attempts" in str(excinfo.value)
        assert len(client.calls) == 2

    def test_failure_condition_raises(self):
        client = MockHttpClient().add("GET", f"{BASE}/jobs/1", json_response({"status": "failed"}))
        spec = PollSpec(
            endpoint="/jobs/1",
            success_when="status == 'done'",
            failure_when="status == 'failed'",
        )

        with pytest.raises(PollingFailedError) as excinfo:
            _run(_poller(client).poll(spec, BASE, {}, {}))

        assert excinfo.value.condition == "status == 'failed'"
        assert excinfo.value.attempts == 1
        assert excinfo.value.last_response == {"status": "failed"}
        assert len(client.calls) == 1

    def test_success_checked_before_failure(self):
        client = MockHttpClient().add("GET", f"{BASE}/jobs/1", json_response({"status": "done"}))
        spec = PollSpec(
            endpoint="/jobs/1",
            success_when="status == 'done'",
            failure_when="status != 'failed'",
        )

        result = _run(_poller(client).poll(spec, BASE, {}, {}))

        assert result.attempts == 1

    def test_unparsable_body_is_not_fatal(self):
        client = MockHttpClient().add(
            "GET",
            f"{BASE}/jobs/1",
            text_response("<html>busy</html>", status=503),
            json_response({"status": "done"}),
        )
        spec = PollSpec(endpoint="/jobs/1", success_when="status == 'done'")

        result = _run(_poller(client).poll(spec, BASE, {}, {}))

        assert result.attempts == 2

    def test_malformed_condition_degrades_to_timeout(self):
        client = MockHttpClient().add("GET", f"{BASE}/jobs/1", json_response({"status": "done"}))
        logger = RecordingLogger()
        spec = PollSpec(endpoint="/jobs/1", success_when="status is done", max_attempts=3)

        with pytest.raises(PollingTimeoutError):
            _run(_poller(client, logger=logger).poll(spec, BASE, {}, {}))

        assert logger.events().count("condition.unparsable") == 3

    def test_absolute_endpoint_ignores_base_url(self):
        client = MockHttpClient().add("GET", "https://status.test/jobs/9", json_response({"ok": True}))
        spec = PollSpec(endpoint="https://status.test/jobs/$id", success_when="ok == true")

        _run(_poller(client).poll(spec, BASE, {}, {"id": 9}))

        assert client.calls[0].url == "https://status.test/jobs/9"

    def test_defaults_come_from_settings(self):
        client = MockHttpClient().add("GET", f"{BASE}/jobs/1", json_response({"status": "pending"}))
        sleep = FakeSleep()
        spec = PollSpec(endpoint="/jobs/1", success_when="status == 'done'")

        with pytest.raises(PollingTimeoutError) as excinfo:
            _run(
                _poller(client, sleep=sleep).poll(
                    spec, BASE, {}, {}, defaults=PollingDefaults(interval_ms=100, max_attempts=4)
                )
            )

        assert excinfo.value.max_attempts == 4
        assert sleep.calls == [0.1, 0.1, 0.1]

    def test_builtin_defaults(self):
        client = MockHttpClient().add("GET", f"{BASE}/jobs/1", json_response({"status": "pending"}))
        sleep = FakeSleep()
        spec = PollSpec(endpoint="/jobs/1", success_when="status == 'done'")

        with pytest.raises(PollingTimeoutError) as excinfo:
            _run(_poller(client, sleep=sleep).poll(spec, BASE, {}, {}))

        assert excinfo.value.max_attempts == 30
        assert len(client.calls) == 30
        assert set(sleep.calls) == {2.0}

    def test_poll_save_mapping_applied_on_success(self):
        client = MockHttpClient().add(
            "GET", f"{BASE}/jobs/1", json_response({"status": "done", "result": {"url": "/r/1"}})
        )
        spec = PollSpec(
            endpoint="/jobs/1",
            success_when="status == 'done'",
            save={"reportUrl": "result.url", "pollCode": "_status"},
        )
        variables = {}

        _run(_poller(client).poll(spec, BASE, {}, variables))

        assert variables == {"reportUrl": "/r/1", "pollCode": 200}

    def test_cancelled_before_first_attempt(self):
        client = MockHttpClient().add("GET", f"{BASE}/jobs/1", json_response({"status": "pending"}))
        token = CancellationToken()
        token.cancel()
        spec = PollSpec(endpoint="/jobs/1", success_when="status == 'done'")

        with pytest.raises(PollingCancelledError) as excinfo:
            _run(_poller(client).poll(spec, BASE, {}, {}, cancel=token))

        assert excinfo.value.attempts == 0
        assert client.calls == []

    def test_cancel_interrupts_wait(self):
        client = MockHttpClient().add("GET", f"{BASE}/jobs/1", json_response({"status": "pending"}))
        spec = PollSpec(endpoint="/jobs/1", success_when="status == 'done'", interval_ms=60_000)

        async def scenario():
            token = CancellationToken()
            task = asyncio.create_task(_poller(client).poll(spec, BASE, {}, {}, cancel=token))
            await asyncio.sleep(0.05)
            token.cancel()
            return await asyncio.wait_for(task, timeout=5)

        with pytest.raises(PollingCancelledError) as excinfo:
            asyncio.run(scenario())

        assert excinfo.value.attempts == 1

    def test_logs_lifecycle_events(self):
        client = MockHttpClient().add("GET", f"{BASE}/jobs/1", json_response({"status": "done"}))
        logger = RecordingLogger()
        spec = PollSpec(endpoint="/jobs/1", success_when="status == 'done'")

        _run(_poller(client, logger=logger).poll(spec, BASE, {}, {}))

        assert logger.events() == ["poll.start", "poll.attempt", "poll.succeeded"]


def test_is_absolute_url():
    assert is_absolute_url("https://x.test/a") is True
    assert is_absolute_url("http://x.test/a") is True
    assert is_absolute_url("/a") is False


def test_resolve_poll_url_is_literal_concatenation():
    assert resolve_poll_url("/jobs/1", "http://api.test/") == "http://api.test//jobs/1"
