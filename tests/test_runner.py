"""RequestRunner: outcome typing, history, callbacks, helpers."""

from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from postline.core.runner import RequestRunner, SendOutcome, template_fields
from postline.core.scopes import ScopeSet
from postline.exceptions import CircularReference, HeaderEncodingError, InvalidURL, TransportError
from postline.transport import TransportExecutor
from postline.types import (
    ApiKeyAuth, ApiKeyLocation, BasicAuth, HTTPResponse, KeyValue, RawBody, RequestTemplate,
    ResolvedRequest, Variable,
)


class FakeTransport:
    """Records resolved requests; returns a canned response or raises."""

    def __init__(self, response=None, error=None):
        self.response = response or HTTPResponse(status_code=200, body=b"{}", duration_ms=5, size=2)
        self.error = error
        self.sent: list[ResolvedRequest] = []

    async def execute(self, resolved):
        self.sent.append(resolved)
        if self.error is not None:
            raise self.error
        return self.response


class EventLog:
    def __init__(self):
        self.events = []

    async def __call__(self, event, data):
        self.events.append((event, data))


@pytest.fixture
def scopes(list_users, workspace, staging):
    return ScopeSet.for_request(list_users, environment=staging, workspace=workspace)


@pytest.mark.asyncio
async def test_send_success(list_users, scopes, recorder):
    transport = FakeTransport()
    log = EventLog()
    runner = RequestRunner(transport=transport, history=recorder, callbacks=[log])

    outcome = await runner.send(list_users, scopes, workspace_id="ws-1")

    assert isinstance(outcome, SendOutcome)
    assert outcome.ok
    assert outcome.error is None
    assert outcome.response.status_code == 200
    assert transport.sent[0].url == "https://staging.example.com/users?page=1"
    assert [e for e, _ in log.events] == ["request_assembled", "request_completed"]
    assert log.events[1][1]["status_code"] == 200

    entries = await recorder.fetch("ws-1")
    assert len(entries) == 1
    assert entries[0].status_code == 200
    assert entries[0].url == "{{base_url}}/users"


@pytest.mark.asyncio
async def test_assembly_error_becomes_outcome_error(recorder):
    template = RequestTemplate(id="bad", name="Bad", url="ftp://nowhere")
    transport = FakeTransport()
    log = EventLog()
    runner = RequestRunner(transport=transport, history=recorder, callbacks=[log])

    outcome = await runner.send(template, ScopeSet(), workspace_id="ws-1")

    assert not outcome.ok
    assert isinstance(outcome.error, InvalidURL)
    assert outcome.error_type == "InvalidURL"
    assert outcome.resolved is None
    assert transport.sent == []
    assert log.events[0][0] == "request_failed"
    assert log.events[0][1]["stage"] == "assembly"
    assert (await recorder.fetch("ws-1"))[0].status_code is None


@pytest.mark.asyncio
async def test_interpolation_error_becomes_outcome_error():
    template = RequestTemplate(url="https://a.test/{{loop}}", variables=[Variable(key="loop", value="{{loop}}")])
    outcome = await RequestRunner(transport=FakeTransport()).send(template, ScopeSet.for_request(template))
    assert isinstance(outcome.error, CircularReference)


@pytest.mark.asyncio
async def test_transport_error_becomes_outcome_error(list_users, scopes, recorder):
    runner = RequestRunner(
        transport=FakeTransport(error=TransportError("timed out", kind="timeout")),
        history=recorder,
    )
    outcome = await runner.send(list_users, scopes, workspace_id="ws-1")

    assert outcome.error.kind == "timeout"
    assert outcome.resolved is not None
    assert outcome.response is None
    assert (await recorder.fetch("ws-1"))[0].status_code is None


@pytest.mark.asyncio
async def test_history_failure_never_masks_response(list_users, scopes):
    history = AsyncMock()
    history.record.side_effect = RuntimeError("disk full")
    runner = RequestRunner(transport=FakeTransport(), history=history)

    outcome = await runner.send(list_users, scopes)

    assert outcome.ok
    history.record.assert_awaited_once()


@pytest.mark.asyncio
async def test_failing_callback_is_logged_not_raised(list_users, scopes, caplog):
    async def broken(event, data):
        raise ValueError("nope")

    log = EventLog()
    runner = RequestRunner(transport=FakeTransport(), callbacks=[broken, log])
    with caplog.at_level("WARNING"):
        outcome = await runner.send(list_users, scopes)

    assert outcome.ok
    assert len(log.events) == 2
    assert "Callback" in caplog.text


@pytest.mark.asyncio
async def test_event_data_hides_query_and_secrets(secret_store, token_ref):
    template = RequestTemplate(
        url="https://a.test/p",
        auth=ApiKeyAuth(key="key", value="{{token}}", location=ApiKeyLocation.QUERY),
        variables=[Variable(key="token", is_secret=True, secret_ref=token_ref)],
    )
    log = EventLog()
    runner = RequestRunner(transport=FakeTransport(), secrets=secret_store, callbacks=[log])

    outcome = await runner.send(template, ScopeSet.for_request(template))

    assert outcome.resolved.url == "https://a.test/p?key=s3cr3t-token"
    for _, data in log.events:
        assert data["url"] == "https://a.test/p"
        assert "s3cr3t-token" not in str(data)


def test_resolve_uses_secrets(secret_store, token_ref):
    template = RequestTemplate(
        url="https://a.test",
        auth=BasicAuth(username="me", password="{{token}}"),
        variables=[Variable(key="token", is_secret=True, secret_ref=token_ref)],
    )
    resolved = RequestRunner(secrets=secret_store).resolve(template, ScopeSet.for_request(template))
    assert resolved.headers[0][1].startswith("Basic ")


def test_preview_url(list_users, scopes):
    runner = RequestRunner()
    assert runner.preview_url(list_users, scopes) == "https://staging.example.com/users"
    looping = RequestTemplate(url="{{a}}", variables=[Variable(key="a", value="{{a}}")])
    assert runner.preview_url(looping, ScopeSet.for_request(looping)) == "{{a}}"


def test_unresolved_variables_deduplicated_across_fields():
    template = RequestTemplate(
        url="https://{{host}}/{{path}}",
        headers=[KeyValue(key="X-{{host}}", value="{{missing}}"), KeyValue(key="X-Off", value="{{off}}", enabled=False)],
        auth=BasicAuth(username="{{user}}", password="{{missing}}"),
        body=RawBody(content="{{payload}}"),
        variables=[Variable(key="host", value="h")],
    )
    missing = RequestRunner().unresolved_variables(template, ScopeSet.for_request(template))
    assert missing == ["path", "missing", "user", "payload"]


def test_template_fields_skips_disabled_rows():
    template = RequestTemplate(url="u", query_params=[KeyValue(key="k", value="v", enabled=False)])
    assert template_fields(template) == ["u"]


@pytest.mark.asyncio
@respx.mock
async def test_non_ascii_header_value_is_a_typed_failure(recorder, config):
    route = respx.get("https://api.example.com/me").mock(return_value=httpx.Response(200))
    template = RequestTemplate(
        name="Me",
        url="https://api.example.com/me",
        headers=[KeyValue(key="X-User", value="{{user}}")],
        variables=[Variable(key="user", value="José")],
    )
    log = EventLog()
    runner = RequestRunner(transport=TransportExecutor(config), history=recorder, callbacks=[log])

    outcome = await runner.send(template, ScopeSet.for_request(template), workspace_id="ws-1")

    assert isinstance(outcome.error, HeaderEncodingError)
    assert outcome.error.header == "X-User"
    assert "José" not in str(outcome.error)
    assert not route.called
    assert [e for e, _ in log.events] == ["request_failed"]
    assert (await recorder.fetch("ws-1"))[0].status_code is None
