"""Request assembly: URL/query shape, headers, auth, bodies, errors."""

import base64

import pytest
from pydantic import ValidationError

from postline.core.assembler import (
    FORM_CONTENT_TYPE, RequestAssembler, append_query, assemble, encode_component, redact_url,
)
from postline.exceptions import (
    AssemblyError, BodyEncodingError, CircularReference, HeaderEncodingError, InvalidURL,
    UnsupportedBodyError,
)
from postline.types import (
    ApiKeyAuth, ApiKeyLocation, BasicAuth, BearerAuth, FormUrlEncodedBody, HTTPMethod, KeyValue,
    MultipartBody, MultipartFile, MultipartPart, MultipartText, OAuthTokenAuth, RawBody,
    RawContentType, RequestTemplate,
)

VARS = {"host": "api.example.com", "base": "https://{{host}}", "token": "abc", "q": "a b&c"}


def _tpl(**kwargs) -> RequestTemplate:
    kwargs.setdefault("url", "{{base}}/items")
    return RequestTemplate(**kwargs)


# ── URL & query ──────────────────────────────────────────────────────────────

def test_url_interpolated():
    assert assemble(_tpl(), VARS).url == "https://api.example.com/items"


def test_query_params_percent_encoded():
    resolved = assemble(_tpl(query_params=[KeyValue(key="search", value="{{q}}")]), VARS)
    assert resolved.url == "https://api.example.com/items?search=a%20b%26c"


def test_query_appended_even_when_url_has_question_mark():
    template = _tpl(url="https://x.test/a?fixed=1", query_params=[KeyValue(key="page", value="2")])
    assert assemble(template, VARS).url == "https://x.test/a?fixed=1?page=2"


def test_disabled_and_empty_key_query_params_excluded():
    template = _tpl(query_params=[
        KeyValue(key="a", value="1"),
        KeyValue(key="b", value="2", enabled=False),
        KeyValue(key="", value="3"),
    ])
    assert assemble(template, VARS).url == "https://api.example.com/items?a=1"


def test_no_query_params_no_question_mark():
    assert "?" not in assemble(_tpl(), VARS).url


def test_unresolved_placeholder_survives_in_query():
    resolved = assemble(_tpl(query_params=[KeyValue(key="id", value="{{missing}}")]), VARS)
    assert resolved.url.endswith("?id=%7B%7Bmissing%7D%7D")


# ── Headers ──────────────────────────────────────────────────────────────────

def test_headers_keep_order_and_duplicates():
    template = _tpl(headers=[
        KeyValue(key="X-A", value="1"),
        KeyValue(key="X-A", value="2"),
        KeyValue(key="X-Off", value="x", enabled=False),
        KeyValue(key="", value="ignored"),
        KeyValue(key="X-Host", value="{{host}}"),
    ])
    assert assemble(template, VARS).headers == [("X-A", "1"), ("X-A", "2"), ("X-Host", "api.example.com")]


# ── Auth ─────────────────────────────────────────────────────────────────────

def test_bearer_token():
    resolved = assemble(_tpl(auth=BearerAuth(token="{{token}}")), VARS)
    assert resolved.headers == [("Authorization", "Bearer abc")]


@pytest.mark.parametrize("auth", [BearerAuth(token=""), OAuthTokenAuth(token="{{empty}}")])
def test_empty_bearer_token_adds_nothing(auth):
    assert assemble(_tpl(auth=auth), {**VARS, "empty": ""}).headers == []


def test_oauth_token_sent_as_bearer():
    assert assemble(_tpl(auth=OAuthTokenAuth(token="t")), VARS).headers == [("Authorization", "Bearer t")]


def test_basic_auth_encoding():
    resolved = assemble(_tpl(auth=BasicAuth(username="u", password="p")), VARS)
    expected = "Basic " + base64.b64encode(b"u:p").decode()
    assert resolved.headers == [("Authorization", expected)]
    assert expected == "Basic dTpw"


def test_basic_auth_always_added_even_when_empty():
    resolved = assemble(_tpl(auth=BasicAuth()), VARS)
    assert resolved.headers == [("Authorization", "Basic Og==")]


def test_api_key_header():
    auth = ApiKeyAuth(key="X-Api-Key", value="{{token}}", location=ApiKeyLocation.HEADER)
    template = _tpl(auth=auth, headers=[KeyValue(key="Accept", value="*/*")])
    assert assemble(template, VARS).headers == [("Accept", "*/*"), ("X-Api-Key", "abc")]


def test_api_key_query_comes_after_params():
    auth = ApiKeyAuth(key="api_key", value="{{token}}", location=ApiKeyLocation.QUERY)
    template = _tpl(auth=auth, query_params=[KeyValue(key="page", value="1")])
    assert assemble(template, VARS).url == "https://api.example.com/items?page=1&api_key=abc"


def test_api_key_empty_name_dropped():
    auth = ApiKeyAuth(key="", value="abc", location=ApiKeyLocation.QUERY)
    resolved = assemble(_tpl(auth=auth), VARS)
    assert resolved.url == "https://api.example.com/items"
    assert resolved.headers == []


# ── Body ─────────────────────────────────────────────────────────────────────

def test_no_body():
    resolved = assemble(_tpl(), VARS)
    assert resolved.body is None
    assert resolved.content_type is None


def test_raw_body_utf8_and_content_type():
    body = RawBody(content='{"host": "{{host}}", "name": "Zoë"}', content_type=RawContentType.JSON)
    resolved = assemble(_tpl(method=HTTPMethod.POST, body=body), VARS)
    assert resolved.body == '{"host": "api.example.com", "name": "Zoë"}'.encode("utf-8")
    assert resolved.content_type == "application/json"


def test_form_body():
    body = FormUrlEncodedBody(fields=[
        KeyValue(key="q", value="{{q}}"),
        KeyValue(key="skip", value="x", enabled=False),
        KeyValue(key="name", value="Zoë"),
    ])
    resolved = assemble(_tpl(method=HTTPMethod.POST, body=body), VARS)
    assert resolved.body == b"q=a%20b%26c&name=Zo%C3%AB"
    assert resolved.content_type == FORM_CONTENT_TYPE


def test_multipart_raises_unsupported():
    body = MultipartBody(parts=[
        MultipartPart(key="file", content=MultipartFile(path="/tmp/a.png")),
        MultipartPart(key="note", content=MultipartText(value="hi")),
        MultipartPart(key="off", enabled=False),
    ])
    with pytest.raises(UnsupportedBodyError) as exc_info:
        assemble(_tpl(method=HTTPMethod.POST, body=body), VARS)
    assert exc_info.value.body_type == "multipart"
    assert exc_info.value.details["parts"] == ["file", "note"]
    assert "2 active part" in str(exc_info.value)


def test_lone_surrogate_body_raises_encoding_error():
    # model_construct: the surrogate must reach the assembler unvalidated
    body = RawBody.model_construct(content="bad \ud800 text", content_type=RawContentType.TEXT)
    with pytest.raises(BodyEncodingError) as exc_info:
        assemble(_tpl(method=HTTPMethod.POST, body=body), VARS)
    assert exc_info.value.details["start"] == 4


def test_lone_surrogate_in_query_raises_assembly_error():
    with pytest.raises(AssemblyError):
        encode_component("\udc00")


# ── Errors ───────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("url", ["", "not a url", "ftp://files.example.com/x", "/relative/path", "{{missing}}/x"])
def test_invalid_url(url):
    with pytest.raises(InvalidURL):
        assemble(_tpl(url=url), VARS)


def test_invalid_url_message_hides_query():
    auth = ApiKeyAuth(key="key", value="SECRET", location=ApiKeyLocation.QUERY)
    with pytest.raises(InvalidURL) as exc_info:
        assemble(_tpl(url="ftp://x.test/a", auth=auth), VARS)
    assert "SECRET" not in str(exc_info.value)


def test_interpolation_error_propagates_from_any_field():
    template = _tpl(headers=[KeyValue(key="X", value="{{loop}}")])
    with pytest.raises(CircularReference):
        assemble(template, {**VARS, "loop": "{{loop}}"})


# ── Properties ───────────────────────────────────────────────────────────────

def test_assembly_is_idempotent_and_does_not_mutate_template():
    template = _tpl(
        query_params=[KeyValue(key="q", value="{{q}}")],
        auth=BearerAuth(token="{{token}}"),
        body=RawBody(content="{{host}}"),
    )
    before = template.model_dump()
    assembler = RequestAssembler()
    first = assembler.assemble(template, VARS)
    second = assembler.assemble(template, VARS)
    assert first == second
    assert template.model_dump() == before


def test_wire_headers_body_content_type_wins():
    template = _tpl(
        method=HTTPMethod.POST,
        headers=[KeyValue(key="content-type", value="text/plain"), KeyValue(key="X-A", value="1")],
        body=RawBody(content="{}"),
    )
    resolved = assemble(template, VARS)
    assert resolved.headers[0] == ("content-type", "text/plain")
    assert resolved.wire_headers() == [("X-A", "1"), ("Content-Type", "application/json")]


def test_append_query_and_redact_url_helpers():
    assert append_query("https://a.test", "") == "https://a.test"
    assert append_query("https://a.test?x=1", "y=2") == "https://a.test?x=1?y=2"
    assert redact_url("https://a.test/p?key=s#frag") == "https://a.test/p"


@pytest.mark.parametrize("headers, part", [
    ([KeyValue(key="X-User", value="Zoë")], "value"),
    ([KeyValue(key="X-Ünïcode", value="ok")], "name"),
])
def test_non_ascii_header_raises_header_encoding_error(headers, part):
    with pytest.raises(HeaderEncodingError) as exc_info:
        assemble(_tpl(headers=headers), VARS)
    assert exc_info.value.details["part"] == part
    assert isinstance(exc_info.value, AssemblyError)


def test_non_ascii_bearer_token_rejected_without_leaking_it():
    with pytest.raises(HeaderEncodingError) as exc_info:
        assemble(_tpl(auth=BearerAuth(token="tökén")), VARS)
    assert exc_info.value.header == "Authorization"
    assert "tökén" not in str(exc_info.value)


def test_template_is_frozen():
    template = _tpl(headers=[KeyValue(key="X-A", value="1")], auth=BearerAuth(token="t"), body=RawBody(content="{}"))
    with pytest.raises(ValidationError):
        template.url = "https://elsewhere.test"
    with pytest.raises(ValidationError):
        template.headers[0].value = "2"
    with pytest.raises(ValidationError):
        template.auth.token = "other"
    with pytest.raises(ValidationError):
        template.body.content = "[]"

    variant = template.model_copy(update={"url": "https://elsewhere.test"})
    assert variant.url == "https://elsewhere.test"
    assert template.url == "{{base}}/items"
