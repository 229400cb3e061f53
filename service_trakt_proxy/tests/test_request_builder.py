"""
Unit tests for the upstream request builders.
"""

import json

import pytest

from shared.config import TmdbCredentials, TraktCredentials
from service_trakt_proxy.app.adapters.request_builder import (
    TmdbRequestBuilder,
    TraktRequestBuilder,
    forwardable_params,
    parse_json_object,
)
from service_trakt_proxy.app.domain.models import ProxyRequestDescriptor


@pytest.fixture
def credentials():
    return TraktCredentials(client_id="cid", client_secret="csecret", expected_caller_key="anon")


@pytest.fixture
def builder():
    return TraktRequestBuilder("https://api.trakt.tv/")


class TestTraktRequestBuilder:
    """Test cases for TraktRequestBuilder."""

    def test_standard_headers(self, builder, credentials):
        outbound = builder.build(ProxyRequestDescriptor(upstream_path="/users/me"), credentials)

        assert outbound.method == "GET"
        assert outbound.url == "https://api.trakt.tv/users/me"
        assert outbound.headers == {
            "Content-Type": "application/json",
            "trakt-api-key": "cid",
            "trakt-api-version": "2",
        }
        assert outbound.content is None

    def test_forwards_user_token(self, builder, credentials):
        descriptor = ProxyRequestDescriptor(upstream_path="/sync/history", forwarded_user_token="user-tok")

        outbound = builder.build(descriptor, credentials)

        assert outbound.headers["Authorization"] == "Bearer user-tok"

    def test_query_params_exclude_control_params(self, builder, credentials):
        descriptor = ProxyRequestDescriptor(
            upstream_path="/search/movie",
            query_params=[("path", "/search/movie"), ("query", "alien"), ("method", "GET"), ("extended", "full")],
        )

        outbound = builder.build(descriptor, credentials)

        assert outbound.params == [("query", "alien"), ("extended", "full")]

    def test_device_code_gets_client_id_only(self, builder, credentials):
        descriptor = ProxyRequestDescriptor(upstream_path="/oauth/device/code", method="POST", body={})

        body = json.loads(builder.build(descriptor, credentials).content)

        assert body == {"client_id": "cid"}

    def test_device_token_gets_id_and_secret(self, builder, credentials):
        descriptor = ProxyRequestDescriptor(
            upstream_path="/oauth/device/token", method="POST", body={"code": "abc"}
        )

        body = json.loads(builder.build(descriptor, credentials).content)

        assert body == {"code": "abc", "client_id": "cid", "client_secret": "csecret"}

    def test_token_exchange_gets_id_and_secret(self, builder, credentials):
        descriptor = ProxyRequestDescriptor(
            upstream_path="/oauth/token", method="POST", body={"refresh_token": "r", "client_id": "spoofed"}
        )

        body = json.loads(builder.build(descriptor, credentials).content)

        assert body["client_id"] == "cid"
        assert body["client_secret"] == "csecret"
        assert body["refresh_token"] == "r"

    def test_other_endpoint_body_forwarded_unmodified(self, builder, credentials):
        payload = {"movies": [{"ids": {"trakt": 1}}]}
        descriptor = ProxyRequestDescriptor(upstream_path="/sync/watchlist", method="POST", body=payload)

        outbound = builder.build(descriptor, credentials)

        assert json.loads(outbound.content) == payload

    def test_empty_body_omitted(self, builder, credentials):
        descriptor = ProxyRequestDescriptor(upstream_path="/sync/playback/12", method="DELETE", body={})

        outbound = builder.build(descriptor, credentials)

        assert outbound.method == "DELETE"
        assert outbound.content is None

    def test_get_never_sends_body(self, builder, credentials):
        descriptor = ProxyRequestDescriptor(upstream_path="/oauth/device/code", method="GET", body={"x": 1})

        assert builder.build(descriptor, credentials).content is None

    def test_method_is_uppercased(self, builder, credentials):
        descriptor = ProxyRequestDescriptor(upstream_path="/oauth/device/code", method="post")

        outbound = builder.build(descriptor, credentials)

        assert outbound.method == "POST"
        assert json.loads(outbound.content) == {"client_id": "cid"}

    def test_caller_body_is_not_mutated(self, builder, credentials):
        payload = {"code": "abc"}
        descriptor = ProxyRequestDescriptor(upstream_path="/oauth/device/token", method="POST", body=payload)

        builder.build(descriptor, credentials)

        assert payload == {"code": "abc"}


class TestTmdbRequestBuilder:
    """Test cases for TmdbRequestBuilder."""

    def test_injects_api_key(self):
        builder = TmdbRequestBuilder("https://api.themoviedb.org/3")
        descriptor = ProxyRequestDescriptor(
            upstream_path="/movie/550",
            query_params=[("path", "/movie/550"), ("language", "en-US"), ("api_key", "caller")],
        )

        outbound = builder.build(descriptor, TmdbCredentials(api_key="server-key"))

        assert outbound.method == "GET"
        assert outbound.url == "https://api.themoviedb.org/3/movie/550"
        assert outbound.params == [("api_key", "server-key"), ("language", "en-US")]
        assert outbound.content is None


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, {}),
        (b"", {}),
        (b"not json", {}),
        (b"[1, 2]", {}),
        (b"\xff\xfe", {}),
        (b'{"a": 1}', {"a": 1}),
    ],
)
def test_parse_json_object(raw, expected):
    assert parse_json_object(raw) == expected


def test_forwardable_params_keeps_repeats():
    params = [("a", "1"), ("path", "/x"), ("a", "2")]
    assert forwardable_params(params) == [("a", "1"), ("a", "2")]
