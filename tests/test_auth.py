import base64

import pytest

from auth import AuthGate
from core.config import AuthSettings
from helpers import basic_auth


@pytest.fixture
def basic_gate():
    return AuthGate(AuthSettings(username="alice", password="s3cret"))


class TestBasicAuth:
    def test_valid_credentials_are_allowed(self, basic_gate):
        result = basic_gate.check({"authorization": basic_auth("alice", "s3cret")})

        assert result.allowed
        assert result.identity == "alice"

    def test_scheme_is_case_insensitive(self, basic_gate):
        token = basic_auth("alice", "s3cret").split(" ", 1)[1]

        assert basic_gate.check({"authorization": f"basic {token}"}).allowed

    def test_password_may_contain_colon(self):
        gate = AuthGate(AuthSettings(username="bob", password="a:b:c"))

        assert gate.check({"authorization": basic_auth("bob", "a:b:c")}).allowed

    @pytest.mark.parametrize(
        "header",
        [
            None,
            "",
            "Bearer abc",
            "Basic",
            "Basic !!!not-base64!!!",
            "Basic " + base64.b64encode(b"no-colon").decode(),
            "Basic " + base64.b64encode(b"\xff\xfe:x").decode(),
        ],
    )
    def test_malformed_credentials_are_rejected(self, basic_gate, header):
        headers = {} if header is None else {"authorization": header}

        assert not basic_gate.check(headers).allowed

    def test_wrong_password_is_rejected(self, basic_gate):
        result = basic_gate.check({"authorization": basic_auth("alice", "nope")})

        assert not result.allowed
        assert result.reason == "invalid credential"

    def test_unconfigured_gate_is_fail_closed_by_default(self):
        gate = AuthGate(AuthSettings())

        assert not gate.check({}).allowed
        assert not gate.check({"authorization": basic_auth("", "")}).allowed
        assert not gate.is_open

    def test_unconfigured_gate_opens_only_when_opted_out(self):
        gate = AuthGate(AuthSettings(allow_open=True))

        assert gate.check({}).allowed
        assert gate.is_open
        assert "OPEN PROXY" in gate.describe_policy()

    def test_allow_open_is_ignored_when_credentials_exist(self):
        gate = AuthGate(AuthSettings(username="alice", password="s3cret", allow_open=True))

        assert not gate.check({}).allowed
        assert not gate.is_open


class TestApiKeyAuth:
    def test_matching_key_is_allowed(self):
        gate = AuthGate(AuthSettings(mode="api_key", api_key="k-123"))

        result = gate.check({"x-api-key": "k-123"})

        assert result.allowed
        assert result.identity.startswith("key:")
        assert "k-123" not in result.identity

    def test_key_is_compared_verbatim(self):
        gate = AuthGate(AuthSettings(mode="api_key", api_key="k-123"))

        assert not gate.check({"x-api-key": "k-123 "}).allowed
        assert not gate.check({"x-api-key": "K-123"}).allowed
        assert not gate.check({}).allowed

    def test_unconfigured_key_always_rejects(self):
        gate = AuthGate(AuthSettings(mode="api_key", allow_open=True))

        assert not gate.check({"x-api-key": ""}).allowed
        assert not gate.check({}).allowed

    def test_basic_header_does_not_satisfy_api_key_mode(self):
        gate = AuthGate(AuthSettings(mode="api_key", api_key="k", username="alice", password="s3cret"))

        assert not gate.check({"authorization": basic_auth("alice", "s3cret")}).allowed


class TestChallenge:
    def test_www_challenge(self, basic_gate):
        assert basic_gate.challenge() == (401, {"WWW-Authenticate": 'Basic realm="Login Required"'})
        assert basic_gate.credential_header == "authorization"

    def test_proxy_challenge_uses_proxy_headers(self):
        gate = AuthGate(AuthSettings(username="alice", password="s3cret", challenge="proxy", realm="edge"))

        assert gate.challenge() == (407, {"Proxy-Authenticate": 'Basic realm="edge"'})
        assert gate.credential_header == "proxy-authorization"
        assert gate.check({"proxy-authorization": basic_auth("alice", "s3cret")}).allowed
        assert not gate.check({"authorization": basic_auth("alice", "s3cret")}).allowed

    def test_api_key_challenge(self):
        gate = AuthGate(AuthSettings(mode="api_key", api_key="k"))

        assert gate.challenge() == (401, {"WWW-Authenticate": 'ApiKey realm="Login Required"'})
        assert gate.credential_header == "x-api-key"
