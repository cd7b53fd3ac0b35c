import pytest

from core.exceptions import BlockedHost
from core.safety import SafetyFilter, is_blocked_hostname, parse_ip
from core.target import parse_target


@pytest.mark.parametrize(
    "host",
    [
        "localhost",
        "LOCALHOST.",
        "api.localhost",
        "127.0.0.1",
        "127.1",
        "2130706433",
        "0x7f000001",
        "0.0.0.0",
        "10.1.2.3",
        "172.16.0.1",
        "192.168.1.1",
        "169.254.169.254",
        "::1",
        "fe80::1",
        "fd00::1",
        "::ffff:127.0.0.1",
        "224.0.0.1",
    ],
)
def test_blocked_hosts(host):
    assert is_blocked_hostname(host)


@pytest.mark.parametrize("host", ["example.test", "93.184.216.34", "2606:4700::1111", "cafe.example"])
def test_public_hosts_pass(host):
    assert not is_blocked_hostname(host)


def test_parse_ip_rejects_names():
    assert parse_ip("example.test") is None
    assert parse_ip("deadbeef") is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "url",
    ["http://localhost/admin", "http://127.0.0.1:8080/", "http://[::1]/", "https://192.168.0.10/x"],
)
async def test_check_raises_blocked_host(url):
    with pytest.raises(BlockedHost) as exc:
        await SafetyFilter().check(parse_target(url))

    assert exc.value.status_code == 403
    assert exc.value.message == "Blocked private host"


@pytest.mark.asyncio
async def test_public_target_is_allowed():
    await SafetyFilter().check(parse_target("https://example.test/ok"))


@pytest.mark.asyncio
async def test_dns_resolution_blocks_private_answers(monkeypatch):
    safety = SafetyFilter(resolve_dns=True)

    async def fake_resolve(target):
        return ["93.184.216.34", "10.0.0.5"]

    monkeypatch.setattr(safety, "_resolve", fake_resolve)

    with pytest.raises(BlockedHost):
        await safety.check(parse_target("https://internal.example/"))


@pytest.mark.asyncio
async def test_dns_failure_is_not_a_rejection(monkeypatch):
    safety = SafetyFilter(resolve_dns=True)

    async def fake_resolve(target):
        return []

    monkeypatch.setattr(safety, "_resolve", fake_resolve)

    await safety.check(parse_target("https://nowhere.invalid/"))


@pytest.mark.asyncio
async def test_dns_not_consulted_by_default(monkeypatch):
    safety = SafetyFilter()

    async def fail_resolve(target):
        raise AssertionError("resolver should not run")

    monkeypatch.setattr(safety, "_resolve", fail_resolve)

    await safety.check(parse_target("https://example.test/"))
