import threading
import pytest
import requests
import responses
from unittest.mock import patch
from urllib.parse import urlparse, parse_qs

from launch_arbiter.cache import ResolutionCache
from launch_arbiter.device import DeviceFingerprint
from launch_arbiter.errors import ExtractionError
from launch_arbiter.retry_policy import RetryPolicy
from launch_arbiter.resolver import (
    EndpointResolver,
    SOURCE_CACHE,
    SOURCE_NETWORK,
    extract_endpoint,
)


# --- Mock Constants ---
BASE_URL = "https://resolver.test/server.php"
MARKER = "TOKEN"
SEPARATOR = "#"
ENDPOINT = "https://example.com/x"

DEVICE = DeviceFingerprint(
    os_version="17.4",
    language="de",
    region="AT",
    model="iPhone15,2",
)


# ========
# FIXTURES
# ========
@pytest.fixture(autouse=True)
def mock_sleep():
    """Bypass retry delays for all tests in this module"""
    with patch("launch_arbiter.resolver.time.sleep", return_value=None) as sleep:
        yield sleep

@pytest.fixture
def cache(tmp_path):
    return ResolutionCache(path=tmp_path / "endpoint.json", key="resolved_endpoint")

@pytest.fixture
def resolver(cache):
    return EndpointResolver(
        cache,
        DEVICE,
        policy=RetryPolicy(max_attempts=3, attempt_timeout_s=15, retry_delay_s=1),
        base_url=BASE_URL,
        partner_token="partner-123",
        marker=MARKER,
        separator=SEPARATOR,
    )


# ==============================
# TEST GROUP: Payload Extraction
# ==============================
# Function: extract_endpoint()
# ----------------------------
@pytest.mark.parametrize(
    "body, expected",
    [
        # ✅ Canonical payload
        ("TOKEN#https://example.com/x", "https://example.com/x"),

        # ✅ Surrounding whitespace and trailing newline trimmed
        ("TOKEN#  https://example.com/x \n", "https://example.com/x"),

        # ✅ Only the first separator splits; fragments survive
        ("TOKEN#https://example.com/x#frag", "https://example.com/x#frag"),

        # ✅ Anything between marker and separator is ignored
        ("TOKEN:v2#https://example.com/x", "https://example.com/x"),
    ],
)
def test_extract_endpoint_success(body, expected):
    assert extract_endpoint(body, MARKER, SEPARATOR) == expected

@pytest.mark.parametrize(
    "body",
    [
        # ❌ Empty tail
        "TOKEN#",

        # ❌ Whitespace-only tail
        "TOKEN#   \n",

        # ❌ Marker missing
        "https://example.com/x",

        # ❌ Marker present but not a prefix
        "xTOKEN#https://example.com/x",

        # ❌ No separator
        "TOKEN https://example.com/x",

        # ❌ Empty body
        "",
    ],
)
def test_extract_endpoint_failure(body):
    with pytest.raises(ExtractionError):
        extract_endpoint(body, MARKER, SEPARATOR)


# =============================
# TEST GROUP: Cache Short-Circuit
# =============================
@responses.activate
def test_cache_hit_issues_no_network_request(resolver, cache):
    cache.store("https://cached.example.com")

    result = resolver.resolve()

    assert result.success
    assert result.endpoint == "https://cached.example.com"
    assert result.source == SOURCE_CACHE
    assert result.attempts == 0
    assert len(responses.calls) == 0


# =========================
# TEST GROUP: Wire Contract
# =========================
@responses.activate
def test_request_carries_token_and_device_params(resolver):
    responses.add(responses.GET, BASE_URL, body=f"TOKEN#{ENDPOINT}", status=200)

    resolver.resolve()

    assert len(responses.calls) == 1
    request = responses.calls[0].request
    assert request.method == "GET"

    url = urlparse(request.url)
    assert f"{url.scheme}://{url.netloc}{url.path}" == BASE_URL
    assert parse_qs(url.query) == {
        "p": ["partner-123"],
        "os": ["17.4"],
        "lng": ["de"],
        "devicemodel": ["iPhone15,2"],
        "country": ["AT"],
    }

def test_attempt_uses_policy_timeout(resolver):
    with patch("launch_arbiter.resolver.requests.get") as mock_get:
        mock_get.return_value.status_code = 200
        mock_get.return_value.content = f"TOKEN#{ENDPOINT}".encode()

        resolver.resolve()

    assert mock_get.call_args.kwargs["timeout"] == 15


# ======================================
# TEST GROUP: Successful Resolution Path
# ======================================
@responses.activate
def test_success_persists_endpoint(resolver, cache):
    responses.add(responses.GET, BASE_URL, body=f"TOKEN#{ENDPOINT}\n", status=200)

    result = resolver.resolve()

    assert result.success
    assert result.endpoint == ENDPOINT
    assert result.source == SOURCE_NETWORK
    assert result.attempts == 1
    assert cache.load() == ENDPOINT

@responses.activate
def test_second_resolve_served_from_cache(resolver):
    responses.add(responses.GET, BASE_URL, body=f"TOKEN#{ENDPOINT}", status=200)

    first = resolver.resolve()
    second = resolver.resolve()

    assert first.source == SOURCE_NETWORK
    assert second.source == SOURCE_CACHE
    assert second.endpoint == ENDPOINT
    assert len(responses.calls) == 1

@responses.activate
def test_success_survives_cache_write_failure(resolver, cache):
    responses.add(responses.GET, BASE_URL, body=f"TOKEN#{ENDPOINT}", status=200)

    with patch.object(cache, "store", return_value=False):
        result = resolver.resolve()

    assert result.success
    assert result.endpoint == ENDPOINT


# ===================================
# TEST GROUP: Retry / Failure Policy
# ===================================
@responses.activate
def test_three_timeouts_exhaust_attempts(resolver, cache, mock_sleep):
    responses.add(
        responses.GET, BASE_URL, body=requests.exceptions.ConnectTimeout("timed out")
    )

    result = resolver.resolve()

    assert not result.success
    assert result.attempts == 3
    assert len(responses.calls) == 3
    assert mock_sleep.call_count == 2
    mock_sleep.assert_called_with(1)
    assert cache.load() is None

@pytest.mark.parametrize(
    "first_failure",
    [
        # ⚠️ Transport failure
        {"body": requests.exceptions.ConnectionError("refused")},

        # ⚠️ Non-200 status
        {"body": "TOKEN#https://example.com/x", "status": 500},

        # ⚠️ Body is not UTF-8
        {"body": b"\xff\xfe\xfa", "status": 200},
    ],
)
@responses.activate
def test_retryable_failure_then_success(resolver, mock_sleep, first_failure):
    responses.add(responses.GET, BASE_URL, **first_failure)
    responses.add(responses.GET, BASE_URL, body=f"TOKEN#{ENDPOINT}", status=200)

    result = resolver.resolve()

    assert result.success
    assert result.endpoint == ENDPOINT
    assert result.attempts == 2
    assert len(responses.calls) == 2
    assert mock_sleep.call_count == 1

@pytest.mark.parametrize(
    "body",
    [
        # ❌ Empty tail
        "TOKEN#",

        # ❌ Marker absent (remote opt-out)
        "<html>nothing here</html>",
    ],
)
@responses.activate
def test_extraction_failure_is_not_retried(resolver, cache, mock_sleep, body):
    responses.add(responses.GET, BASE_URL, body=body, status=200)

    result = resolver.resolve()

    assert not result.success
    assert result.attempts == 1
    assert len(responses.calls) == 1
    mock_sleep.assert_not_called()
    assert cache.load() is None

def test_unexpected_error_maps_to_unavailable(resolver):
    with patch("launch_arbiter.resolver.requests.get", side_effect=RuntimeError("boom")):
        result = resolver.resolve()

    assert not result.success


# =============================
# TEST GROUP: Single-Flight
# =============================
def test_concurrent_resolve_issues_single_request(resolver):
    """A second caller joins the in-flight resolution instead of re-requesting"""
    entered = threading.Event()
    release = threading.Event()
    calls = []

    def slow_get(url, params=None, timeout=None):
        calls.append(url)
        entered.set()
        release.wait(5)
        response = requests.Response()
        response.status_code = 200
        response._content = f"TOKEN#{ENDPOINT}".encode()
        return response

    results = []

    with patch("launch_arbiter.resolver.requests.get", side_effect=slow_get):
        leader = threading.Thread(target=lambda: results.append(resolver.resolve()))
        leader.start()
        assert entered.wait(5)

        follower = threading.Thread(target=lambda: results.append(resolver.resolve()))
        follower.start()
        release.set()

        leader.join(5)
        follower.join(5)

    assert len(calls) == 1
    assert [r.endpoint for r in results] == [ENDPOINT, ENDPOINT]


# =========================
# TEST GROUP: Retry Policy
# =========================
def test_retry_policy_worst_case_latency():
    policy = RetryPolicy()

    assert policy.max_attempts == 3
    assert policy.worst_case_latency_s == 48
    assert policy.summary()["worst_case_latency_s"] == 48
