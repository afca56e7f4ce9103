"""
Property-based tests for the Probe Executor.

Probes are driven against httpx.MockTransport so the pinned request
(connect address, Host header, SNI) and the SUCCESS/FAILURE
classification can be checked without network access.
"""

import asyncio
import string

import httpx
from hypothesis import given, settings, assume
from hypothesis import strategies as st

from cdn_toolkit.config import ProbeConfig
from cdn_toolkit.enums import ProbeStatus
from cdn_toolkit.models import Endpoint, OriginTarget, ProbeResult
from cdn_toolkit.probe import ProbeExecutor, pinned_request_parts


TARGET = OriginTarget(
    domain="a.example.com",
    check_url="https://a.example.com/system/info/public",
    expected_marker="ID123",
)
ENDPOINT = Endpoint(hostname="cdn-mia-01.example.net", ip="1.2.3.4")

marker_strategy = st.text(alphabet=string.ascii_letters + string.digits, min_size=4, max_size=32)
filler_strategy = st.text(alphabet=string.ascii_letters + string.digits + " {}\":,", max_size=200)


def run_probe(handler, target: OriginTarget = TARGET, endpoint: Endpoint = ENDPOINT,
              timeout: float = 5.0) -> ProbeResult:
    """Probe one pair against a mock transport."""
    executor = ProbeExecutor(
        ProbeConfig(timeout_seconds=timeout),
        transport=httpx.MockTransport(handler),
    )
    return asyncio.run(executor.probe(target, endpoint))


class TestPinnedRequestProperty:
    """The probe connects to the endpoint IP while presenting the origin domain."""

    def test_request_is_pinned_to_endpoint_ip(self) -> None:
        """Connect address = IP, Host header = domain, SNI = domain."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["host"] = request.url.host
            seen["scheme"] = request.url.scheme
            seen["path"] = request.url.path
            seen["host_header"] = request.headers["Host"]
            seen["sni"] = request.extensions.get("sni_hostname")
            return httpx.Response(200, text='{"Id":"ID123"}')

        result = run_probe(handler)

        assert result.status == ProbeStatus.SUCCESS
        assert seen == {
            "host": "1.2.3.4",
            "scheme": "https",
            "path": "/system/info/public",
            "host_header": "a.example.com",
            "sni": "a.example.com",
        }

    def test_ipv6_endpoint_is_bracketed(self) -> None:
        """An IPv6 endpoint address becomes a bracketed URL host."""
        url, headers, extensions = pinned_request_parts(
            TARGET, Endpoint(hostname="cdn-fra-02.example.net", ip="2001:db8::1")
        )

        assert url.host == "2001:db8::1"
        assert "[2001:db8::1]" in str(url)
        assert headers == {"Host": "a.example.com"}
        assert extensions == {"sni_hostname": "a.example.com"}

    def test_non_default_port_kept_in_host_header(self) -> None:
        """A port in the check URL is kept in both URL and Host header."""
        target = OriginTarget(
            domain="a.example.com",
            check_url="https://a.example.com:8443/health",
            expected_marker="ok",
        )
        url, headers, _ = pinned_request_parts(target, ENDPOINT)

        assert url.port == 8443
        assert headers["Host"] == "a.example.com:8443"


class TestProbeClassificationProperty:
    """SUCCESS iff the transport completes and the body contains the marker."""

    @given(marker=marker_strategy, prefix=filler_strategy, suffix=filler_strategy)
    @settings(max_examples=100)
    def test_marker_substring_yields_success(self, marker: str, prefix: str, suffix: str) -> None:
        """
        *For any* body containing the expected marker, the probe SHALL
        return SUCCESS regardless of the surrounding content.
        """
        target = OriginTarget(
            domain=TARGET.domain,
            check_url=TARGET.check_url,
            expected_marker=marker,
        )

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=prefix + marker + suffix)

        result = run_probe(handler, target=target)

        assert result.status == ProbeStatus.SUCCESS
        assert result.error is None
        assert (result.domain, result.hostname) == (TARGET.domain, ENDPOINT.hostname)

    @given(marker=marker_strategy, body=filler_strategy)
    @settings(max_examples=100)
    def test_missing_marker_yields_failure(self, marker: str, body: str) -> None:
        """*For any* body without the marker, the probe SHALL return FAILURE."""
        assume(marker not in body)
        target = OriginTarget(
            domain=TARGET.domain,
            check_url=TARGET.check_url,
            expected_marker=marker,
        )

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=body)

        result = run_probe(handler, target=target)

        assert result.status == ProbeStatus.FAILURE
        assert result.error.startswith("marker_missing")
        assert result.http_status_code == 200

    def test_marker_in_error_page_still_counts(self) -> None:
        """HTTP status is not part of the classification."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="maintenance ID123")

        result = run_probe(handler)

        assert result.status == ProbeStatus.SUCCESS
        assert result.http_status_code == 503

    @given(error_factory=st.sampled_from([
        lambda request: httpx.ConnectError("Connection refused", request=request),
        lambda request: httpx.ConnectError("[SSL: CERTIFICATE_VERIFY_FAILED]", request=request),
        lambda request: httpx.ReadTimeout("timed out", request=request),
        lambda request: httpx.RemoteProtocolError("Server disconnected", request=request),
        lambda request: RuntimeError("boom"),
        lambda request: ValueError("bad"),
    ]))
    @settings(max_examples=30)
    def test_transport_errors_yield_failure(self, error_factory) -> None:
        """
        *For any* error raised by the transport, the probe SHALL return
        FAILURE and never raise.
        """
        def handler(request: httpx.Request) -> httpx.Response:
            raise error_factory(request)

        result = run_probe(handler)

        assert result.status == ProbeStatus.FAILURE
        assert result.error

    def test_error_codes_are_distinguished_for_diagnostics(self) -> None:
        """Failures keep a diagnostic code even though the grid collapses them."""
        def refused(request):
            raise httpx.ConnectError("Connection refused", request=request)

        def tls(request):
            raise httpx.ConnectError("[SSL: WRONG_VERSION_NUMBER]", request=request)

        def slow(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        assert run_probe(refused).error.startswith("network_error")
        assert run_probe(tls).error.startswith("tls_error")
        assert run_probe(slow).error.startswith("timeout")

    def test_probe_timeout_bounds_slow_endpoint(self) -> None:
        """A response slower than the probe timeout is a FAILURE."""
        class SlowTransport(httpx.AsyncBaseTransport):
            async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
                await asyncio.sleep(5)
                return httpx.Response(200, text="ID123")

        executor = ProbeExecutor(ProbeConfig(timeout_seconds=0.05), transport=SlowTransport())
        result = asyncio.run(executor.probe(TARGET, ENDPOINT))

        assert result.status == ProbeStatus.FAILURE
        assert result.error.startswith("timeout")
