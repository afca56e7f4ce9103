"""
Property-based tests for location code extraction.

Uses Hypothesis for property-based testing to verify that column labels are
derived from endpoint hostnames by a fixed, documented rule.
"""

import string

from hypothesis import given, settings, assume
from hypothesis import strategies as st

from cdn_toolkit.models import Endpoint, location_code


code_strategy = st.text(
    alphabet=string.ascii_lowercase + string.digits + "-",
    min_size=1,
    max_size=20,
)

suffix_strategy = st.lists(
    st.text(alphabet=string.ascii_lowercase, min_size=1, max_size=10),
    min_size=1,
    max_size=3,
).map(".".join)


class TestLocationCodeProperty:
    """Property-based tests for location_code."""

    def test_known_examples(self) -> None:
        """The documented examples map to their short codes."""
        assert location_code("cdn-mia-01.datahorders.org") == "mia-01"
        assert location_code("cdn-fra-02.example.net") == "fra-02"
        assert location_code("cdn-ams-1") == "ams-1"

    @given(code=code_strategy, suffix=suffix_strategy)
    @settings(max_examples=100)
    def test_conventional_hostname_yields_code(self, code: str, suffix: str) -> None:
        """
        *For any* hostname 'cdn-<code>.<suffix>', the location code SHALL
        be exactly <code>.
        """
        assert location_code(f"cdn-{code}.{suffix}") == code

    @given(hostname=st.text(alphabet=string.ascii_lowercase + string.digits + ".-", min_size=1, max_size=40))
    @settings(max_examples=100)
    def test_unconventional_hostname_unchanged(self, hostname: str) -> None:
        """
        *For any* hostname that does not start with 'cdn-', the location
        code SHALL be the hostname itself.
        """
        assume(not hostname.lower().startswith("cdn-"))
        assert location_code(hostname) == hostname

    @given(code=code_strategy, suffix=suffix_strategy)
    @settings(max_examples=50)
    def test_endpoint_property_matches_function(self, code: str, suffix: str) -> None:
        """Endpoint.location_code delegates to location_code."""
        endpoint = Endpoint(hostname=f"cdn-{code}.{suffix}", ip="192.0.2.1")
        assert endpoint.location_code == location_code(endpoint.hostname)

    def test_prefix_match_is_anchored(self) -> None:
        """A 'cdn-' occurring later in the hostname is not a match."""
        assert location_code("edge-cdn-mia.example.net") == "edge-cdn-mia.example.net"

    def test_prefix_match_ignores_case(self) -> None:
        """Uppercase hostnames still follow the convention."""
        assert location_code("CDN-LAX-03.example.net") == "LAX-03"
