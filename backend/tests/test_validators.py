"""
Tests for validators.py - domain, email, LinkedIn and firmographic normalization.
"""
import httpx
import pytest

from nexsearch.services.validators import (
    canonicalize_linkedin_url,
    check_domain_reachable,
    clean_value,
    format_employees,
    format_revenue,
    is_sentinel,
    is_valid_domain_format,
    is_valid_name_part,
    is_valid_title,
    normalize_domain,
    validate_email,
    verify_linkedin_url,
)


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# Sentinels
# ---------------------------------------------------------------------------

class TestSentinels:
    """Empty and error placeholder values."""

    @pytest.mark.parametrize("value", [None, "", "   ", "Not available", "undefined", "Not found", "API Error"])
    def test_placeholders_are_sentinels(self, value):
        """Known placeholders count as no value."""
        assert is_sentinel(value)
        assert clean_value(value) is None

    def test_real_values_are_kept_stripped(self):
        assert clean_value("  acme.com ") == "acme.com"
        assert clean_value(250) == "250"
        assert not is_sentinel("Not available yet")


# ---------------------------------------------------------------------------
# Domains
# ---------------------------------------------------------------------------

class TestDomains:
    """Domain normalization, format checks and reachability probes."""

    @pytest.mark.parametrize("raw,expected", [
        ("https://www.Acme.com/about?x=1", "acme.com"),
        ("acme.com", "acme.com"),
        ("http://user@acme.co.uk:8080/", "acme.co.uk"),
        ("WWW.GLOBEX.COM", "globex.com"),
        ("", None),
        (None, None),
    ])
    def test_normalize_domain(self, raw, expected):
        """Scheme, www, path and case are stripped."""
        assert normalize_domain(raw) == expected

    def test_domain_format(self):
        assert is_valid_domain_format("acme.com")
        assert is_valid_domain_format("https://sub.acme.io/path")
        assert not is_valid_domain_format("acme")
        assert not is_valid_domain_format("not a domain.com")

    @pytest.mark.asyncio
    async def test_reachable_when_head_rejected_below_500(self):
        """A 405 still proves the host is alive."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(405)

        async with _client(handler) as client:
            assert await check_domain_reachable(client, "www.acme.com") is True
        assert seen[0].method == "HEAD"
        assert seen[0].url.scheme == "https"
        assert seen[0].url.host == "acme.com"

    @pytest.mark.asyncio
    async def test_unreachable_on_server_error(self):
        """A 5xx answer means unreachable."""
        async with _client(lambda r: httpx.Response(503)) as client:
            assert await check_domain_reachable(client, "acme.com") is False

    @pytest.mark.asyncio
    async def test_network_failure_falls_back_to_format(self):
        """A network error falls back to the format check."""
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        async with _client(handler) as client:
            assert await check_domain_reachable(client, "acme.com") is True
            assert await check_domain_reachable(client, "not_a_domain") is False


# ---------------------------------------------------------------------------
# Emails
# ---------------------------------------------------------------------------

class TestEmails:
    """Contact email rules."""

    def test_exact_domain_passes(self):
        """An address at the exact company domain passes."""
        assert validate_email("ceo@acme.com", "acme.com")

    def test_subdomain_fails(self):
        """Exact match only: a subdomain mailbox is not the company domain."""
        assert not validate_email("ceo@sub.acme.com", "acme.com")

    def test_generic_role_prefix_fails(self):
        """Role mailboxes such as info@ are rejected."""
        assert not validate_email("info@acme.com", "acme.com")
        assert not validate_email("sales@acme.com", "acme.com")

    def test_domain_is_normalized_and_case_insensitive(self):
        assert validate_email("Jane.Doe@ACME.com", "https://www.acme.com/")

    @pytest.mark.parametrize("email", ["", None, "jane", "jane@", "@acme.com", "jane@acme"])
    def test_malformed_emails_fail(self, email):
        assert not validate_email(email, "acme.com")


# ---------------------------------------------------------------------------
# LinkedIn
# ---------------------------------------------------------------------------

class TestLinkedIn:
    """LinkedIn company URL canonicalization and probing."""

    def test_equivalent_forms_share_one_canonical_url(self):
        """Every accepted spelling maps to one canonical URL."""
        forms = [
            "linkedin.com/company/acme/",
            "https://www.linkedin.com/company/acme",
            "LINKEDIN.COM/COMPANY/ACME",
        ]
        canonical = {canonicalize_linkedin_url(f) for f in forms}
        assert canonical == {"https://www.linkedin.com/company/acme"}

    @pytest.mark.parametrize("raw", [
        "linkedin.com/in/jdoe",
        "https://www.linkedin.com/company/acme/jobs",
        "https://example.com/company/acme",
        "",
        None,
    ])
    def test_non_company_pages_rejected(self, raw):
        """Personal profiles and other pages are not company pages."""
        assert canonicalize_linkedin_url(raw) is None

    @pytest.mark.asyncio
    async def test_probe_accepts_200(self):
        async with _client(lambda r: httpx.Response(200)) as client:
            url = await verify_linkedin_url(client, "linkedin.com/company/acme/")
        assert url == "https://www.linkedin.com/company/acme"

    @pytest.mark.asyncio
    async def test_probe_rejects_other_status(self):
        async with _client(lambda r: httpx.Response(404)) as client:
            assert await verify_linkedin_url(client, "linkedin.com/company/acme") is None

    @pytest.mark.asyncio
    async def test_probe_network_failure_accepts_on_format(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with _client(handler) as client:
            url = await verify_linkedin_url(client, "linkedin.com/company/acme")
        assert url == "https://www.linkedin.com/company/acme"


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------

class TestPeopleFields:
    """Name and title shape checks."""

    @pytest.mark.parametrize("part,ok", [
        ("Jane", True),
        ("Mary-Ann", True),
        ("José", True),
        ("J", False),
        ("J4ne", False),
        ("", False),
    ])
    def test_name_parts(self, part, ok):
        assert is_valid_name_part(part) is ok

    @pytest.mark.parametrize("title,ok", [
        ("CEO", True),
        ("VP, Sales & Marketing", True),
        ("Co-Founder", True),
        ("VP", False),
        ("Head of R&D 2", False),
    ])
    def test_titles(self, title, ok):
        assert is_valid_title(title) is ok


# ---------------------------------------------------------------------------
# Firmographics
# ---------------------------------------------------------------------------

class TestRevenueFormatting:
    """Revenue display formatting."""

    @pytest.mark.parametrize("raw,expected", [
        (1200000000, "$1.2B"),
        (450000000, "$450M"),
        (2500, "$2.5K"),
        ("1.2 billion", "$1.2B"),
        ("$14B (2023)", "$14B (2023)"),
        ("$1.2B (2022-2023)", "$1.2B (2022-2023)"),
        ("1000000-5000000", "$1M-$5M"),
        ("$3,000,000", "$3M"),
    ])
    def test_normalized_units(self, raw, expected):
        """Raw numbers become $K, $M or $B."""
        assert format_revenue(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "Not available", 0, True])
    def test_empty_values(self, raw):
        assert format_revenue(raw) is None

    def test_unreadable_text_is_kept(self):
        assert format_revenue("undisclosed, privately held") == "undisclosed, privately held"


class TestEmployeeFormatting:
    """Employee count formatting."""

    def test_counts_and_ranges(self):
        assert format_employees(250) == "250"
        assert format_employees(250.0) == "250"
        assert format_employees("51-200") == "51-200"
        assert format_employees(0) is None
        assert format_employees("Not available") is None
