# backend/nexsearch/services/validators.py
from __future__ import annotations

import logging
import re
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

# Placeholders providers (and LLMs) use for "no data"; never real values.
EMPTY_SENTINELS = {"", "Not available", "undefined"}
ERROR_SENTINELS = {
    "Not found",
    "Error",
    "Parse Error",
    "API Error",
    "No Response",
    "No API Key",
}

# Mailboxes that belong to a function, not a person
GENERIC_EMAIL_PREFIXES = {
    "info", "contact", "support", "hello", "admin", "sales", "office", "mail",
    "noreply", "no-reply", "webmaster", "help", "team", "careers", "jobs", "hr",
    "press", "marketing", "billing", "enquiries", "inquiries",
}

_DOMAIN_RE = re.compile(
    r"^(?=.{1,253}$)(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,63}$"
)
_EMAIL_RE = re.compile(r"^[a-z0-9._%+\-]+@[a-z0-9.\-]+\.[a-z]{2,}$")
_LINKEDIN_COMPANY_RE = re.compile(r"^linkedin\.com/company/([a-z0-9][a-z0-9._%\-]*)$")
_NAME_PART_RE = re.compile(r"^(?:[^\W\d_]|[\s\-])+$")
_TITLE_RE = re.compile(r"^(?:[^\W\d_]|[\s,&\-])+$")

_REVENUE_UNITS = (
    (1_000_000_000_000, "T"),
    (1_000_000_000, "B"),
    (1_000_000, "M"),
    (1_000, "K"),
)
_REVENUE_WORDS = {
    "k": 1_000, "thousand": 1_000,
    "m": 1_000_000, "mm": 1_000_000, "million": 1_000_000,
    "b": 1_000_000_000, "bn": 1_000_000_000, "billion": 1_000_000_000,
    "t": 1_000_000_000_000, "trillion": 1_000_000_000_000,
}
_REVENUE_NUMBER_RE = re.compile(
    r"^\$?\s*(?P<amount>\d[\d,]*(?:\.\d+)?)\s*(?P<unit>thousand|million|billion|trillion|bn|mm|k|m|b|t)?\b(?P<rest>.*)$",
    re.IGNORECASE,
)


def is_sentinel(value: Any) -> bool:
    """True for None, blank strings and the known placeholder/error tokens."""
    if value is None:
        return True
    if not isinstance(value, str):
        return False
    stripped = value.strip()
    return stripped in EMPTY_SENTINELS or stripped in ERROR_SENTINELS


def clean_value(value: Any) -> Optional[str]:
    """Return a stripped string, or None when the value carries no data."""
    if value is None:
        return None
    text = str(value).strip()
    if is_sentinel(text):
        return None
    return text


# ---------------------------------------------------------------------------
# Domains
# ---------------------------------------------------------------------------

def normalize_domain(raw: str | None) -> Optional[str]:
    """
    Reduce a URL or host to a bare lower-case domain.

    "https://www.Acme.com/about?x=1" -> "acme.com"
    """
    if not raw:
        return None
    d = raw.strip().lower()
    if "://" in d:
        d = d.split("://", 1)[1]
    # Strip path/query
    d = d.split("/", 1)[0].split("?", 1)[0].split("#", 1)[0]
    # Strip credentials and port
    d = d.rsplit("@", 1)[-1]
    d = d.split(":", 1)[0]
    if d.startswith("www."):
        d = d[4:]
    d = d.strip(".")
    return d or None


def is_valid_domain_format(domain: str | None) -> bool:
    d = normalize_domain(domain)
    return bool(d and _DOMAIN_RE.match(d))


async def check_domain_reachable(
    client: httpx.AsyncClient,
    domain: str,
    timeout: float = 5.0,
) -> bool:
    """
    Probe https://<domain> with a HEAD request.

    Any answer below 500 counts as reachable (many sites reject HEAD with
    403/405 but are clearly alive). On network failure or timeout we fall back
    to format validity, so provider outages never erase a plausible domain.
    """
    d = normalize_domain(domain)
    if not d or not _DOMAIN_RE.match(d):
        return False

    try:
        resp = await client.head(
            f"https://{d}",
            timeout=timeout,
            follow_redirects=True,
        )
    except httpx.HTTPError as e:
        logger.debug("Domain probe failed for %s (%s); using format check", d, e)
        return True

    return resp.status_code < 500


# ---------------------------------------------------------------------------
# Emails
# ---------------------------------------------------------------------------

def validate_email(email: str | None, domain: str | None) -> bool:
    """
    Accept a personal mailbox whose domain is exactly the company domain.

    Subdomains do not match ("ceo@sub.acme.com" vs "acme.com"), and generic
    role mailboxes (info@, sales@, ...) are rejected.
    """
    if not email or not domain:
        return False
    e = email.strip().lower()
    if not _EMAIL_RE.match(e):
        return False

    local, _, host = e.rpartition("@")
    if local in GENERIC_EMAIL_PREFIXES:
        return False

    target = normalize_domain(domain)
    return bool(target) and host == target


# ---------------------------------------------------------------------------
# LinkedIn
# ---------------------------------------------------------------------------

def canonicalize_linkedin_url(raw: str | None) -> Optional[str]:
    """
    Canonical company-page URL, or None for anything that is not one.

    "LINKEDIN.COM/COMPANY/ACME/" -> "https://www.linkedin.com/company/acme"
    Personal profiles (/in/...) and deeper paths are rejected.
    """
    if not raw:
        return None
    s = raw.strip().lower()
    if "://" in s:
        s = s.split("://", 1)[1]
    if s.startswith("www."):
        s = s[4:]
    s = s.split("?", 1)[0].split("#", 1)[0]
    s = s.rstrip("/")

    match = _LINKEDIN_COMPANY_RE.match(s)
    if not match:
        return None
    return f"https://www.linkedin.com/company/{match.group(1)}"


async def verify_linkedin_url(
    client: httpx.AsyncClient,
    raw: str | None,
    timeout: float = 5.0,
) -> Optional[str]:
    """
    Canonicalize and HEAD-probe a company page.

    200 OK accepts; any other status rejects. A network failure accepts on
    format validity alone.
    """
    canonical = canonicalize_linkedin_url(raw)
    if not canonical:
        return None

    try:
        resp = await client.head(canonical, timeout=timeout, follow_redirects=True)
    except httpx.HTTPError as e:
        logger.debug("LinkedIn probe failed for %s (%s); accepting on format", canonical, e)
        return canonical

    if resp.status_code == 200:
        return canonical
    logger.info("LinkedIn probe rejected %s with status %s", canonical, resp.status_code)
    return None


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------

def is_valid_name_part(part: str | None) -> bool:
    if not part:
        return False
    p = part.strip()
    return len(p) > 1 and bool(_NAME_PART_RE.match(p))


def is_valid_title(title: str | None) -> bool:
    if not title:
        return False
    t = title.strip()
    return len(t) > 2 and bool(_TITLE_RE.match(t))


# ---------------------------------------------------------------------------
# Firmographics formatting
# ---------------------------------------------------------------------------

def _format_amount(amount: float) -> str:
    for threshold, unit in _REVENUE_UNITS:
        if amount >= threshold:
            scaled = amount / threshold
            text = f"{scaled:.1f}".rstrip("0").rstrip(".")
            return f"${text}{unit}"
    return f"${amount:.0f}"


def format_revenue(value: Any) -> Optional[str]:
    """
    Normalize revenue to "$<amount><unit>" with unit in K/M/B/T.

    Numbers are scaled (1200000000 -> "$1.2B"); "1.2 billion" becomes "$1.2B";
    ranges "1000000-5000000" become "$1M-$5M". Trailing qualifiers such as
    " (2023)" are kept. Text we cannot read is returned stripped and unchanged.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _format_amount(float(value)) if value > 0 else None

    text = clean_value(value)
    if text is None:
        return None

    if "-" in text and not text.startswith("-"):
        low, _, high = text.partition("-")
        low_fmt = _parse_revenue_text(low, allow_suffix=False)
        high_fmt = _parse_revenue_text(high, allow_suffix=False)
        if low_fmt and high_fmt:
            return f"{low_fmt}-{high_fmt}"

    return _parse_revenue_text(text) or text


def _parse_revenue_text(text: str, allow_suffix: bool = True) -> Optional[str]:
    match = _REVENUE_NUMBER_RE.match(text.strip())
    if not match:
        return None
    if not allow_suffix and match.group("rest").strip():
        return None
    try:
        amount = float(match.group("amount").replace(",", ""))
    except ValueError:
        return None
    unit = (match.group("unit") or "").lower()
    amount *= _REVENUE_WORDS.get(unit, 1)
    if amount <= 0:
        return None
    return _format_amount(amount) + match.group("rest").rstrip()


def format_employees(value: Any) -> Optional[str]:
    """Headcount as a count ("250") or a range string ("11-50")."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        value = int(value)
    if isinstance(value, int):
        return str(value) if value > 0 else None
    return clean_value(value)
