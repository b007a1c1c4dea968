from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Tuple

from ..schemas.search import ClassifiedQuery, SearchIntent
from .llm import LLMService, parse_json_array
from .validators import normalize_domain

logger = logging.getLogger(__name__)

LLM_CONFIDENCE = 0.9
FALLBACK_CONFIDENCE = 0.5
LITERAL_LIST_CONFIDENCE = 1.0

GENERAL_UNAVAILABLE_TEXT = (
    "No language model is configured, so this question cannot be answered right now. "
    "Enter one company name per line to look companies up directly."
)

# Legal-form suffixes and category nouns that make free text read as a company lookup
COMPANY_SUFFIXES = {
    "inc", "incorporated", "llc", "ltd", "limited", "corp", "corporation",
    "co", "company", "plc", "pty", "sa", "sarl", "bv", "nv", "ag", "gmbh",
    "holdings", "group", "technologies", "labs",
}
COMPANY_CATEGORY_TERMS = {
    "companies", "startups", "firms", "businesses", "vendors", "suppliers",
    "manufacturers", "competitors", "brands", "enterprises", "corporations",
    "providers", "retailers", "unicorns",
}

_INTERROGATIVE_RE = re.compile(r"\?|\b(?:what|how|find|search)\b", re.IGNORECASE)
_TOP_N_RE = re.compile(
    r"\b(?:top|best|largest|biggest|leading)\s+(\d{1,3})\b", re.IGNORECASE
)
_BRACKET_BLOCK_RE = re.compile(r"\{([^{}]+)\}")
_LIST_MARKER_RE = re.compile(r"^\s*(?:[-*•·]+|\(?\d{1,3}[.)]|#)\s*")
_ARTIFACT_RE = re.compile(r"^[\s\d.,:;\-*•·()#]+$")
_QUOTES = "\"'“”‘’`"


class IntentLabel(str, Enum):
    """What the classification model may answer; anything else is UNCLASSIFIED."""

    COMPANY = "company"
    PERSON = "person"
    GENERAL = "general"
    UNCLASSIFIED = "unclassified"


class QueryShape(str, Enum):
    EXPLICIT_LIST = "explicit_list"
    TOP_N = "top_n"
    PROSE = "prose"


# ---------------------------------------------------------------------------
# Lexical helpers (no network)
# ---------------------------------------------------------------------------

def has_interrogative(text: str) -> bool:
    return bool(_INTERROGATIVE_RE.search(text or ""))


def detect_literal_list(query: str) -> Optional[List[str]]:
    """
    Treat a multi-line query with no question markers as a literal list of
    company names, one per line, in the order given.

    Returns None when the query does not have that shape.
    """
    if not query or has_interrogative(query):
        return None
    lines = [line.strip() for line in query.splitlines() if line.strip()]
    if len(lines) < 2:
        return None
    return lines


def detect_query_shape(query: str) -> Tuple[QueryShape, Optional[int]]:
    """Sub-type used to pick the extraction prompt, plus N for top-N requests."""
    match = _TOP_N_RE.search(query)
    if match:
        return QueryShape.TOP_N, int(match.group(1))

    stripped = query.strip()
    if "\n" in stripped or "," in stripped or "{" in stripped:
        return QueryShape.EXPLICIT_LIST, None
    return QueryShape.PROSE, None


def looks_business_like(text: str) -> bool:
    if _TOP_N_RE.search(text or ""):
        return True
    tokens = {t.lower() for t in re.findall(r"[A-Za-z]+", text or "")}
    return bool(tokens & COMPANY_SUFFIXES or tokens & COMPANY_CATEGORY_TERMS)


def fallback_intent(text: str) -> SearchIntent:
    return SearchIntent.COMPANY if looks_business_like(text) else SearchIntent.GENERAL


def parse_intent_label(content: Optional[str]) -> IntentLabel:
    if not content:
        return IntentLabel.UNCLASSIFIED
    label = content.strip().strip(_QUOTES).rstrip(".").strip().lower()
    try:
        intent = IntentLabel(label)
    except ValueError:
        return IntentLabel.UNCLASSIFIED
    return intent


def looks_like_url(value: str) -> bool:
    """
    Heuristic to check if a string looks like a URL or domain.
    """
    if not value:
        return False

    s = value.strip().lower()

    if s.startswith("http://") or s.startswith("https://"):
        return True

    if s.startswith("www."):
        return True

    # word.tld, optionally with a second-level suffix (e.g. "acme.co.uk")
    if re.match(r"^[a-z0-9-]+\.[a-z]{2,}(\.[a-z]{2,})?/?$", s):
        return True

    return False


def split_name_and_domain(value: str) -> Tuple[str, Optional[str]]:
    """
    For "acme-robotics.com" return ("Acme Robotics", "acme-robotics.com");
    anything that does not look like a URL comes back unchanged with no domain.
    """
    name = (value or "").strip()
    if not looks_like_url(name):
        return name, None

    domain = normalize_domain(name)
    if not domain:
        return name, None

    label = domain.split(".", 1)[0]
    display = label.replace("-", " ").replace("_", " ").title()
    return display or name, domain


def normalize_names(candidates: Iterable[Any]) -> List[str]:
    """
    Clean a raw list of extracted names.

    Strips list markers and quotes, drops numbering/bullet artifacts and
    "note:" lines, and de-duplicates case-insensitively keeping the first
    occurrence.
    """
    names: List[str] = []
    seen: set[str] = set()

    for item in candidates or []:
        if isinstance(item, dict):
            item = item.get("name") or item.get("companyName") or item.get("company_name")
        if not isinstance(item, str):
            continue

        text = item.strip()
        if not text or _ARTIFACT_RE.match(text):
            continue
        text = _LIST_MARKER_RE.sub("", text)
        text = text.strip().strip(_QUOTES).strip().rstrip(",;").strip()
        if not text or _ARTIFACT_RE.match(text):
            continue
        if text.lower().startswith("note:"):
            continue

        key = text.casefold()
        if key in seen:
            continue
        seen.add(key)
        names.append(text)

    return names


def split_bracket_blocks(query: str) -> Optional[List[str]]:
    blocks = [b.strip() for b in _BRACKET_BLOCK_RE.findall(query or "")]
    blocks = [b for b in blocks if b]
    return blocks or None


def split_lines(query: str) -> Optional[List[str]]:
    lines = [line.strip() for line in (query or "").splitlines() if line.strip()]
    return lines if len(lines) >= 2 else None


def split_commas(query: str) -> Optional[List[str]]:
    tokens = [t.strip() for t in (query or "").split(",") if t.strip()]
    return tokens if len(tokens) >= 2 else None


def whole_query(query: str) -> Optional[List[str]]:
    stripped = (query or "").strip()
    return [stripped] if stripped else None


NameStrategy = Callable[[str], Awaitable[Optional[List[str]]]]


def _lexical(fn: Callable[[str], Optional[List[str]]]) -> NameStrategy:
    async def _run(query: str) -> Optional[List[str]]:
        return fn(query)

    _run.__name__ = fn.__name__
    return _run


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

CLASSIFY_SYSTEM_PROMPT = """You route search queries for a B2B company research tool.
Answer with exactly one lower-case word:
- company: the user wants information about one or more specific companies, or a list of companies
- person: the user wants people or contacts at a company
- general: anything else (questions, explanations, trends, definitions)
Do not add punctuation or any other text."""

EXTRACTION_PROMPTS = {
    QueryShape.EXPLICIT_LIST: (
        "The user supplied a list of companies. Return every company name exactly as written, "
        "in the same order, as a JSON array of strings. Do not add companies."
    ),
    QueryShape.TOP_N: (
        "The user asks for the top {n} companies in a category. Return exactly {n} real, "
        "currently operating company names that best answer the request, most relevant first, "
        "as a JSON array of strings."
    ),
    QueryShape.PROSE: (
        "Extract the company names mentioned in the text. If the text describes a kind of "
        "company instead of naming any, return up to 10 well-known real companies that fit. "
        "Answer with a JSON array of strings only."
    ),
}

GENERAL_SYSTEM_PROMPT = (
    "You are a concise research assistant for business users. "
    "Answer in a few short paragraphs of plain text."
)


class QueryClassifier:
    """
    Turns raw query text into an intent and, for company intent, a list of
    company names.

    Nothing here raises on provider trouble: model failures and unusable
    answers fall through to deterministic fallbacks.
    """

    def __init__(self, llm: LLMService) -> None:
        self._llm = llm
        # Ordered; the first strategy yielding a non-empty normalized list wins
        self.extraction_strategies: List[Tuple[str, NameStrategy]] = [
            ("primary_llm", self._extract_with_primary_llm),
            ("bracket_blocks", _lexical(split_bracket_blocks)),
            ("lines", _lexical(split_lines)),
            ("commas", _lexical(split_commas)),
            ("secondary_llm", self._extract_with_secondary_llm),
            ("whole_query", _lexical(whole_query)),
        ]

    async def classify(self, raw_query: str) -> ClassifiedQuery:
        enhanced = " ".join((raw_query or "").split())

        if detect_literal_list(raw_query):
            return ClassifiedQuery(
                enhanced_query=enhanced,
                search_intent=SearchIntent.COMPANY,
                confidence_score=LITERAL_LIST_CONFIDENCE,
            )

        label = await self._classify_with_llm(enhanced)
        if label is IntentLabel.UNCLASSIFIED:
            intent = fallback_intent(enhanced)
            logger.info(
                "Intent model gave no usable label; falling back to %s",
                intent.value,
                extra={"step": "classify"},
            )
            return ClassifiedQuery(
                enhanced_query=enhanced,
                search_intent=intent,
                confidence_score=FALLBACK_CONFIDENCE,
            )

        return ClassifiedQuery(
            enhanced_query=enhanced,
            search_intent=SearchIntent(label.value),
            confidence_score=LLM_CONFIDENCE,
        )

    async def _classify_with_llm(self, query: str) -> IntentLabel:
        if not self._llm.is_configured:
            return IntentLabel.UNCLASSIFIED
        content = await self._llm.complete(
            [
                {"role": "system", "content": CLASSIFY_SYSTEM_PROMPT},
                {"role": "user", "content": query},
            ],
            max_tokens=5,
        )
        return parse_intent_label(content)

    async def extract_company_names(self, query: str) -> List[str]:
        """Run the fallback chain; returns [] only for a blank query."""
        for name, strategy in self.extraction_strategies:
            try:
                candidates = await strategy(query)
            except Exception:
                logger.exception("Name extraction strategy %s failed", name, extra={"step": name})
                continue

            names = normalize_names(candidates or [])
            if names:
                logger.debug(
                    "Extracted %d company name(s) via %s", len(names), name, extra={"step": name}
                )
                return names

        return []

    async def _extract_with_primary_llm(self, query: str) -> Optional[List[str]]:
        return await self._extract_with_llm(query, secondary=False)

    async def _extract_with_secondary_llm(self, query: str) -> Optional[List[str]]:
        if not self._llm.has_secondary:
            return None
        return await self._extract_with_llm(query, secondary=True)

    async def _extract_with_llm(self, query: str, *, secondary: bool) -> Optional[List[str]]:
        if not self._llm.is_configured:
            return None

        shape, top_n = detect_query_shape(query)
        instructions = EXTRACTION_PROMPTS[shape].format(n=top_n or 10)
        content = await self._llm.complete(
            [
                {"role": "system", "content": instructions},
                {"role": "user", "content": query},
            ],
            secondary=secondary,
        )
        return parse_json_array(content)

    async def answer_general(self, query: str) -> str:
        messages = [
            {"role": "system", "content": GENERAL_SYSTEM_PROMPT},
            {"role": "user", "content": query},
        ]
        content = await self._llm.complete(messages, temperature=0.3, max_tokens=600)
        if not content and self._llm.has_secondary:
            content = await self._llm.complete(
                messages, secondary=True, temperature=0.3, max_tokens=600
            )
        return content or GENERAL_UNAVAILABLE_TEXT
