"""
Weighted spam/phishing scorer.

Five independent boolean features are extracted from the sender, subject and
body, each contributing a fixed weight. The phrase lists, regex tables and
weights are plain module-level data bundled into ``SpamRules`` so they can be
swapped or tuned without touching the scoring code.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Sequence, Tuple
from urllib.parse import urlsplit

from .models import Email, SpamFeatures, SpamResult

logger = logging.getLogger(__name__)

NAME = "Spam/Phishing Detector"

SPAM_THRESHOLD = 0.5


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

# Feature name -> weight. Order is the order reasons are reported in.
WEIGHTS: Dict[str, float] = {
    "sender_domain_mismatch": 0.30,
    "suspicious_links": 0.25,
    "urgency_words": 0.20,
    "grammar_issues": 0.10,
    "known_spam_patterns": 0.35,
}

URGENCY_PHRASES: Tuple[str, ...] = (
    "urgent",
    "immediately",
    "act now",
    "action required",
    "verify your account",
    "confirm your identity",
    "suspended",
    "limited time",
    "expires",
    "within 24 hours",
    "within 48 hours",
    "click here immediately",
    "respond immediately",
    "don't delay",
    "final notice",
    "last chance",
    "account will be closed",
    "verify now",
    "confirm now",
    "update now",
    # lottery / reward scams
    "you have won",
    "been selected",
    "claim your",
    "send your bank",
    "bank details",
    "winner",
)

SPAM_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"congratulations.*won",
        r"you('ve| have) been selected",
        r"claim your (prize|reward|money)",
        r"nigerian prince",
        r"wire transfer",
        r"inheritance.*million",
        r"lottery winner",
        r"click (here|below) to (verify|confirm|update)",
        r"your account (has been|will be) (suspended|terminated|closed)",
        r"password.*expired",
        r"unusual activity.*account",
        r"we detected.*suspicious",
        r"dear (valued )?customer",
        r"dear (sir|madam|user)",
        r"you have won",
        r"send(ing)? your bank details",
        r"lottery",
        r"million (dollars|usd|\$)",
        r"\bprince\b",
        r"don'?t delay",
        r"account will be closed",
    )
)

SHORTENER_DOMAINS: Tuple[str, ...] = (
    "bit.ly",
    "tinyurl.com",
    "goo.gl",
    "t.co",
    "ow.ly",
    "is.gd",
    "buff.ly",
    "adf.ly",
    "tiny.cc",
)

# Host pattern -> the brand's own registrable domain. A host matching the
# pattern that is not the brand's domain is an impersonation.
HOMOGLYPH_BRAND_PATTERNS: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"paypa[l1]", re.IGNORECASE), "paypal.com"),
    (re.compile(r"amaz[o0]n", re.IGNORECASE), "amazon.com"),
    (re.compile(r"g[o0][o0]gle", re.IGNORECASE), "google.com"),
    (re.compile(r"micr[o0]s[o0]ft", re.IGNORECASE), "microsoft.com"),
    (re.compile(r"app[l1]e", re.IGNORECASE), "apple.com"),
    (re.compile(r"netf[l1]ix", re.IGNORECASE), "netflix.com"),
)

# Second-level labels under a country code ("co.uk", "com.au").
SECOND_LEVEL_SUFFIXES = frozenset({"co", "com", "org", "net", "ac", "gov", "edu", "ne", "or"})

GRAMMAR_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\b(kindly|please kindly)\b",
        r"\b(revert back|reply back)\b",
        r"\bdo the needful\b",
        r"\byour good self\b",
        r"\$\s*\d+.*\s*(USD|dollars)",
    )
)

BRAND_TOKENS: Tuple[str, ...] = (
    "paypal",
    "amazon",
    "google",
    "microsoft",
    "apple",
    "netflix",
    "bank",
)

URL_RE = re.compile(r"https?://[^\s<>\"]+", re.IGNORECASE)
IPV4_HOST_RE = re.compile(r"^\d{1,3}(?:\.\d{1,3}){3}$")
SENDER_DOMAIN_RE = re.compile(r"@([a-zA-Z0-9.-]+)")
DISPLAY_NAME_RE = re.compile(r"^\s*\"?([^<\"]+?)\"?\s*<")
DOMAIN_IN_NAME_RE = re.compile(r"([a-z0-9-]+)\.(?:com|org|net|io)\b")


@dataclass(frozen=True)
class SpamRules:
    """Every tunable input of the scorer."""

    weights: Dict[str, float] = field(default_factory=lambda: dict(WEIGHTS))
    urgency_phrases: Sequence[str] = URGENCY_PHRASES
    spam_patterns: Sequence[Pattern[str]] = SPAM_PATTERNS
    shortener_domains: Sequence[str] = SHORTENER_DOMAINS
    homoglyph_brand_patterns: Sequence[Tuple[Pattern[str], str]] = HOMOGLYPH_BRAND_PATTERNS
    grammar_patterns: Sequence[Pattern[str]] = GRAMMAR_PATTERNS
    brand_tokens: Sequence[str] = BRAND_TOKENS
    threshold: float = SPAM_THRESHOLD
    max_links_reported: int = 2
    max_urgency_reported: int = 3


DEFAULT_RULES = SpamRules()


# ---------------------------------------------------------------------------
# Sender parsing
# ---------------------------------------------------------------------------


def extract_sender_domain(sender: str) -> Optional[str]:
    match = SENDER_DOMAIN_RE.search(sender)
    return match.group(1).lower() if match else None


def extract_display_name(sender: str) -> Optional[str]:
    """Display name from "John Doe <john@example.com>", lower-cased."""
    match = DISPLAY_NAME_RE.match(sender)
    if not match:
        return None
    name = match.group(1).strip().lower()
    return name or None


# ---------------------------------------------------------------------------
# Feature checks
# ---------------------------------------------------------------------------


def check_sender_domain_mismatch(email: Email, rules: SpamRules = DEFAULT_RULES) -> bool:
    domain = extract_sender_domain(email.from_)
    display_name = extract_display_name(email.from_)

    if not domain or not display_name:
        return False

    embedded = DOMAIN_IN_NAME_RE.search(display_name)
    if embedded and embedded.group(1) not in domain:
        return True

    for brand in rules.brand_tokens:
        if brand in display_name and brand not in domain:
            return True

    return False


def _is_own_domain(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def _is_public_suffix(labels: Sequence[str]) -> bool:
    """True for a bare TLD ("de") or a two-level country suffix ("co.uk")."""
    if len(labels) == 1:
        return True
    return len(labels) == 2 and labels[0] in SECOND_LEVEL_SUFFIXES and len(labels[1]) == 2


def _impersonates_brand(host: str, pattern: Pattern[str], brand: str) -> bool:
    labels = host.split(".")
    for i, label in enumerate(labels):
        match = pattern.search(label)
        if not match:
            continue
        # Digit-for-letter spelling: "paypa1".
        if match.group(0) != brand:
            return True
        # Brand word combined with other tokens: "paypal-verify". A plain
        # substring ("pineapple") is not a token.
        tokens = label.split("-")
        if brand in tokens and len(tokens) > 1:
            return True
        # Brand label that is not the registrable one: "paypal.evil.com".
        # Regional brand domains ("amazon.co.uk", "google.de") pass.
        if label == brand and not _is_public_suffix(labels[i + 1 :]):
            return True
    return False


def _link_is_suspicious(host: str, rules: SpamRules) -> bool:
    if any(_is_own_domain(host, d) for d in rules.shortener_domains):
        return True
    if IPV4_HOST_RE.match(host):
        return True
    for pattern, brand_domain in rules.homoglyph_brand_patterns:
        if _is_own_domain(host, brand_domain):
            continue
        if _impersonates_brand(host, pattern, brand_domain.split(".")[0]):
            return True
    return False


def find_suspicious_links(email: Email, rules: SpamRules = DEFAULT_RULES) -> List[str]:
    links: List[str] = []
    for url in URL_RE.findall(email.text):
        try:
            host = (urlsplit(url).hostname or "").lower()
        except ValueError:
            # Malformed authority (e.g. an unclosed IPv6 bracket).
            continue
        if host and _link_is_suspicious(host, rules):
            links.append(url)
    return links


def find_urgency_phrases(email: Email, rules: SpamRules = DEFAULT_RULES) -> List[str]:
    text = email.text.lower()
    return [phrase for phrase in rules.urgency_phrases if phrase.lower() in text]


def check_grammar_issues(email: Email, rules: SpamRules = DEFAULT_RULES) -> bool:
    text = email.text
    return any(pattern.search(text) for pattern in rules.grammar_patterns)


def find_spam_patterns(email: Email, rules: SpamRules = DEFAULT_RULES) -> List[str]:
    text = email.text
    return [pattern.pattern for pattern in rules.spam_patterns if pattern.search(text)]


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def detect_spam(email: Email, rules: SpamRules = DEFAULT_RULES) -> SpamResult:
    """
    Score an email for spam/phishing.

    Each triggered feature adds its weight; the sum is capped at 1.0 and
    ``is_spam`` is ``score >= rules.threshold``. Pure and deterministic.
    """
    links = find_suspicious_links(email, rules)
    urgency = find_urgency_phrases(email, rules)
    patterns = find_spam_patterns(email, rules)

    features = SpamFeatures(
        sender_domain_mismatch=check_sender_domain_mismatch(email, rules),
        suspicious_links=bool(links),
        urgency_words=bool(urgency),
        grammar_issues=check_grammar_issues(email, rules),
        known_spam_patterns=bool(patterns),
    )

    reason_text = {
        "sender_domain_mismatch": "Sender domain mismatch detected",
        "suspicious_links": "Suspicious links found: "
        + ", ".join(links[: rules.max_links_reported]),
        "urgency_words": "Urgency language detected: "
        + ", ".join(urgency[: rules.max_urgency_reported]),
        "grammar_issues": "Common spam grammar patterns detected",
        "known_spam_patterns": "Known spam/phishing patterns detected",
    }

    score = 0.0
    reasons: List[str] = []
    for name, weight in rules.weights.items():
        if getattr(features, name):
            score += weight
            reasons.append(reason_text[name])

    # Rounded so that float summation (0.2 + 0.35) cannot straddle the threshold.
    score = round(min(score, 1.0), 2)

    result = SpamResult(
        score=score,
        is_spam=score >= rules.threshold,
        reasons=reasons,
        features=features,
    )
    logger.debug("Spam score=%.2f reasons=%s", result.score, result.reasons)
    return result


async def run(email: Email) -> SpamResult:
    """Async adapter so the orchestrator can gather this with the I/O-bound analyzers."""
    return detect_spam(email)
