"""Query volatility classifier.

Decides whether the answer to a query is likely to go stale quickly
(``fresh``: weather, prices, scores, breaking news) or stay valid for a long
time (``evergreen``: definitions, explanations, history).

The classifier is an ordered cascade of rule tiers. Tiers are tried in
order and the first tier with any matching rule decides the category;
further matches inside that tier are only reported as evidence.

    1. temporal signals              -> fresh, high
    2. evergreen signals             -> evergreen, high
    3. question shape                -> either, high
    4. domain keywords               -> either, medium
    5. loose temporal substrings     -> fresh, low
    6. default                       -> evergreen, low

Classification is a pure function of the normalized text, so it is safe to
call from any number of concurrent requests.
"""

import re
from dataclasses import dataclass, field
from enum import Enum

from answer_cache.entities import Category, normalize_query


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class RuleGroup:
    """Patterns that all vote for the same category."""

    category: Category
    patterns: tuple[re.Pattern[str], ...]

    def matches(self, text: str) -> list[str]:
        found = []
        for pattern in self.patterns:
            match = pattern.search(text)
            if match:
                found.append(match.group(0))
        return found


@dataclass(frozen=True)
class Tier:
    number: int
    name: str
    confidence: Confidence
    groups: tuple[RuleGroup, ...]


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying one query.

    Attributes:
        category: Volatility category
        confidence: How strong the deciding signal was
        reasoning: Human-readable explanation
        tier: Number of the deciding tier (1-6)
        evidence: Matched phrases inside the deciding rule group
    """

    category: Category
    confidence: Confidence
    reasoning: str
    tier: int
    evidence: tuple[str, ...] = ()


@dataclass(frozen=True)
class QueryAnalysis:
    """Classification plus every temporal/evergreen signal found in the query."""

    result: ClassificationResult
    temporal_matches: list[str] = field(default_factory=list)
    evergreen_matches: list[str] = field(default_factory=list)


def _compile(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p) for p in patterns)


TEMPORAL_SIGNALS = RuleGroup(
    Category.FRESH,
    _compile(
        r"\btoday('s)?\b",
        r"\btonight\b",
        r"\btomorrow\b",
        r"\bright now\b",
        r"\bnow\b",
        r"\blive\b",
        r"\bbreaking\b",
        r"\blatest\b",
        r"\bcurrent(ly)?\b",
        r"\bthis (morning|afternoon|evening|week|weekend|month|year)\b",
        r"\bmost recent\b",
        r"\bup[- ]to[- ]date\b",
        r"\bstock price\b",
        r"\bexchange rate\b",
        r"\bweather forecast\b",
        r"\bpresent (status|state|situation|moment)\b",
    ),
)

EVERGREEN_SIGNALS = RuleGroup(
    Category.EVERGREEN,
    _compile(
        r"\bdefinition of\b",
        r"\bmeaning of\b",
        r"\bhistory of\b",
        r"\btheory\b",
        r"\bdifference between\b",
        r"\bprinciples? of\b",
        r"\bwhat causes\b",
        r"^how to\b",
        r"\bhow (does|do|did) .+ work\b",
        r"^why (do|does|is|are|did)\b",
        r"\bin general\b",
        r"^(explain|define)\b",
        r"\bscien(ce|tific)\b",
        r"^what (is|are) (a|an)\b",
    ),
)

FRESH_SHAPES = RuleGroup(
    Category.FRESH,
    _compile(
        r"^what('s| is| are) (happening|going on)\b",
        r"\bwho('s| is) (winning|leading)\b",
        r"^is .+ (open|closed|down)\b",
    ),
)

EVERGREEN_SHAPES = RuleGroup(
    Category.EVERGREEN,
    _compile(
        r"^who (invented|discovered|wrote|founded)\b",
        r"^when (was|were|did)\b",
        r"^describe\b",
    ),
)

FRESH_DOMAINS = RuleGroup(
    Category.FRESH,
    _compile(
        r"\bweather\b",
        r"\bnews\b",
        r"\bstocks?\b",
        r"\bmarkets?\b",
        r"\bscores?\b",
        r"\btraffic\b",
        r"\bflights?\b",
        r"\belections?\b",
        r"\bprices?\b",
        r"\beconomy\b",
    ),
)

EVERGREEN_DOMAINS = RuleGroup(
    Category.EVERGREEN,
    _compile(
        r"\beducation\b",
        r"\bhistory\b",
        r"\bmath(ematics)?\b",
        r"\bbiology\b",
        r"\bphilosophy\b",
        r"\brecipes?\b",
        r"\bgrammar\b",
        r"\bliterature\b",
    ),
)

# Plain substrings, deliberately loose ("know" contains "now")
LOOSE_TEMPORAL_TERMS = (
    "today", "now", "latest", "current", "weather", "score", "news", "price",
    "stock", "deadline", "this week", "this month", "tonight", "tomorrow",
    "live", "breaking", "update", "traffic", "flight", "currency",
    "exchange rate", "schedule",
)

TIERS = (
    Tier(1, "temporal signal", Confidence.HIGH, (TEMPORAL_SIGNALS,)),
    Tier(2, "evergreen signal", Confidence.HIGH, (EVERGREEN_SIGNALS,)),
    Tier(3, "question shape", Confidence.HIGH, (FRESH_SHAPES, EVERGREEN_SHAPES)),
    Tier(4, "domain keyword", Confidence.MEDIUM, (FRESH_DOMAINS, EVERGREEN_DOMAINS)),
)


def _loose_matches(text: str) -> list[str]:
    return [term for term in LOOSE_TEMPORAL_TERMS if term in text]


def classify(text: str) -> ClassificationResult:
    """Classify a query as fresh or evergreen.

    Args:
        text: Arbitrary query text (case and surrounding whitespace are ignored)

    Returns:
        ClassificationResult for the first tier that matched
    """
    normalized = normalize_query(text)

    for tier in TIERS:
        for group in tier.groups:
            evidence = group.matches(normalized)
            if evidence:
                return ClassificationResult(
                    category=group.category,
                    confidence=tier.confidence,
                    reasoning=(
                        f"{tier.name} ({len(evidence)} match"
                        f"{'es' if len(evidence) > 1 else ''}: {', '.join(evidence)})"
                    ),
                    tier=tier.number,
                    evidence=tuple(evidence),
                )

    loose = _loose_matches(normalized)
    if loose:
        return ClassificationResult(
            category=Category.FRESH,
            confidence=Confidence.LOW,
            reasoning=f"loose temporal keyword ({', '.join(loose)})",
            tier=5,
            evidence=tuple(loose),
        )

    return ClassificationResult(
        category=Category.EVERGREEN,
        confidence=Confidence.LOW,
        reasoning="insufficient signal, assume durable content",
        tier=6,
    )


def categorize(text: str) -> Category:
    """Shortcut returning only the category."""
    return classify(text).category


def analyze_query(text: str) -> QueryAnalysis:
    """Classify a query and list every temporal and evergreen signal in it.

    Unlike :func:`classify`, this does not stop at the first matching tier,
    which makes it useful for explaining borderline decisions.
    """
    normalized = normalize_query(text)
    temporal: list[str] = []
    evergreen: list[str] = []

    for tier in TIERS:
        for group in tier.groups:
            target = temporal if group.category is Category.FRESH else evergreen
            for phrase in group.matches(normalized):
                if phrase not in target:
                    target.append(phrase)

    return QueryAnalysis(
        result=classify(text),
        temporal_matches=temporal,
        evergreen_matches=evergreen,
    )
