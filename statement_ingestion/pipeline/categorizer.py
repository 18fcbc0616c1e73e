"""Categorization engine: exact keyword match first, fuzzy word-overlap match second.

The rule table is an ordered sequence of (keyword, category) rules. Exact matches are decided in
table order; the fuzzy pass is only consulted when no keyword occurs verbatim in the description and
can never override an exact match.
"""

from collections.abc import Iterable, Sequence

from statement_ingestion.core.models import (
    UNCATEGORIZED,
    CategorizationRule,
    CategoryAssignment,
    Confidence,
    Transaction,
)
from statement_ingestion.core.utils import get_logger

logger = get_logger("statement-ingestion.categorizer")

DEFAULT_FUZZY_THRESHOLD = 0.6

RuleInput = CategorizationRule | tuple[str, str]


def _as_rules(rules: Iterable[RuleInput]) -> list[CategorizationRule]:
    return [
        rule if isinstance(rule, CategorizationRule) else CategorizationRule(keyword=rule[0], category=rule[1])
        for rule in rules
    ]


def exact_match(description: str, rules: Sequence[CategorizationRule]) -> CategorizationRule | None:
    """Return the first rule whose keyword is a case-insensitive substring of the description."""
    lowered = description.lower()
    for rule in rules:
        if rule.keyword.lower() in lowered:
            return rule
    return None


def word_overlap(keyword: str, description: str) -> float:
    """Fraction of the keyword's words found in the description.

    A word also counts when it appears in the description with its whitespace removed, so
    "JuicePro" is found in "JUICE Pro Transfer".
    """
    words = keyword.lower().split()
    if not words:
        return 0.0
    lowered = description.lower()
    compact = "".join(lowered.split())
    found = sum(1 for word in words if word in lowered or word in compact)
    return found / len(words)


def fuzzy_match(
    description: str, rules: Sequence[CategorizationRule], threshold: float = DEFAULT_FUZZY_THRESHOLD
) -> tuple[CategorizationRule, float] | None:
    """Return the rule with the highest word overlap at or above the threshold (first one on ties)."""
    best: tuple[CategorizationRule, float] | None = None
    for rule in rules:
        score = word_overlap(rule.keyword, description)
        if score >= threshold and (best is None or score > best[1]):
            best = (rule, score)
    return best


class Categorizer:
    """Assigns categories to transaction descriptions using an ordered rule table."""

    def __init__(self, rules: Iterable[RuleInput], threshold: float = DEFAULT_FUZZY_THRESHOLD) -> None:
        """Initialize the categorizer with a rule table and the fuzzy-match threshold."""
        self.rules = _as_rules(rules)
        self.threshold = threshold

    def categorize(self, description: str) -> CategoryAssignment:
        """Categorize one description."""
        rule = exact_match(description, self.rules)
        if rule is not None:
            return CategoryAssignment(category=rule.category, keyword=rule.keyword, confidence=Confidence.HIGH)
        fuzzy = fuzzy_match(description, self.rules, self.threshold)
        if fuzzy is not None:
            rule, score = fuzzy
            logger.debug(f"Fuzzy match {description!r} -> {rule.category} via {rule.keyword!r} ({score:.2f})")
            return CategoryAssignment(category=rule.category, keyword=rule.keyword, confidence=Confidence.MEDIUM)
        return CategoryAssignment(category=UNCATEGORIZED, keyword=None, confidence=Confidence.NONE)

    def assign(self, transaction: Transaction) -> Transaction:
        """Attach a category assignment to a transaction and return it."""
        transaction.assignment = self.categorize(transaction.description)
        return transaction


def categorize(
    description: str, rules: Iterable[RuleInput], threshold: float = DEFAULT_FUZZY_THRESHOLD
) -> CategoryAssignment:
    """Categorize a description against an ordered rule table."""
    return Categorizer(rules, threshold).categorize(description)
