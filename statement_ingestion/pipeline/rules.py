"""Loading of the categorization rule table and the validator vocabulary.

Both are plain ordered data. A JSON rules file may hold either a list of
``{"keyword": ..., "category": ...}`` objects or a single ``{keyword: category}`` object; in both
cases file order is rule priority.
"""

import json
from pathlib import Path

from pydantic import ValidationError

from statement_ingestion.core.errors import RuleConfigurationError
from statement_ingestion.core.models import CategorizationRule
from statement_ingestion.core.utils import get_logger

from .vocabulary import DEFAULT_BANKING_KEYWORDS, DEFAULT_RULES

logger = get_logger("statement-ingestion.rules")


def default_rules() -> list[CategorizationRule]:
    """Return the built-in rule table."""
    return [CategorizationRule(keyword=keyword, category=category) for keyword, category in DEFAULT_RULES]


def rules_from_data(data: object) -> list[CategorizationRule]:
    """Build an ordered rule table from decoded JSON data."""
    if isinstance(data, dict):
        entries = [{"keyword": k, "category": v} for k, v in data.items()]
    elif isinstance(data, list):
        entries = [
            {"keyword": item[0], "category": item[1]} if isinstance(item, list | tuple) and len(item) == 2 else item  # noqa: PLR2004
            for item in data
        ]
    else:
        msg = f"Rule table must be a list or an object, got {type(data).__name__}"
        raise RuleConfigurationError(msg)
    try:
        return [CategorizationRule.model_validate(entry) for entry in entries]
    except ValidationError as exc:
        msg = f"Invalid categorization rule: {exc}"
        raise RuleConfigurationError(msg) from exc


def _read_json(path: Path) -> object:
    try:
        with path.open(encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"Could not read {path}: {exc}"
        raise RuleConfigurationError(msg) from exc


def load_rules(path: str | Path | None = None) -> list[CategorizationRule]:
    """Load the rule table from a JSON file, falling back to the built-in table."""
    if path is None or not Path(path).exists():
        return default_rules()
    rules = rules_from_data(_read_json(Path(path)))
    if not rules:
        msg = f"Rule table {path} is empty"
        raise RuleConfigurationError(msg)
    logger.info(f"Loaded {len(rules)} categorization rules from {path}")
    return rules


def load_vocabulary(path: str | Path | None = None) -> list[str]:
    """Load the validator's banking-keyword vocabulary, falling back to the built-in list."""
    if path is None or not Path(path).exists():
        return list(DEFAULT_BANKING_KEYWORDS)
    data = _read_json(Path(path))
    if not isinstance(data, list) or not all(isinstance(word, str) and word.strip() for word in data):
        msg = f"Vocabulary {path} must be a JSON list of non-empty strings"
        raise RuleConfigurationError(msg)
    logger.info(f"Loaded {len(data)} banking keywords from {path}")
    return [word.strip().lower() for word in data]
