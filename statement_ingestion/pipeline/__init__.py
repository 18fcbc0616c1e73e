"""Pipeline package: validator, metadata extractor, transaction parser and categorization engine."""

from .categorizer import Categorizer, categorize  # noqa: F401
from .metadata import MetadataExtractor, extract_metadata  # noqa: F401
from .parser import TransactionParser, parse_transactions  # noqa: F401
from .rules import load_rules, load_vocabulary  # noqa: F401
from .validator import DocumentValidator, validate  # noqa: F401
