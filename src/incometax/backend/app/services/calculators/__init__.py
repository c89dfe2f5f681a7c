"""Domain-specific calculation helpers."""

from .brackets import (
    BracketLabels,
    TaxYearTable,
    UnknownTaxYearError,
    apply_brackets,
    build_bracket_labels,
)
from .utils import (
    SENTINEL,
    format_amount,
    format_percentage,
    format_positive_amount,
    round_currency,
    round_rate,
)

__all__ = [
    "SENTINEL",
    "BracketLabels",
    "TaxYearTable",
    "UnknownTaxYearError",
    "apply_brackets",
    "build_bracket_labels",
    "format_amount",
    "format_percentage",
    "format_positive_amount",
    "round_currency",
    "round_rate",
]
