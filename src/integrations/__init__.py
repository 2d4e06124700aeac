"""
Integrations layer.
This package contains all code used to communicate with external systems:
- The upstream insurance-quoting API (proxied calls)
- The rate spreadsheet (Google Sheets, or an in-memory grid)

Key rule:
- The proxy route MUST NOT talk to the spreadsheet directly.
- Augmentation strategies (src/integrations/policy) go through the SpreadsheetSource interface.

Switching implementations:
- The selection of Google Sheets vs in-memory source happens in ONE place (src/api/main.py).
"""

from .contracts.interfaces import AugmentationRequest, Sheet, SpreadsheetSource
from .contracts.pricing import (
    CommissionType,
    Gender,
    LineKind,
    PriceEstimate,
    PriceLineItem,
    PricingColumn,
    PropertyType,
    QuoteParameters,
)

__all__ = [
    # interfaces
    "AugmentationRequest", "Sheet", "SpreadsheetSource",
    # pricing
    "CommissionType", "Gender", "LineKind", "PriceEstimate",
    "PriceLineItem", "PricingColumn", "PropertyType", "QuoteParameters",
]
