"""
Name mapping for banks and insurers.

Resolves a human-readable name to the canonical id the upstream API uses:
explicit table first, transliterated slug otherwise.
"""

from typing import Mapping, Optional

from slugify import slugify

from src.integrations.contracts.mappings import BANK_NAME_MAPPINGS, COMPANY_NAME_MAPPINGS


def transliterate(text: Optional[str]) -> str:
    """Lowercase ASCII slug without separators ("Банк Уралсиб" -> "bankuralsib")."""
    if not text:
        return ""
    return slugify(text, lowercase=True, separator="")


def _resolve(name: Optional[str], mappings: Mapping[str, str]) -> str:
    if not name:
        return ""
    mapped = mappings.get(name)
    if mapped:
        return mapped
    return transliterate(name)


def find_bank_mapping(name: Optional[str]) -> str:
    return _resolve(name, BANK_NAME_MAPPINGS)


def find_company_mapping(name: Optional[str]) -> str:
    return _resolve(name, COMPANY_NAME_MAPPINGS)
