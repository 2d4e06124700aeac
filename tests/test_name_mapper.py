"""Tests for bank / insurer name resolution."""

import re

import pytest

from src.integrations.contracts.mappings import BANK_NAME_MAPPINGS, COMPANY_NAME_MAPPINGS
from src.integrations.policy.name_mapper import find_bank_mapping, find_company_mapping, transliterate


@pytest.mark.parametrize("name,expected", sorted(COMPANY_NAME_MAPPINGS.items()))
def test_company_mapping_uses_explicit_table(name, expected):
    assert find_company_mapping(name) == expected


@pytest.mark.parametrize("name,expected", sorted(BANK_NAME_MAPPINGS.items()))
def test_bank_mapping_uses_explicit_table(name, expected):
    assert find_bank_mapping(name) == expected


def test_unmapped_name_falls_back_to_lowercase_ascii_slug():
    out = find_company_mapping("Новая Страховая Компания")
    assert out
    assert re.fullmatch(r"[a-z0-9]+", out)
    assert out == find_company_mapping("Новая Страховая Компания")


def test_transliteration_is_idempotent():
    first = transliterate("Банк Санкт-Петербург")
    assert transliterate(first) == first


def test_latin_names_lose_case_and_separators():
    assert transliterate("Some Bank-Name") == "somebankname"


def test_explicit_mapping_is_exact_match_only():
    # Different casing is not in the table, so it goes through transliteration.
    assert find_company_mapping("макс") != "makc"
    assert find_company_mapping("макс") == transliterate("макс")


@pytest.mark.parametrize("empty", [None, ""])
def test_empty_name_resolves_to_empty_id(empty):
    assert find_bank_mapping(empty) == ""
    assert find_company_mapping(empty) == ""
    assert transliterate(empty) == ""


def test_mappings_are_read_only():
    with pytest.raises(TypeError):
        COMPANY_NAME_MAPPINGS["Новая"] = "new"
