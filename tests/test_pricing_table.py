"""Tests for rate sheet parsing and the cached pricing table."""

from decimal import Decimal

import pytest

from src.integrations.contracts.pricing import (
    CommissionType,
    Gender,
    LineKind,
    PricingColumn,
    PropertyType,
)
from src.integrations.policy.name_mapper import transliterate
from src.integrations.policy.pricing_table import PricingTableBuilder, parse_rate, scan_column, scan_rows


def _items(rows, column=1):
    _, items = scan_rows(rows, column, "sberbank", "makc")
    return items


def test_life_table_and_title_are_parsed_for_column():
    rows = [
        ["жизнь М", "", ""],
        ["30", "0.01", ""],
        ["титул", "0.02", "0.03"],
    ]
    items = _items(rows)
    assert len(items) == 2

    life, title = items
    assert life.kind is LineKind.LIFE
    assert life.gender is Gender.MALE
    assert life.age == 30
    assert life.value == Decimal("0.01")
    assert title.kind is LineKind.TITLE
    assert title.value == Decimal("0.02")


def test_empty_cell_emits_nothing():
    rows = [
        ["жизнь М", "", ""],
        ["30", "0.01", ""],
        ["титул", "0.02", "0.03"],
    ]
    items = _items(rows, column=2)
    assert [item.kind for item in items] == [LineKind.TITLE]
    assert items[0].value == Decimal("0.03")


def test_short_row_is_treated_as_empty_cell():
    assert _items([["титул"]], column=3) == []


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("0,004", Decimal("0.004")),
        (" 0.5 ", Decimal("0.5")),
        ("1 000,5", Decimal("1000.5")),
        ("12", Decimal("12")),
    ],
)
def test_parse_rate_accepts_both_decimal_separators(raw, expected):
    assert parse_rate(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "n/a", "—", "NaN", "1,2,3"])
def test_parse_rate_rejects_non_numbers(raw):
    assert parse_rate(raw) is None


def test_unparseable_value_is_absent_not_error():
    assert _items([["квартира", "уточняется"]]) == []


def test_life_header_sets_gender_for_following_ages_only():
    rows = [
        ["жизнь Ж", "0,9"],
        ["30", "0,002"],
        ["31", "0,0021"],
        ["жизнь М", ""],
        ["30", "0,003"],
    ]
    items = _items(rows)
    assert [(item.gender, item.age) for item in items] == [
        (Gender.FEMALE, 30),
        (Gender.FEMALE, 31),
        (Gender.MALE, 30),
    ]
    # the header row's own value is ignored
    assert all(item.kind is LineKind.LIFE for item in items)


def test_property_row_clears_life_gender():
    rows = [
        ["жизнь М", ""],
        ["квартира", "0,002"],
        ["30", "0,003"],
    ]
    items = _items(rows)
    assert [item.kind for item in items] == [LineKind.PROPERTY, LineKind.PROPERTY]
    # "30" is no longer an age row, so it falls through to the default property type
    assert items[1].property_type is PropertyType.FLAT


def test_commission_row_clears_life_gender():
    rows = [
        ["жизнь М", ""],
        ["кв жизнь", "0,2"],
        ["30", "0,003"],
    ]
    items = _items(rows)
    assert items[0].kind is LineKind.COMMISSION
    assert items[0].commission_type is CommissionType.LIFE
    assert not any(item.kind is LineKind.LIFE for item in items)


def test_title_row_keeps_life_gender():
    rows = [
        ["жизнь М", ""],
        ["титул", "0,001"],
        ["31", "0,003"],
    ]
    items = _items(rows)
    assert items[1].kind is LineKind.LIFE
    assert items[1].age == 31


def test_age_row_without_life_header_is_not_life():
    items = _items([["30", "0,003"]])
    assert items[0].kind is LineKind.PROPERTY


def test_blank_label_rows_are_skipped_without_state_change():
    rows = [
        ["жизнь М", ""],
        ["", "0,5"],
        ["30", "0,003"],
    ]
    items = _items(rows)
    assert len(items) == 1
    assert items[0].kind is LineKind.LIFE


def test_life_header_registers_life_section_without_items():
    column = scan_column([["жизнь М", ""], ["30", ""]], 1, "sberbank", "makc")
    assert column.items == []
    assert LineKind.LIFE in column.sections


@pytest.mark.parametrize(
    "label,property_type,wooden",
    [
        ("дом (дерево)", PropertyType.HOUSE, True),
        ("Дом  дерево", PropertyType.HOUSE, True),
        ("дом (кирпич)", PropertyType.HOUSE, False),
        ("комната", PropertyType.ROOM, False),
        ("апартаменты", PropertyType.APARTMENTS, False),
        ("машиноместо", PropertyType.PARKING_SPACE, False),
        ("квартира", PropertyType.FLAT, False),
        ("что-то новое", PropertyType.FLAT, False),
    ],
)
def test_property_labels(label, property_type, wooden):
    (item,) = _items([[label, "0,001"]])
    assert item.property_type is property_type
    assert item.wooden_floor is wooden


@pytest.mark.parametrize(
    "label,commission_type",
    [
        ("кв имущество", CommissionType.PROPERTY),
        ("КВ титул", CommissionType.TITLE),
        ("кв жизнь", CommissionType.LIFE),
        ("kv property", CommissionType.PROPERTY),
    ],
)
def test_commission_labels(label, commission_type):
    (item,) = _items([[label, "0,1"]])
    assert item.kind is LineKind.COMMISSION
    assert item.commission_type is commission_type


def test_commission_row_without_known_kind_is_skipped():
    assert _items([["кв прочее", "0,1"]]) == []


def test_column_round_trips_through_cache_format():
    rows = [
        ["дом (дерево)", "0,004"],
        ["титул", "0,001"],
        ["жизнь Ж", ""],
        ["30", "0,002"],
        ["кв имущество", "0,1"],
    ]
    column = scan_column(rows, 1, "sberbank", "makc")
    assert len(column.items) == 4
    assert PricingColumn.from_dict(column.to_dict()) == column


# --- Builder ---


@pytest.mark.asyncio
async def test_build_filters_by_bank_and_company(spreadsheet, cache, throttle):
    builder = PricingTableBuilder(spreadsheet, cache, throttle)
    columns = await builder.build(bank_id="sberbank", company_id="vsk")
    assert [(c.bank_id, c.company_id) for c in columns] == [("sberbank", "vsk")]
    assert all(item.company_id == "vsk" for item in columns[0].items)


@pytest.mark.asyncio
async def test_build_without_filters_returns_every_column(spreadsheet, cache, throttle):
    builder = PricingTableBuilder(spreadsheet, cache, throttle)
    columns = await builder.build()
    pairs = {(c.bank_id, c.company_id) for c in columns}
    assert pairs == {
        ("sberbank", "makc"),
        ("sberbank", "vsk"),
        ("sberbank", transliterate("Новая Страховая")),
        ("vtb", "makc"),
        ("vtb", "yugoria"),
    }
    # one pause between the two sheets
    assert throttle.waits == 1


@pytest.mark.asyncio
async def test_get_column_is_cached_per_pair(spreadsheet, cache, throttle):
    builder = PricingTableBuilder(spreadsheet, cache, throttle)

    first = await builder.get_column("sberbank", "makc")
    loads = spreadsheet.sheet_loads
    second = await builder.get_column("sberbank", "makc")

    assert first == second
    assert spreadsheet.sheet_loads == loads
    assert len(first.of_kind(LineKind.LIFE)) == 3
    assert len(first.of_kind(LineKind.COMMISSION)) == 3

    await builder.get_column("vtb", "makc")
    assert spreadsheet.sheet_loads > loads


@pytest.mark.asyncio
async def test_get_column_unknown_pair_is_none(spreadsheet, cache, throttle):
    builder = PricingTableBuilder(spreadsheet, cache, throttle)
    assert await builder.get_column("sberbank", "nobody") is None
    assert await builder.get_column("nobank", "makc") is None


@pytest.mark.asyncio
async def test_unknown_pair_is_cached_and_skips_sheet_io(spreadsheet, cache, throttle):
    builder = PricingTableBuilder(spreadsheet, cache, throttle)

    assert await builder.get_column("sberbank", "rgs") is None
    loads = spreadsheet.sheet_loads
    lists = spreadsheet.list_calls

    assert await builder.get_column("sberbank", "rgs") is None
    assert spreadsheet.sheet_loads == loads
    assert spreadsheet.list_calls == lists


def test_empty_column_is_empty():
    assert PricingColumn(bank_id="sberbank", company_id="rgs").is_empty
    assert not scan_column([["жизнь М", ""]], 1, "sberbank", "makc").is_empty
