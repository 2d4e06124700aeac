"""
Pricing table builder.

Each sheet of the rate spreadsheet is one bank. The header row lists insurers
(first cell reserved), and every data row starts with a label naming what the
row prices:

    | (reserved)     | МАКС   | ВСК    |
    | дом (дерево)   | 0,004  | 0,0045 |   -> property, house, wooden floor
    | квартира       | 0,002  |        |   -> property, flat
    | титул          | 0,001  | 0,0012 |   -> title
    | жизнь М        |        |        |   -> starts a male life table
    | 30             | 0,003  | 0,0031 |   -> life, male, age 30
    | 31             | 0,0032 |        |   -> life, male, age 31
    | жизнь Ж        |        |        |   -> starts a female life table
    | 30             | 0,002  | 0,0021 |
    | кв имущество   | 0,1    | 0,12   |   -> commission on property

Rows are scanned top to bottom as a fold over ScanState; the only state is
the gender of the life table currently being read. Empty cells and values
that do not parse produce no line item.
"""

import logging
import re
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from src.database.cache import CacheLayer
from src.integrations.contracts.interfaces import SpreadsheetSource
from src.integrations.contracts.pricing import (
    CommissionType,
    Gender,
    LineKind,
    PriceLineItem,
    PricingColumn,
    PropertyType,
)
from src.integrations.policy.name_mapper import find_bank_mapping, find_company_mapping
from src.utils.rate_limiter import SheetThrottle

logger = logging.getLogger(__name__)

PRICING_COLUMN_OPERATION = "pricing_column"

TITLE_LABELS = frozenset({"титул", "title"})
LIFE_PREFIXES = ("жизнь", "life")
COMMISSION_PREFIXES = ("кв ", "kv ")
MALE_MARKERS = ("м", "m")

COMMISSION_KEYWORDS: Tuple[Tuple[CommissionType, Tuple[str, ...]], ...] = (
    (CommissionType.PROPERTY, ("имущ", "property")),
    (CommissionType.TITLE, ("титул", "title")),
    (CommissionType.LIFE, ("жизн", "life")),
)

# label -> (property type, wooden floor); anything missing is a flat
PROPERTY_LABELS: Dict[str, Tuple[PropertyType, bool]] = {
    "дом дерево": (PropertyType.HOUSE, True),
    "дом (дерево)": (PropertyType.HOUSE, True),
    "дом деревянный": (PropertyType.HOUSE, True),
    "дом кирпич": (PropertyType.HOUSE, False),
    "дом (кирпич)": (PropertyType.HOUSE, False),
    "дом каменный": (PropertyType.HOUSE, False),
    "дом": (PropertyType.HOUSE, False),
    "комната": (PropertyType.ROOM, False),
    "апартаменты": (PropertyType.APARTMENTS, False),
    "машиноместо": (PropertyType.PARKING_SPACE, False),
    "машино-место": (PropertyType.PARKING_SPACE, False),
    "паркинг": (PropertyType.PARKING_SPACE, False),
    "house wood": (PropertyType.HOUSE, True),
    "house brick": (PropertyType.HOUSE, False),
    "room": (PropertyType.ROOM, False),
    "apartments": (PropertyType.APARTMENTS, False),
    "parking space": (PropertyType.PARKING_SPACE, False),
}

_WHITESPACE = re.compile(r"\s+")
_AGE = re.compile(r"^\d+$")
_WORD = re.compile(r"\w+")


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------

def normalize_label(raw: Optional[str]) -> str:
    return _WHITESPACE.sub(" ", raw or "").strip().lower()


def parse_rate(raw: Optional[str]) -> Optional[Decimal]:
    """Parse a rate cell written with either decimal separator; None if absent or invalid."""
    if raw is None:
        return None
    text = _WHITESPACE.sub("", str(raw)).replace(",", ".")
    if not text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def property_type_for(label: str) -> Tuple[PropertyType, bool]:
    return PROPERTY_LABELS.get(label, (PropertyType.FLAT, False))


def commission_type_for(label: str) -> Optional[CommissionType]:
    for commission_type, keywords in COMMISSION_KEYWORDS:
        if any(keyword in label for keyword in keywords):
            return commission_type
    return None


def life_gender_for(label: str) -> Gender:
    prefix = next(p for p in LIFE_PREFIXES if label.startswith(p))
    words = _WORD.findall(label[len(prefix):])
    if any(word.startswith(MALE_MARKERS) for word in words):
        return Gender.MALE
    return Gender.FEMALE


# ---------------------------------------------------------------------------
# Row scan
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScanState:
    gender: Optional[Gender] = None                  # None: not inside a life table
    sections: FrozenSet[LineKind] = frozenset()

    def entering(self, kind: LineKind, gender: Optional[Gender] = None) -> "ScanState":
        return ScanState(gender=gender, sections=self.sections | {kind})


def scan_row(
    state: ScanState,
    row: Sequence[str],
    column_index: int,
    bank_id: str,
    company_id: str,
) -> Tuple[ScanState, Optional[PriceLineItem]]:
    """One step of the fold: returns the next state and the item this row emits, if any."""
    label = normalize_label(row[0] if row else "")
    if not label:
        return state, None

    raw_value = row[column_index] if column_index < len(row) else None
    value = parse_rate(raw_value)

    def item(kind: LineKind, **attrs) -> Optional[PriceLineItem]:
        if value is None:
            return None
        return PriceLineItem(bank_id=bank_id, company_id=company_id, kind=kind, value=value, **attrs)

    if label in TITLE_LABELS:
        return replace(state, sections=state.sections | {LineKind.TITLE}), item(LineKind.TITLE)

    if label.startswith(LIFE_PREFIXES):
        return state.entering(LineKind.LIFE, gender=life_gender_for(label)), None

    if label.startswith(COMMISSION_PREFIXES):
        commission_type = commission_type_for(label)
        next_state = state.entering(LineKind.COMMISSION)
        if commission_type is None:
            logger.debug("Skipping commission row with unknown kind: %r", label)
            return next_state, None
        return next_state, item(LineKind.COMMISSION, commission_type=commission_type)

    if state.gender is not None and _AGE.match(label):
        return state, item(LineKind.LIFE, gender=state.gender, age=int(label))

    property_type, wooden_floor = property_type_for(label)
    return state.entering(LineKind.PROPERTY), item(
        LineKind.PROPERTY,
        property_type=property_type,
        wooden_floor=wooden_floor and property_type is PropertyType.HOUSE,
    )


def scan_rows(
    rows: Sequence[Sequence[str]],
    column_index: int,
    bank_id: str,
    company_id: str,
) -> Tuple[ScanState, List[PriceLineItem]]:
    state = ScanState()
    items: List[PriceLineItem] = []
    for row in rows:
        state, emitted = scan_row(state, row, column_index, bank_id, company_id)
        if emitted is not None:
            items.append(emitted)
    return state, items


def scan_column(
    rows: Sequence[Sequence[str]],
    column_index: int,
    bank_id: str,
    company_id: str,
) -> PricingColumn:
    state, items = scan_rows(rows, column_index, bank_id, company_id)
    return PricingColumn(bank_id=bank_id, company_id=company_id, items=items, sections=state.sections)


def merge_columns(columns: Sequence[PricingColumn]) -> PricingColumn:
    """Combine columns for the same pair (e.g. a bank spread over two sheets)."""
    first = columns[0]
    items: List[PriceLineItem] = []
    sections: FrozenSet[LineKind] = frozenset()
    for column in columns:
        items.extend(column.items)
        sections = sections | column.sections
    return PricingColumn(bank_id=first.bank_id, company_id=first.company_id, items=items, sections=sections)


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

class PricingTableBuilder:
    def __init__(self, source: SpreadsheetSource, cache: CacheLayer, throttle: Optional[SheetThrottle] = None):
        self.source = source
        self.cache = cache
        self.throttle = throttle or SheetThrottle()

    async def build(self, bank_id: Optional[str] = None, company_id: Optional[str] = None) -> List[PricingColumn]:
        """Parse every (bank, insurer) column, optionally narrowed to one bank and/or insurer."""
        sheets = await self.source.list_sheets()
        columns: List[PricingColumn] = []
        loaded = 0

        for sheet in sheets:
            sheet_bank_id = find_bank_mapping(sheet.title)
            if bank_id and sheet_bank_id != bank_id:
                continue

            if loaded:
                await self.throttle.wait()
            loaded += 1

            header = await sheet.load_header()
            wanted = []
            for index, name in enumerate(header):
                if index == 0 or not (name or "").strip():
                    continue
                column_company_id = find_company_mapping(name.strip())
                if company_id and column_company_id != company_id:
                    continue
                wanted.append((index, column_company_id))

            if not wanted:
                logger.debug("Sheet %r has no matching insurer columns", sheet.title)
                continue

            rows = await sheet.load_rows()
            logger.info("Parsed sheet %r: %d rows, %d columns", sheet.title, len(rows), len(wanted))
            for index, column_company_id in wanted:
                columns.append(scan_column(rows, index, sheet_bank_id, column_company_id))

        return columns

    async def get_column(self, bank_id: str, company_id: str) -> Optional[PricingColumn]:
        """Cached pricing column for one pair; None if the spreadsheet has no such pair.

        A missing pair is cached as an empty column so repeated quotes for an
        insurer the spreadsheet lacks do not reload the sheets.
        """

        async def _load():
            columns = await self.build(bank_id=bank_id, company_id=company_id)
            if not columns:
                logger.info("No pricing column for bank=%s company=%s", bank_id, company_id)
                return PricingColumn(bank_id=bank_id, company_id=company_id).to_dict()
            return merge_columns(columns).to_dict()

        data = await self.cache.get_or_compute(
            PRICING_COLUMN_OPERATION,
            {"bankId": bank_id, "companyId": company_id},
            _load,
        )
        column = PricingColumn.from_dict(data)
        if column.is_empty:
            return None
        return column
