"""
Pricing contracts.

Defines the typed shapes produced when a bank's rate sheet is parsed and
consumed when a quote is priced:
- PriceLineItem: one (coverage kind, rate) fact taken from a single cell
- PricingColumn: every line item for one (bank, insurer) pair
- QuoteParameters: what the caller asked to be priced
- PriceEstimate: the computed premium and partner commission

PricingColumn is the unit stored in the cache, so it owns its wire format
(to_dict / from_dict). Rates travel as strings to keep Decimal precision.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class LineKind(str, Enum):
    PROPERTY = "property"
    LIFE = "life"
    TITLE = "title"
    COMMISSION = "commission"


class PropertyType(str, Enum):
    HOUSE = "house"
    ROOM = "room"
    APARTMENTS = "apartments"
    PARKING_SPACE = "parkingSpace"
    FLAT = "flat"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class CommissionType(str, Enum):
    PROPERTY = "property"
    TITLE = "title"
    LIFE = "life"


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PriceLineItem:
    bank_id: str
    company_id: str
    kind: LineKind
    value: Decimal
    property_type: Optional[PropertyType] = None
    wooden_floor: bool = False                  # only meaningful for houses
    gender: Optional[Gender] = None
    age: Optional[int] = None
    commission_type: Optional[CommissionType] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "bankId": self.bank_id,
            "companyId": self.company_id,
            "kind": self.kind.value,
            "value": str(self.value),
        }
        if self.kind is LineKind.PROPERTY:
            data["propertyType"] = self.property_type.value
            data["woodenFloor"] = self.wooden_floor
        elif self.kind is LineKind.LIFE:
            data["gender"] = self.gender.value
            data["age"] = self.age
        elif self.kind is LineKind.COMMISSION:
            data["commissionType"] = self.commission_type.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PriceLineItem":
        kind = LineKind(data["kind"])
        return cls(
            bank_id=data["bankId"],
            company_id=data["companyId"],
            kind=kind,
            value=Decimal(data["value"]),
            property_type=PropertyType(data["propertyType"]) if kind is LineKind.PROPERTY else None,
            wooden_floor=bool(data.get("woodenFloor", False)),
            gender=Gender(data["gender"]) if kind is LineKind.LIFE else None,
            age=int(data["age"]) if kind is LineKind.LIFE else None,
            commission_type=CommissionType(data["commissionType"]) if kind is LineKind.COMMISSION else None,
        )


@dataclass(frozen=True)
class PricingColumn:
    """All line items for one (bank, insurer) pair."""
    bank_id: str
    company_id: str
    items: List[PriceLineItem] = field(default_factory=list)
    sections: FrozenSet[LineKind] = frozenset()

    def of_kind(self, kind: LineKind) -> List[PriceLineItem]:
        return [item for item in self.items if item.kind is kind]

    @property
    def is_empty(self) -> bool:
        return not self.items and not self.sections

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bankId": self.bank_id,
            "companyId": self.company_id,
            "items": [item.to_dict() for item in self.items],
            "sections": sorted(kind.value for kind in self.sections),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PricingColumn":
        return cls(
            bank_id=data["bankId"],
            company_id=data["companyId"],
            items=[PriceLineItem.from_dict(item) for item in data.get("items", [])],
            sections=frozenset(LineKind(kind) for kind in data.get("sections", [])),
        )


# ---------------------------------------------------------------------------
# Quote request / result
# ---------------------------------------------------------------------------

@dataclass
class QuoteParameters:
    bank_id: str
    company_id: str
    credit_sum: Decimal
    property: bool = False
    life: bool = False
    title: bool = False
    property_type: Optional[PropertyType] = None
    wooden_floor: bool = False
    gender: Optional[Gender] = None
    age: Optional[int] = None


@dataclass(frozen=True)
class PriceEstimate:
    total: Decimal
    partner_commission: Decimal

    @property
    def available(self) -> bool:
        # A zero total means nothing could be priced, not a free policy.
        return self.total > 0

    @classmethod
    def unavailable(cls) -> "PriceEstimate":
        return cls(total=Decimal("0"), partner_commission=Decimal("0"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "available": self.available,
            "total": float(self.total),
            "partnerKv": float(self.partner_commission),
        }
