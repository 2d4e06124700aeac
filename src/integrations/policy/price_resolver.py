"""
Price resolver.

Turns a quote request into a premium and a partner commission using the
pricing column for the requested (bank, insurer) pair:

    total      = creditSum * (property rate + life rate + title rate)
    partnerKv  = (sum of commission rates for the requested covers) * total
                 + bonus, when total reaches the bonus threshold

Only covers switched on in the request are priced. A cover with no matching
rate adds nothing; when nothing matches at all the estimate is unavailable.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from src.integrations.contracts.pricing import (
    CommissionType,
    LineKind,
    PriceEstimate,
    PriceLineItem,
    PricingColumn,
    PropertyType,
    QuoteParameters,
)
from src.integrations.policy.pricing_table import PricingTableBuilder

logger = logging.getLogger(__name__)

BONUS_THRESHOLD = Decimal("3000")
BONUS_AMOUNT = Decimal("1000")


def _first(items: List[PriceLineItem]) -> Optional[PriceLineItem]:
    return items[0] if items else None


def select_property_rate(column: PricingColumn, params: QuoteParameters) -> Optional[PriceLineItem]:
    return _first([
        item for item in column.of_kind(LineKind.PROPERTY)
        if item.property_type is params.property_type
        and (params.property_type is not PropertyType.HOUSE or item.wooden_floor == params.wooden_floor)
    ])


def select_life_rate(column: PricingColumn, params: QuoteParameters) -> Optional[PriceLineItem]:
    return _first([
        item for item in column.of_kind(LineKind.LIFE)
        if item.gender is params.gender and item.age == params.age
    ])


def select_title_rate(column: PricingColumn, params: QuoteParameters) -> Optional[PriceLineItem]:
    return _first(column.of_kind(LineKind.TITLE))


def select_rates(column: PricingColumn, params: QuoteParameters) -> List[PriceLineItem]:
    """The one applicable rate per requested cover, skipping covers without a rate."""
    selected = []
    if params.property:
        selected.append(select_property_rate(column, params))
    if params.life:
        selected.append(select_life_rate(column, params))
    if params.title:
        selected.append(select_title_rate(column, params))
    return [item for item in selected if item is not None]


def active_commission_types(params: QuoteParameters) -> List[CommissionType]:
    types = []
    if params.property:
        types.append(CommissionType.PROPERTY)
    if params.title:
        types.append(CommissionType.TITLE)
    if params.life:
        types.append(CommissionType.LIFE)
    return types


def commission_rate(column: PricingColumn, params: QuoteParameters) -> Decimal:
    wanted = active_commission_types(params)
    return sum(
        (item.value for item in column.of_kind(LineKind.COMMISSION) if item.commission_type in wanted),
        Decimal("0"),
    )


def estimate_for_column(
    column: PricingColumn,
    params: QuoteParameters,
    bonus_threshold: Decimal = BONUS_THRESHOLD,
    bonus_amount: Decimal = BONUS_AMOUNT,
) -> PriceEstimate:
    rates = select_rates(column, params)
    total = params.credit_sum * sum((item.value for item in rates), Decimal("0"))
    if total == 0:
        return PriceEstimate.unavailable()

    partner_commission = commission_rate(column, params) * total
    if total >= bonus_threshold:
        partner_commission += bonus_amount
    return PriceEstimate(total=total, partner_commission=partner_commission)


class PriceResolver:
    def __init__(
        self,
        table_builder: PricingTableBuilder,
        bonus_threshold: Decimal = BONUS_THRESHOLD,
        bonus_amount: Decimal = BONUS_AMOUNT,
    ):
        self.table_builder = table_builder
        self.bonus_threshold = Decimal(str(bonus_threshold))
        self.bonus_amount = Decimal(str(bonus_amount))

    async def resolve(self, params: QuoteParameters) -> PriceEstimate:
        column = await self.table_builder.get_column(params.bank_id, params.company_id)
        if column is None:
            return PriceEstimate.unavailable()

        estimate = estimate_for_column(column, params, self.bonus_threshold, self.bonus_amount)
        logger.info(
            "Price estimate bank=%s company=%s total=%s partnerKv=%s",
            params.bank_id,
            params.company_id,
            estimate.total,
            estimate.partner_commission,
        )
        return estimate
