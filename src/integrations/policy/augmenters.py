"""
Response augmentation.

A proxied upstream call is handed to the first strategy whose predicate
matches the request path; unmatched calls pass through untouched.

Strategies:
- bank list:    upstream banks + banks that only exist as spreadsheet sheets
- company list: upstream insurers + insurers that only exist as sheet columns
- price:        upstream calculation + locally computed estimate (tildaExtra);
                replaces a failed calculation with the estimate alone when the
                failure is a plain 400

Each strategy is a value (predicate, transform, optional recovery), not a
subclass; the manager scans them in priority order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from src.database.cache import CacheLayer
from src.integrations.contracts.interfaces import AugmentationRequest, SpreadsheetSource
from src.integrations.contracts.pricing import PriceEstimate
from src.integrations.policy.name_mapper import find_bank_mapping, find_company_mapping
from src.integrations.policy.price_resolver import PriceResolver
from src.integrations.policy.response_wrappers import (
    QuoteParametersError,
    UpstreamError,
    error_messages,
    normalize_quote_parameters,
)
from src.utils.rate_limiter import SheetThrottle

logger = logging.getLogger(__name__)

EXTRA_FIELD = "tildaExtra"
BANK_LIST_OPERATION = "bank_list"
COMPANY_LIST_OPERATION = "company_list"

Matcher = Callable[[AugmentationRequest], bool]
Transform = Callable[[AugmentationRequest, Any], Awaitable[Any]]
Recovery = Callable[[AugmentationRequest, UpstreamError], Awaitable[Any]]


@dataclass(frozen=True)
class AugmentationStrategy:
    name: str
    matches: Matcher
    apply: Transform
    recover: Optional[Recovery] = None

    async def run(self, request: AugmentationRequest, pending: Awaitable[Any]) -> Any:
        try:
            body = await pending
        except UpstreamError as error:
            if self.recover is None:
                raise
            logger.info("Upstream %s failed with %s, trying recovery", self.name, error.status_code)
            return await self.recover(request, error)
        return await self.apply(request, body)


class AugmentationManager:
    def __init__(self, strategies: Iterable[AugmentationStrategy]):
        self.strategies: List[AugmentationStrategy] = list(strategies)

    def select(self, request: AugmentationRequest) -> Optional[AugmentationStrategy]:
        for strategy in self.strategies:
            if strategy.matches(request):
                return strategy
        return None

    async def augment_response(self, request: AugmentationRequest, pending: Awaitable[Any]) -> Any:
        strategy = self.select(request)
        if strategy is None:
            return await pending
        logger.debug("Augmenting %s %s with %s", request.method, request.path, strategy.name)
        return await strategy.run(request, pending)


# ---------------------------------------------------------------------------
# Reference lists
# ---------------------------------------------------------------------------

def merge_list(upstream: Any, derived: List[Dict[str, Any]]) -> Any:
    """Prepend derived entries whose id the upstream list lacks; tag every entry with `extra`."""
    if upstream is None:
        upstream = []
    if not isinstance(upstream, list):
        logger.warning("Expected a list from upstream, got %s; leaving it unchanged", type(upstream).__name__)
        return upstream

    original = [{**item, "extra": False} if isinstance(item, dict) else item for item in upstream]
    known_ids = {item.get("id") for item in original if isinstance(item, dict)}
    new_items = [dict(item, extra=True) for item in derived if item["id"] not in known_ids]
    return new_items + original


class ListCatalog:
    """Bank and insurer lists derived from the spreadsheet, cached as a whole."""

    def __init__(self, source: SpreadsheetSource, cache: CacheLayer, throttle: Optional[SheetThrottle] = None):
        self.source = source
        self.cache = cache
        self.throttle = throttle or SheetThrottle()

    async def banks(self) -> List[Dict[str, Any]]:
        return await self.cache.get_or_compute(BANK_LIST_OPERATION, None, self._derive_banks)

    async def companies(self) -> List[Dict[str, Any]]:
        return await self.cache.get_or_compute(COMPANY_LIST_OPERATION, None, self._derive_companies)

    async def _derive_banks(self) -> List[Dict[str, Any]]:
        sheets = await self.source.list_sheets()
        banks = _unique_entries((find_bank_mapping(sheet.title), sheet.title) for sheet in sheets)
        logger.debug("Mapped banks: %s", banks)
        return banks

    async def _derive_companies(self) -> List[Dict[str, Any]]:
        sheets = await self.source.list_sheets()
        names: List[str] = []
        for index, sheet in enumerate(sheets):
            if index:
                await self.throttle.wait()
            header = await sheet.load_header()
            names.extend(name.strip() for name in header[1:] if name and name.strip())
        companies = _unique_entries((find_company_mapping(name), name) for name in names)
        logger.debug("Mapped companies: %s", companies)
        return companies


def _unique_entries(pairs: Iterable) -> List[Dict[str, Any]]:
    entries: List[Dict[str, Any]] = []
    seen = set()
    for entry_id, name in pairs:
        if not entry_id or entry_id in seen:
            continue
        seen.add(entry_id)
        entries.append({"id": entry_id, "name": name, "extra": True})
    return entries


def bank_list_strategy(catalog: ListCatalog) -> AugmentationStrategy:
    async def apply(request: AugmentationRequest, body: Any) -> Any:
        logger.debug("Augmenting bank list")
        return merge_list(body, await catalog.banks())

    return AugmentationStrategy(
        name="bank_list",
        matches=lambda request: request.path.endswith("/bankList"),
        apply=apply,
    )


def company_list_strategy(catalog: ListCatalog) -> AugmentationStrategy:
    async def apply(request: AugmentationRequest, body: Any) -> Any:
        logger.debug("Augmenting company list")
        return merge_list(body, await catalog.companies())

    return AugmentationStrategy(
        name="company_list",
        matches=lambda request: request.path.endswith("/companyList"),
        apply=apply,
    )


# ---------------------------------------------------------------------------
# Price calculation
# ---------------------------------------------------------------------------

def is_unsupported_combination(error: UpstreamError, phrase: str) -> bool:
    messages = error_messages(error.payload)
    if not messages or not phrase:
        return False
    return phrase.casefold() in messages[-1].casefold()


def price_strategy(resolver: PriceResolver, unsupported_phrase: str, path_marker: str) -> AugmentationStrategy:
    async def estimate(request: AugmentationRequest) -> Dict[str, Any]:
        try:
            params = normalize_quote_parameters(request.body)
        except QuoteParametersError as e:
            logger.info("Cannot price request %s: %s", request.path, e)
            return PriceEstimate.unavailable().to_dict()
        try:
            return (await resolver.resolve(params)).to_dict()
        except Exception as e:
            logger.error(f"Price estimate failed for {request.path}: {e}", exc_info=True)
            return PriceEstimate.unavailable().to_dict()

    async def apply(request: AugmentationRequest, body: Any) -> Any:
        extra = await estimate(request)
        if isinstance(body, dict):
            return {**body, EXTRA_FIELD: extra}
        return {"data": body, EXTRA_FIELD: extra}

    async def recover(request: AugmentationRequest, error: UpstreamError) -> Any:
        if error.status_code != 400:
            raise error
        if is_unsupported_combination(error, unsupported_phrase):
            logger.info("Upstream rejected the cover combination, not recovering")
            raise error
        return {EXTRA_FIELD: await estimate(request)}

    return AugmentationStrategy(
        name="price",
        matches=lambda request: path_marker in request.path,
        apply=apply,
        recover=recover,
    )
