"""
FastAPI application - Main entry point

Proxies */api/* calls to the upstream quoting API and passes every upstream
answer through the augmentation manager before returning it.
"""

from dotenv import load_dotenv

load_dotenv()

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.database.cache import CacheLayer, CacheStore
from src.integrations.clients.real_http.finuslugi import FinuslugiClient
from src.integrations.contracts.interfaces import AugmentationRequest, SpreadsheetSource
from src.integrations.policy.augmenters import (
    AugmentationManager,
    ListCatalog,
    bank_list_strategy,
    company_list_strategy,
    price_strategy,
)
from src.integrations.policy.price_resolver import PriceResolver
from src.integrations.policy.pricing_table import PricingTableBuilder
from src.integrations.policy.response_wrappers import UpstreamError
from src.utils.config_loader import ProxyConfig, load_proxy_config
from src.utils.rate_limiter import SheetThrottle

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ALLOWED_METHODS = {"GET", "POST"}
FORWARDED_HEADERS = ("accept", "content-type", "authorization")

# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================


def create_cache_store(config: ProxyConfig) -> CacheStore:
    # Real Redis when REDIS_URL is set, else the in-memory stub
    if config.cache.redis_url:
        from src.database.redis_real import RedisCache

        return RedisCache(url=config.cache.redis_url)

    from src.database.redis import RedisCache

    logger.warning("REDIS_URL is not set; using in-memory cache")
    return RedisCache()


def create_sheet_source(config: ProxyConfig) -> SpreadsheetSource:
    if config.sheets.spreadsheet_id:
        from src.integrations.clients.real_http.google_sheets import (
            GoogleSheetsSource,
            service_account_credentials,
        )

        credentials = None
        if config.sheets.service_account_email and config.sheets.private_key:
            credentials = service_account_credentials(
                config.sheets.service_account_email,
                config.sheets.private_key,
            )

        return GoogleSheetsSource(
            spreadsheet_id=config.sheets.spreadsheet_id,
            api_key=config.sheets.api_key,
            access_token=config.sheets.access_token,
            credentials=credentials,
            metadata_ttl_seconds=config.sheets.metadata_ttl_seconds,
        )

    from src.integrations.clients.mocks.sheets import InMemorySpreadsheet

    logger.warning("GOOGLE_SPREADSHEET_ID is not set; spreadsheet augmentation is empty")
    return InMemorySpreadsheet({})


def build_manager(
    config: ProxyConfig,
    source: Optional[SpreadsheetSource] = None,
    store: Optional[CacheStore] = None,
) -> AugmentationManager:
    """Wire the augmentation pipeline. Strategy order is dispatch priority."""
    if source is None:
        source = create_sheet_source(config)
    if store is None:
        store = create_cache_store(config)
    cache = CacheLayer(
        store,
        base_ttl_seconds=config.cache.base_ttl_seconds,
        max_jitter_seconds=config.cache.max_jitter_seconds,
    )
    throttle = SheetThrottle(min_delay=config.sheets.min_delay, max_delay=config.sheets.max_delay)

    catalog = ListCatalog(source, cache, throttle)
    resolver = PriceResolver(
        PricingTableBuilder(source, cache, throttle),
        bonus_threshold=config.pricing.bonus_threshold,
        bonus_amount=config.pricing.bonus_amount,
    )
    return AugmentationManager([
        bank_list_strategy(catalog),
        company_list_strategy(catalog),
        price_strategy(
            resolver,
            unsupported_phrase=config.augmentation.unsupported_combination_phrase,
            path_marker=config.augmentation.price_path_marker,
        ),
    ])


config = load_proxy_config()
upstream_client = FinuslugiClient(
    base_url=config.upstream.base_url,
    timeout_seconds=config.upstream.timeout_seconds,
)
manager = build_manager(config)

# Initialize FastAPI app
app = FastAPI(
    title="Finuslugi Augmentation Proxy",
    description="Proxy for the insurance quoting API with spreadsheet-backed lists and price estimates",
    version="1.0.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors.allowed_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "healthy"}


async def _read_body(request: Request) -> Any:
    if request.method != "POST":
        return None
    raw = await request.body()
    if not raw:
        return None
    try:
        return await request.json()
    except ValueError:
        logger.warning("Request body is not valid JSON: %s", request.url.path)
        return None


@app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def proxy(path: str, request: Request):
    upstream_path = "/" + path
    if "/api/" not in upstream_path:
        return JSONResponse(status_code=404, content={"error": "Not found"})

    logger.info("%s %s", request.method, request.url.path)

    if request.method not in ALLOWED_METHODS:
        return JSONResponse(status_code=405, content={"error": "Method not allowed"})

    headers: Dict[str, str] = {
        name: request.headers[name] for name in FORWARDED_HEADERS if name in request.headers
    }
    body = await _read_body(request)

    pending = upstream_client.request(
        request.method,
        upstream_path,
        headers=headers,
        body=body,
        params=list(request.query_params.multi_items()),
    )
    augmentation_request = AugmentationRequest(
        method=request.method,
        path=upstream_path,
        body=body,
        headers=headers,
    )

    try:
        data = await manager.augment_response(augmentation_request, pending)
    except UpstreamError as e:
        return JSONResponse(status_code=e.status_code, content=e.payload)
    except Exception as e:
        logger.error(f"Unexpected error proxying {upstream_path}: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Unexpected server error"})

    return JSONResponse(content=data)
