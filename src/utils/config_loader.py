"""
Configuration loader for the augmentation proxy
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field, ValidationError
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "augmentation_config.yml"


class UpstreamConfig(BaseModel):
    """Upstream quoting API"""

    base_url: str = "https://finuslugi.ru"
    timeout_seconds: float = Field(default=30.0, gt=0)


class SheetsConfig(BaseModel):
    """Rate spreadsheet source"""

    spreadsheet_id: str = ""
    api_key: str = ""
    access_token: str = ""
    service_account_email: str = ""
    private_key: str = ""
    metadata_ttl_seconds: float = Field(default=60.0, ge=0)
    min_delay: float = Field(default=0.2, ge=0.0)
    max_delay: float = Field(default=0.6, ge=0.0)


class CacheConfig(BaseModel):
    """Derived-data cache"""

    redis_url: str = ""
    base_ttl_seconds: float = Field(default=3600.0, gt=0)
    max_jitter_seconds: float = Field(default=600.0, ge=0)


class PricingConfig(BaseModel):
    """Partner commission policy"""

    bonus_threshold: float = 3000
    bonus_amount: float = 1000


class AugmentationConfig(BaseModel):
    """Which upstream calls get augmented and how"""

    price_path_marker: str = "/calculation"
    unsupported_combination_phrase: str = "не поддерживает комплексное страхование"


class CorsConfig(BaseModel):
    allowed_origins: List[str] = Field(default_factory=lambda: ["http://project9253441.tilda.ws"])


class ProxyConfig(BaseModel):
    """Complete proxy configuration"""

    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    augmentation: AugmentationConfig = Field(default_factory=AugmentationConfig)
    cors: CorsConfig = Field(default_factory=CorsConfig)


def apply_env_overrides(config_data: Dict[str, Any], env: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Overlay deployment-specific values and secrets from the environment"""
    env = os.environ if env is None else env
    overrides = {
        ("upstream", "base_url"): env.get("FINUSLUGI_API_URL"),
        ("sheets", "spreadsheet_id"): env.get("GOOGLE_SPREADSHEET_ID"),
        ("sheets", "api_key"): env.get("GOOGLE_SHEETS_API_KEY"),
        ("sheets", "access_token"): env.get("GOOGLE_ACCESS_TOKEN"),
        ("sheets", "service_account_email"): env.get("GOOGLE_SERVICE_ACCOUNT_EMAIL"),
        ("sheets", "private_key"): env.get("GOOGLE_PRIVATE_KEY"),
        ("cache", "redis_url"): env.get("REDIS_URL"),
    }
    merged = {section: dict(values or {}) for section, values in (config_data or {}).items()}
    for (section, key), value in overrides.items():
        if value:
            merged.setdefault(section, {})[key] = value

    origins = env.get("CORS_ORIGINS")
    if origins:
        merged.setdefault("cors", {})["allowed_origins"] = [o.strip() for o in origins.split(",") if o.strip()]
    return merged


def load_proxy_config(config_path: Optional[Path] = None, env: Optional[Dict[str, str]] = None) -> ProxyConfig:
    """
    Load and validate proxy configuration from YAML file

    Args:
        config_path: Path to config file. Defaults to config/augmentation_config.yml
        env: Environment mapping used for overrides. Defaults to os.environ

    Returns:
        Validated ProxyConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config doesn't match schema
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    try:
        config = ProxyConfig(**apply_env_overrides(config_data, env))
        logger.info(f"Successfully loaded config from {config_path}")
        return config
    except ValidationError as e:
        logger.error(f"Config validation failed: {e}")
        raise
