"""
Utility modules for the augmentation proxy
"""
from .config_loader import load_proxy_config
from .rate_limiter import SheetThrottle

__all__ = [
    'load_proxy_config',
    'SheetThrottle',
]
