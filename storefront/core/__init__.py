# Core modules

from .config import settings, get_settings, Settings, ShopifyConfig

__all__ = ["settings", "get_settings", "Settings", "ShopifyConfig"]
