"""Storefront Configuration"""

from typing import Optional
from pydantic import BaseModel
from pydantic_settings import BaseSettings
from functools import lru_cache


class ShopifyConfig(BaseModel):
    """Storefront API credentials for a single tenant"""
    store_domain: str
    storefront_access_token: str
    api_version: str = "2025-01"


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "Storefront Cart"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 3000

    # Shopify Storefront API
    shopify_store_domain: Optional[str] = None
    shopify_storefront_access_token: Optional[str] = None
    shopify_api_version: str = "2025-01"
    default_tenant: str = "eonlife"
    http_timeout: float = 30.0

    # Local cart persistence
    cart_storage_key: str = "eonlife-cart-storage"
    cart_storage_dir: str = ".cart-storage"

    # Remote cart id cookie
    cart_cookie_name: str = "shopify_cart_id"
    cart_cookie_max_age: int = 60 * 60 * 24 * 14  # 14 days

    # Pricing policy
    tax_rate: float = 0.085
    free_shipping_threshold: float = 100.0
    shipping_fee: float = 10.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def get_shopify_config(self, tenant: Optional[str] = None) -> Optional[ShopifyConfig]:
        """Get Shopify credentials for a tenant, None if not configured"""
        if tenant and tenant != self.default_tenant:
            return None

        if not self.shopify_configured:
            return None

        return ShopifyConfig(
            store_domain=self.shopify_store_domain,
            storefront_access_token=self.shopify_storefront_access_token,
            api_version=self.shopify_api_version,
        )

    @property
    def shopify_configured(self) -> bool:
        """Check if Shopify credentials are configured"""
        return all([
            self.shopify_store_domain,
            self.shopify_storefront_access_token,
        ])


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
