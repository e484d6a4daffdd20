"""
Storefront Cart Application

Cart API for the storefront: proxies cart operations to Shopify and
hands back the hosted checkout URL.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from .routes import cart_router
from .core.config import settings

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Storefront cart starting up...")
    logger.info(f"Shopify configured: {settings.shopify_configured}")
    if settings.shopify_configured:
        logger.info(f"Shopify store: {settings.shopify_store_domain} ({settings.shopify_api_version})")

    yield

    logger.info("Storefront cart shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Storefront Cart",
    description="Shopping cart and Shopify checkout hand-off",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(cart_router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "storefront-cart",
        "shopify_configured": settings.shopify_configured,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
