"""Marketplace dialog agent - Main entry point."""
from fastapi import FastAPI

from marketplace_agent.api.routes import router
from marketplace_agent.core.config import get_config_source, resolver, settings
from marketplace_agent.core.logging import logger

# Initialize FastAPI app
app = FastAPI(
    title="Marketplace Dialog Agent",
    description="Conversational front-end for supply/demand matching with multi-provider AI fallback",
    version="1.0.0",
)

# Include routes
app.include_router(router)


@app.on_event("startup")
async def startup_event():
    """Log the effective configuration on startup."""
    logger.info("=" * 60)
    logger.info("Marketplace dialog agent starting up")
    provider = resolver.resolve("marketplace.ai.provider", "OPENAI")
    logger.info(f"AI provider: {provider} (from {get_config_source('marketplace.ai.provider')})")
    logger.info(f"Marketplace service: {settings.services.marketplace_url}")
    logger.info(f"Dialog storage: {settings.storage.db_path}")
    logger.info("=" * 60)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Marketplace dialog agent shutting down")


if __name__ == "__main__":
    import os
    import uvicorn

    # Only enable reload in development
    reload = os.getenv("MARKETPLACE_DEV_MODE", "false").lower() == "true"
    uvicorn.run(
        "marketplace_agent.main:app",
        host="0.0.0.0",
        port=int(os.getenv("MARKETPLACE_PORT", "8080")),
        reload=reload,
        log_level="info",
    )
