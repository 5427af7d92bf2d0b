"""
Main FastAPI application.

Orchestrates all API components and middleware.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from finsight import __version__
from finsight.api.endpoints import (
    health_router,
    research_router,
    streaming_router,
    websocket_router,
    system_router
)
from finsight.api.errors import register_exception_handlers
from finsight.api.services import pipeline_service
from finsight.core.system import create_pipeline
from finsight.utils.logging import get_logger

logger = get_logger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Finsight API",
    description="Streaming financial research over web search, relevance ranking and generative providers",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health_router)
app.include_router(research_router)
app.include_router(streaming_router)
app.include_router(websocket_router)
app.include_router(system_router)

register_exception_handlers(app)


@app.on_event("startup")
async def startup_event():
    """Assemble the pipeline on startup."""
    try:
        logger.info("🚀 Starting Finsight API server")

        pipeline = create_pipeline()
        pipeline_service.set_pipeline(pipeline)

        logger.info("✅ Pipeline initialized successfully")

    except Exception as e:
        logger.error(f"❌ Failed to initialize pipeline: {str(e)}")
        raise


@app.get("/", response_model=dict)
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Finsight API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "stats": "/system/stats",
        "endpoints": {
            "chat": "/api/chat",
            "analysis": "/api/analysis",
            "document_analysis": "/api/analysis/document",
            "analysis_chat": "/api/analysis/chat",
            "stream_chat": "/stream/chat",
            "stream_analysis": "/stream/analysis",
            "websocket": "/ws"
        }
    }


# Error handlers
@app.exception_handler(404)
async def not_found_handler(request, exc):
    return JSONResponse(
        status_code=404,
        content={"error": "Endpoint not found", "path": str(request.url)}
    )


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    logger.error(f"❌ Internal server error: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


if __name__ == "__main__":
    import uvicorn

    # Run the server
    uvicorn.run(
        "finsight.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
