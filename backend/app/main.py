import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.config import get_settings
from app.database import ensure_directories, init_db
from app.routers.admin import router as admin_router
from app.routers.public import router as public_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Upload directories must exist before StaticFiles is mounted
ensure_directories()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database and asset directories on startup."""
    logger.info("Starting up... Initializing database")
    init_db()
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title="Catalog API",
    description="Browse, search and download catalog items; manage them from the admin panel",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded images and files, referenced by records as /uploads/...
app.mount("/uploads", StaticFiles(directory=str(settings.uploads_dir)), name="uploads")

# Include routers
app.include_router(public_router, prefix=settings.api_prefix)
app.include_router(admin_router, prefix=settings.api_prefix)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": "Catalog API",
        "version": "1.0.0"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
