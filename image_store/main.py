import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from image_store.codec import ConversionError
from image_store.dependencies import get_image_service
from image_store.formats import UnsupportedFormatError
from image_store.schemas import ImageUploadResponse
from image_store.service import ImageService
from image_store.storage.base import ImageNotFoundError, StorageError
from config import get_settings

# Get settings and configure logging before anything else
settings = get_settings()
settings.configure_logging()

# Create logger for this module
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Storage root: {settings.storage_root}")
    logger.info(f"Index backend: {settings.index_backend}")

    # Fails startup if the storage directory cannot be created
    get_image_service()

    yield

    # Shutdown
    logger.info("Shutting down application")


# Create FastAPI app with settings
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, str]:
    """Simple health-check endpoint."""
    return {
        "status": "ok",
        "environment": settings.environment,
        "version": settings.app_version,
    }


@app.get("/config")
def get_config() -> dict[str, Any]:
    """Get current configuration (non-sensitive values only)."""
    return {
        "app_name": settings.app_name,
        "app_version": settings.app_version,
        "environment": settings.environment,
        "debug": settings.debug,
        "index_backend": settings.index_backend,
        "log_level": settings.log_level,
        "log_json": settings.log_json,
        "max_upload_size": settings.max_upload_size,
    }


@app.post("/images/upload", response_model=ImageUploadResponse, status_code=201, tags=["images"])
async def upload_image(
    file: UploadFile,
    image_service: ImageService = Depends(get_image_service),
) -> ImageUploadResponse:
    """Upload an image file.

    The image is stored under a newly generated ID, keeping the extension
    of the uploaded filename.

    Args:
        file: The uploaded image file.
        image_service: Service storing the image.

    Returns:
        ImageUploadResponse: Response containing the unique image ID.

    Raises:
        HTTPException: If the file is empty, too large, of an unsupported
            type, or cannot be saved.
    """
    content = await file.read()

    if not content:
        raise HTTPException(status_code=400, detail="File cannot be empty")

    if len(content) > settings.max_upload_size:
        raise HTTPException(status_code=413, detail="File is too large")

    filename = file.filename or ""
    logger.info(f"Processing upload: {filename}, content length: {len(content)}")

    try:
        # Runs to completion in the thread pool even if the client goes away
        image_id = await run_in_threadpool(image_service.store, filename, content)
    except UnsupportedFormatError:
        raise HTTPException(status_code=400, detail="Unsupported file type")
    except StorageError as e:
        logger.error(f"Failed to upload image {filename}: {e}")
        raise HTTPException(status_code=500, detail="Failed to save image")

    return ImageUploadResponse(id=image_id)


def _serve_image(image_service: ImageService, image_id: str, image_format: Optional[str]) -> Response:
    """Retrieve an image and translate service errors into HTTP errors."""
    try:
        image = image_service.retrieve(image_id, image_format)
    except ImageNotFoundError:
        raise HTTPException(status_code=404, detail="Image not found")
    except UnsupportedFormatError:
        raise HTTPException(status_code=400, detail="Unsupported image format")
    except ConversionError as e:
        logger.error(f"Conversion failed for image {image_id}: {e}")
        raise HTTPException(status_code=500, detail="Image conversion failed")
    except StorageError as e:
        logger.error(f"Storage failure while reading image {image_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return Response(content=image.content, media_type=image.content_type)


@app.get("/images/{image_id}.{image_format}", tags=["images"])
def get_image_in_format(
    image_id: str,
    image_format: str,
    image_service: ImageService = Depends(get_image_service),
) -> Response:
    """Retrieve an image converted to the format given as its extension."""
    return _serve_image(image_service, image_id, image_format)


@app.get("/images/{image_id}", tags=["images"])
def get_image(
    image_id: str,
    format: Optional[str] = None,
    image_service: ImageService = Depends(get_image_service),
) -> Response:
    """Retrieve an image, with optional format conversion.

    Args:
        image_id: The unique identifier of the image.
        format: The desired image format (e.g., png, webp). Optional.
        image_service: Service reading the image.

    Returns:
        Response: The image bytes with the matching content type.
    """
    return _serve_image(image_service, image_id, format)
