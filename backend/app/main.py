"""Media Backend Application.

This is the main entry point for the media upload backend service.
The service stores uploaded documents, audio files and images in a remote
object store and keeps them on local disk when the store is unreachable.

Modules:
    - media: resilient upload pipeline (remote store, retries, local fallback)
    - media.router: serving of fallback-stored files under the configured prefix
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from app.config import AppSettings, get_config
from app.media.fallback import LocalFallbackStore
from app.media.orchestrator import UploadOrchestrator, set_upload_orchestrator
from app.media.router import router as media_router
from app.media.s3 import S3RemoteStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Silence verbose third-party loggers.
# botocore.auth logs the full SigV4 canonical request, including
# x-amz-security-token, which leaks credentials into the console.
for _noisy in (
    "botocore",
    "boto3",
    "s3transfer",
    "urllib3",
    "urllib3.connectionpool",
):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def build_orchestrator(config: AppSettings) -> UploadOrchestrator:
    """Create the fallback store, remote store and orchestrator from *config*."""
    upload_cfg = config.upload
    storage_cfg = config.storage
    aws = config.secrets.aws

    fallback = LocalFallbackStore(
        root=upload_cfg.fallback_dir,
        url_prefix=upload_cfg.fallback_url_prefix,
    )
    fallback.ensure_root()

    remote = S3RemoteStore(
        bucket=storage_cfg.bucket,
        region_name=storage_cfg.region,
        endpoint_url=storage_cfg.endpoint_url,
        public_base_url=storage_cfg.public_base_url,
        aws_access_key_id=aws.access_key_id or None,
        aws_secret_access_key=aws.secret_access_key or None,
        aws_session_token=aws.session_token or None,
        timeout=upload_cfg.timeout_seconds,
    )

    return UploadOrchestrator(
        remote=remote,
        fallback=fallback,
        max_retries=upload_cfg.max_retries,
        retry_delay=upload_cfg.retry_delay_seconds,
        timeout=upload_cfg.timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    config = app.state.config

    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    orchestrator = build_orchestrator(config)
    set_upload_orchestrator(orchestrator)
    logger.info(
        "Upload pipeline ready: bucket=%s max_retries=%d fallback_dir=%s",
        config.storage.bucket,
        config.upload.max_retries,
        config.upload.fallback_dir,
    )

    yield  # Application runs here

    # Shutdown
    set_upload_orchestrator(None)
    logger.info("Application shutdown complete")


async def health() -> dict:
    """Health check endpoint.

    Returns:
        dict: Status object indicating the server is running.
    """
    return {"status": "ok"}


def create_app(config: Optional[AppSettings] = None) -> FastAPI:
    """Create the FastAPI application for *config* (defaults to ``get_config()``).

    Fallback files are served under ``upload.fallback_url_prefix`` so every
    fallback ``secure_url`` resolves against this app.
    """
    config = config or get_config()

    application = FastAPI(
        title="Media Backend API",
        description="Backend service with resilient media uploads",
        version="0.1.0",
        lifespan=lifespan,
    )
    application.state.config = config

    application.add_api_route("/health", health, methods=["GET"])
    application.include_router(
        media_router,
        prefix=config.upload.fallback_url_prefix.rstrip("/"),
    )
    return application


app = create_app()
