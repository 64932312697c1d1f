import logging
from uuid import uuid4

from fastapi import APIRouter
from fastapi import Depends
from fastapi import File
from fastapi import Form
from fastapi import HTTPException
from fastapi import Request
from fastapi import UploadFile
from fastapi.responses import FileResponse

from upload_relay.core.config import Settings
from upload_relay.core.exceptions import UploadValidationError
from upload_relay.core.security import client_address
from upload_relay.models.upload_models import UploadResponse
from upload_relay.services.notifier import AuditNotifier
from upload_relay.services.notifier import format_audit_entry
from upload_relay.services.storage import save_uploads

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter()

TOS_REQUIRED = "You must agree to the terms of service before uploading."
NO_FILES = "No files uploaded."


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_notifier(request: Request) -> AuditNotifier:
    return request.app.state.notifier


@router.get("/", include_in_schema=False)
async def landing_page(settings: Settings = Depends(get_settings)) -> FileResponse:
    """Returns the upload page."""
    if not settings.index_path.is_file():
        logger.error("Landing page not found at %s", settings.index_path)
        raise HTTPException(status_code=404, detail="Not Found")
    return FileResponse(settings.index_path)


@router.post("/upload", response_model=UploadResponse, tags=["Upload"])
async def upload(
    request: Request,
    files: list[UploadFile] | None = File(default=None),
    tos_agreed: str | None = Form(default=None, alias="tosAgreed"),
    settings: Settings = Depends(get_settings),
    notifier: AuditNotifier = Depends(get_notifier),
) -> UploadResponse:
    """Stores one or more files and returns their public URLs.

    The form must carry ``tosAgreed=true``; any other value, or none, is
    rejected before anything is written. Each stored file is announced in a
    single audit line that is logged and forwarded to the webhook without
    waiting for delivery.

    Raises:
        UploadValidationError: Consent missing or no files attached (400).
        StorageError: A file could not be written (500).
    """
    request_id = str(uuid4())

    if tos_agreed != "true":
        logger.info("[%s] Upload rejected: terms of service not accepted (tosAgreed=%r)", request_id, tos_agreed)
        raise UploadValidationError(TOS_REQUIRED)

    # Browsers send an empty, nameless part when no file is picked
    attached = [f for f in files or [] if f.filename]
    if not attached:
        logger.info("[%s] Upload rejected: no files attached", request_id)
        raise UploadValidationError(NO_FILES)

    logger.debug("[%s] Storing %d file(s)", request_id, len(attached))
    stored = await save_uploads(
        attached,
        upload_dir=settings.upload_dir,
        scheme=request.url.scheme,
        host=request.headers.get("host") or request.url.netloc,
        url_prefix=settings.uploads_url_prefix,
        request_id=request_id,
    )

    address = client_address(request, trust_proxy=settings.trust_proxy)
    audit_entry = format_audit_entry(
        (f.original_name for f in stored),
        address,
        request.headers.get("user-agent"),
    )
    logger.info(audit_entry)
    notifier.schedule(audit_entry)

    return UploadResponse(files=stored)
