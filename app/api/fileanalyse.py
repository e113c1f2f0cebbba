"""File analysis endpoint: validate one uploaded file and return its metadata."""

import asyncio
from functools import partial

from robyn import Request

from app.core.lifespan import State
from app.core.logger import LogIcon, logger
from app.core.router import Router
from app.core.settings import settings as st
from app.intake.errors import StorageUnavailable
from app.intake.receiver import as_bytes, has_multipart_envelope, is_multipart, iter_chunks
from app.models.core import Accepted, UploadedFile, ValidationOutcome

router = Router(__file__, prefix="/api")


async def persist(state: State, upload: UploadedFile) -> str | None:
    """Store an accepted upload; failures are logged and never change the outcome."""
    storage = state.get("storage")
    if storage is None:
        return None
    try:
        object_id = await storage.save(upload.name, upload.content, st.STORAGE_BUCKET)
    except StorageUnavailable as ex:
        logger.error("Storing upload failed", icon=LogIcon.DATABASE, kind=ex.kind, reason=ex.message)
        return None
    logger.info("Upload stored", icon=LogIcon.DATABASE, object_id=object_id, bucket=st.STORAGE_BUCKET)
    return object_id


async def analyse_upload(request: Request, state: State) -> ValidationOutcome:
    """Run the intake pipeline over the request, then persist on acceptance.

    A body that still holds its multipart framing is decoded by the receiver; otherwise
    Robyn has decoded the form and only ``request.files`` is left to work with.
    """
    content_type = request.headers.get("content-type")
    content_length = request.headers.get("content-length")
    body = as_bytes(request.body or b"")

    if is_multipart(content_type) and not has_multipart_envelope(body, content_type):
        run = partial(state.pipeline.run_decoded, request.files or {}, content_length)
    else:
        run = partial(state.pipeline.run, iter_chunks(body, st.CHUNK_SIZE), content_type, content_length)

    # decoding and sniffing are synchronous
    outcome, upload = await asyncio.to_thread(run)
    if isinstance(outcome, Accepted) and upload is not None:
        await persist(state, upload)
    return outcome


@router.post("/fileanalyse", upload_field=st.UPLOAD_FIELD)
async def file_analyse(request: Request, global_dependencies):
    return await analyse_upload(request, global_dependencies["state"])
