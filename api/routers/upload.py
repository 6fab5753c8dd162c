from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from api.dependencies import get_services
from doc_chat.exception import DocChatException
from doc_chat.logger import GLOBAL_LOGGER as log

router = APIRouter()


@router.post("/upload")
async def upload_document(
    document: Optional[UploadFile] = File(None),
    sessionId: Optional[str] = Form(None),
    services=Depends(get_services),
):
    """
    Upload endpoint:
      - Validates session id, MIME type and size
      - Extracts + chunks the document text
      - Embeds the chunks and stores them under the session's namespace
    """
    mime_type = document.content_type if document is not None else None

    try:
        # multipart parsing already knows the size; refuse oversized files before reading them
        if document is not None and document.size is not None:
            services.ingestor.check_request(sessionId, document.size, mime_type)
        payload = await document.read() if document is not None else None
        chunks = await services.ingestor.ingest(sessionId, payload, mime_type)
    except DocChatException as e:
        log.error(
            "Upload failed | session_id=%s | filename=%s | error=%s",
            sessionId,
            getattr(document, "filename", None),
            str(e),
        )
        return JSONResponse(
            status_code=e.status_code,
            content={"success": False, "error": e.client_message},
        )

    return {
        "success": True,
        "message": "Document processed successfully",
        "chunks": chunks,
    }
