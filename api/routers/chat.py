from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.dependencies import get_services
from doc_chat.exception import DocChatException
from doc_chat.logger import GLOBAL_LOGGER as log

router = APIRouter()


class ChatRequest(BaseModel):
    # both optional so missing fields get our own 400 instead of a 422
    question: Optional[str] = None
    sessionId: Optional[str] = None


class ChatResponse(BaseModel):
    response: str
    sessionId: str


@router.post("/chat", response_model=ChatResponse)
async def chat(req: ChatRequest, services=Depends(get_services)):
    """
    Main chat endpoint.

    Pipeline:
      1. Validate session id + question
      2. Retrieve session context (query embedding + namespace query)
      3. Compose prompt with history and call the LLM
      4. Record the turn in the session history
    """
    try:
        answer = await services.orchestrator.chat(req.sessionId, req.question)
    except DocChatException as e:
        log.error("Chat execution failed | session_id=%s | error=%s", req.sessionId, str(e))
        return JSONResponse(status_code=e.status_code, content={"error": e.client_message})

    return ChatResponse(response=answer, sessionId=req.sessionId.strip())
