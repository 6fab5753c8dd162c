from fastapi import APIRouter, Depends

from api.dependencies import get_services

router = APIRouter()


@router.get("/history/{session_id}")
async def get_history(session_id: str, services=Depends(get_services)):
    turns = await services.history.read(session_id)

    return {
        "sessionId": session_id,
        "turns": [{"question": t.question, "answer": t.answer} for t in turns],
    }
