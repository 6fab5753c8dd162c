from fastapi import APIRouter, Depends

from api.dependencies import get_services

router = APIRouter()


@router.get("/health")
async def health(services=Depends(get_services)):
    return {
        "status": "ok",
        "index": services.index_name,
        "embeddingModel": services.embedding_model,
    }
