from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers import chat, health, history, upload
from doc_chat.exception import DocChatException
from doc_chat.logger import GLOBAL_LOGGER as log
from orchestrator.orchestrator_manager import build_services


def describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Invalid JSON body"
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    return f"Invalid {field}: {first.get('msg')}" if field else f"Invalid request: {first.get('msg')}"


# Use lifespan instead of deprecated on_event
@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("Application startup initiated")
    try:
        app.state.services = await build_services()
    except DocChatException as e:
        # fail fast: no index, no service
        log.critical("Startup failed, exiting | error=%s", str(e))
        raise SystemExit(1) from e

    log.info(
        "Server operational | index=%s | embedding_model=%s",
        app.state.services.index_name,
        app.state.services.embedding_model,
    )
    yield
    await app.state.services.history.clear()
    log.info("Application shutdown")


app = FastAPI(title="Document Chat RAG Backend", version="1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DocChatException)
async def doc_chat_exception_handler(request: Request, exc: DocChatException):
    log.error("Request failed | path=%s | error=%s", request.url.path, str(exc))
    return JSONResponse(status_code=exc.status_code, content={"error": exc.client_message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    message = describe_validation_error(exc)
    log.warning("Malformed request | path=%s | error=%s", request.url.path, message)
    content = {"error": message}
    if request.url.path.rstrip("/") == "/upload":
        content = {"success": False, "error": message}
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    log.exception("Unhandled error | path=%s", request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Router Registration
app.include_router(health.router, tags=["health"])
app.include_router(upload.router, tags=["upload"])
app.include_router(chat.router, tags=["chat"])
app.include_router(history.router, tags=["history"])


@app.get("/")
async def root():
    return {"message": "Backend is running"}
