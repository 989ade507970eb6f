import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from app.config import get_settings
from app.routers import admin, browse, lfs
from app.services.errors import (
    Forbidden,
    InvalidRepositoryName,
    NotAFile,
    NotASubmodule,
    NotFound,
    ReferenceUnresolvable,
    RepositoryExists,
    UpstreamReadFailure,
)

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Read-mostly browser for bare git repositories",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Admin before browse so POST /api/repos is not shadowed
app.include_router(admin.router)
app.include_router(browse.router)
app.include_router(lfs.router)


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(Forbidden)
async def forbidden_handler(request: Request, exc: Forbidden):
    return JSONResponse(status_code=403, content={"detail": str(exc) or "Access denied"})


@app.exception_handler(ReferenceUnresolvable)
async def empty_repo_handler(request: Request, exc: ReferenceUnresolvable):
    return JSONResponse(status_code=404, content={"detail": "Repository is empty", "empty": True})


@app.exception_handler(NotAFile)
@app.exception_handler(NotASubmodule)
@app.exception_handler(InvalidRepositoryName)
async def bad_request_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(RepositoryExists)
async def conflict_handler(request: Request, exc: RepositoryExists):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(UpstreamReadFailure)
async def upstream_handler(request: Request, exc: UpstreamReadFailure):
    logger.error("Upstream read failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Error reading repository"})


@app.get("/health")
async def health():
    return {"status": "ok", "app": settings.app_name}


@app.get("/robots.txt", response_class=PlainTextResponse)
async def robots():
    return "User-agent: *\nDisallow: /\n"
