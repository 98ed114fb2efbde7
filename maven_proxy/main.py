import logging

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from maven_proxy.api.browse import router as browse_router
from maven_proxy.api.files import router as files_router
from maven_proxy.core.config import get_log_level
from maven_proxy.core.dependencies import get_settings
from maven_proxy.domain.errors import GatewayError, MethodNotSupported, UpstreamRejected

# Configure logging
logging.basicConfig(
    level=get_log_level(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, PUT, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


app = FastAPI(
    title="Maven Git Proxy",
    version="0.1.0",
    description="Maven repository (releases/snapshots) served from a Git repository through the GitHub contents API.",
)


def is_blocked_path(request: Request) -> bool:
    """
    True for request paths that must never be served (build tooling files of
    the hosting project).
    """
    settings = request.app.dependency_overrides.get(get_settings, get_settings)()
    path = request.url.path
    if any(fragment in path for fragment in settings.blocked_path_fragments):
        return True
    return any(path.startswith(prefix) for prefix in settings.blocked_path_prefixes)


@app.middleware("http")
async def guard_and_cors(request: Request, call_next) -> Response:
    """
    Refuse blocked paths before routing and attach permissive CORS headers to
    every response.
    """
    if is_blocked_path(request):
        logger.info(f"Refused blocked path {request.url.path}")
        response: Response = PlainTextResponse("Forbidden", status_code=403)
    else:
        response = await call_next(request)

    for name, value in CORS_HEADERS.items():
        response.headers[name] = value
    return response


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError) -> Response:
    """
    Translate gateway errors into plain responses. Upstream rejections keep
    their original status and body.
    """
    logger.debug(f"{request.method} {request.url.path} failed: {exc.status_code} {type(exc).__name__}")

    if isinstance(exc, UpstreamRejected):
        return Response(
            content=exc.body,
            status_code=exc.status_code,
            media_type=exc.content_type or "text/plain",
        )

    headers = None
    if isinstance(exc, MethodNotSupported):
        headers = {"Allow": "GET, PUT, OPTIONS"}
    return PlainTextResponse(exc.detail, status_code=exc.status_code, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """
    Verbs no route accepts become the same 405 as any other unsupported
    method; every other HTTP error keeps FastAPI's default rendering.
    """
    if exc.status_code == 405:
        return await gateway_error_handler(request, MethodNotSupported())
    return await http_exception_handler(request, exc)


@app.get("/health")
async def health() -> dict:
    """
    Lightweight health check endpoint.
    """
    return {"status": "ok"}


app.include_router(files_router, tags=["files"])
app.include_router(browse_router, tags=["browse"])


if __name__ == "__main__":
    """
    Allow running `python -m maven_proxy.main` to start the Uvicorn development server.
    """
    import uvicorn

    uvicorn.run(
        "maven_proxy.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
