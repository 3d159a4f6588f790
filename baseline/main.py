import logging
from pathlib import Path

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from baseline import llm
from baseline.config import Settings, settings as default_settings
from baseline.errors import ConfigurationError, MalformedResponseError, ResearchError, ValidationError
from baseline.models import ErrorResponse, NotebookRequest, ResearchRequest, ResearchResult
from baseline.normalizer import normalize_result
from baseline.notebook import MEDIA_TYPE, notebook_filename, serialize_notebook

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

_STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

router = APIRouter(prefix="/api")


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _require_generator(request: Request) -> None:
    # Route dependencies resolve before the body is validated.
    if not _settings(request).generator.is_configured:
        raise ConfigurationError()


@router.get("/health")
async def health(request: Request):
    cfg = _settings(request).generator
    return {"status": "ok", "generator_configured": cfg.is_configured, "model": cfg.model}


_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    405: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post(
    "/generate",
    response_model=ResearchResult,
    response_model_by_alias=True,
    responses=_ERROR_RESPONSES,
    dependencies=[Depends(_require_generator)],
)
async def generate(req: ResearchRequest, request: Request):
    raw = await llm.generate(_settings(request).generator, req.topic)
    try:
        return normalize_result(raw)
    except ValidationError as exc:
        # The caller's topic was fine; the generator's content was not.
        log.warning("Generator output failed validation: %s", exc.message)
        raise MalformedResponseError() from exc


@router.post("/notebook", responses={400: {"model": ErrorResponse}})
async def notebook(req: NotebookRequest):
    filename = notebook_filename(req.topic)
    return Response(
        content=serialize_notebook(req.notebook_code),
        media_type=MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def _research_error_handler(request: Request, exc: ResearchError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    log.info("Rejected request to %s: %s", request.url.path, exc.errors())
    if request.url.path.endswith("/notebook"):
        message = "Notebook code is required."
    else:
        message = ValidationError.default_message
    return JSONResponse(status_code=400, content={"error": message})


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    # Starlette sets Allow on 405s; keep it.
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_error_handler(request: Request, exc: Exception):
    log.exception("Error in %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": f"Failed to generate research. Details: {exc}"},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(title="research-baseline", version="0.1.0")
    app.state.settings = settings or default_settings
    app.include_router(router)

    app.add_exception_handler(ResearchError, _research_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    # Serve index.html at root (no-cache so browser always gets latest)
    @app.get("/")
    async def index():
        return FileResponse(
            _STATIC_DIR / "index.html",
            headers={"Cache-Control": "no-cache"},
        )

    app.mount("/static", StaticFiles(directory=_STATIC_DIR), name="static")

    @app.middleware("http")
    async def add_no_cache_to_static(request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/static/"):
            response.headers["Cache-Control"] = "no-cache"
        return response

    if not app.state.settings.generator.is_configured:
        log.warning(
            "No generator API key configured. The app will start but research "
            "requests will fail until BASELINE_GENERATOR__API_KEY is set."
        )
    return app


app = create_app()
