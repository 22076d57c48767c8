"""FastAPI application entrypoint for tiltshift service mode."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Literal, Optional, Tuple

try:  # pragma: no cover - optional dependency
    from fastapi import Depends, FastAPI
    from fastapi.responses import JSONResponse
    from pydantic import BaseModel

    _FASTAPI_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - service mode optional
    FastAPI = None  # type: ignore[assignment]
    Depends = None  # type: ignore[assignment]
    JSONResponse = None  # type: ignore[assignment]
    BaseModel = object  # type: ignore[assignment]
    _FASTAPI_AVAILABLE = False

from ..config import TiltshiftConfig, load_config_text, parse_config
from ..errors import CollaboratorError, ConfigurationError
from ..logging import get_logger
from ..models import ChangedFile, ProcessingContext, RevisionPair
from ..processing import ProjectionRunner
from ..resolver import validate_references

_MISSING_FASTAPI = "FastAPI is required for service mode. Install it with `pip install tiltshift[service]`."


class FileEntry(BaseModel):
    old_path: Optional[str] = None
    new_path: Optional[str] = None
    type: Literal["add", "delete", "modify", "rename", "copy"] = "modify"
    old_content: Optional[str] = None
    new_content: Optional[str] = None


class EvaluateRequest(BaseModel):
    config: Optional[Dict[str, Any]] = None
    config_yaml: Optional[str] = None
    base: str = "base"
    head: str = "head"
    files: List[FileEntry] = []


class EvaluateResponse(BaseModel):
    reports: List[Dict[str, Any]]
    subjects: Dict[str, Dict[str, Any]]


class HealthResponse(BaseModel):
    status: str


def create_app(
    runner_factory: Callable[[], ProjectionRunner] = ProjectionRunner,
) -> FastAPI:
    """Create the FastAPI application exposing batch evaluation."""

    if not _FASTAPI_AVAILABLE:  # pragma: no cover - validated via unit tests
        raise RuntimeError(_MISSING_FASTAPI)

    app = FastAPI(title="Tiltshift Service", version="1.0.0")
    logger = get_logger("service")

    async def get_runner() -> ProjectionRunner:
        # One runner per request keeps focus caches and state predictable.
        return runner_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/evaluate", response_model=EvaluateResponse)
    async def evaluate(
        payload: EvaluateRequest,
        runner: ProjectionRunner = Depends(get_runner),
    ) -> EvaluateResponse:
        config = _config_from_request(payload)
        validate_references(config)

        files, contents = _batch_from_request(payload)

        def provider(revision: str, path: str) -> Optional[str]:
            return contents.get((revision, path))

        context = ProcessingContext(
            content_provider=provider,
            refs=RevisionPair(base=payload.base, head=payload.head),
        )
        logger.info("Evaluating %d files", len(files))
        result = await runner.run(files, config, context)
        return EvaluateResponse(**result.to_dict())

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        _: Any, exc: ConfigurationError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(CollaboratorError)
    async def collaborator_error_handler(
        _: Any, exc: CollaboratorError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    return app


def _config_from_request(payload: EvaluateRequest) -> TiltshiftConfig:
    if payload.config is not None and payload.config_yaml is not None:
        raise ConfigurationError("Provide either 'config' or 'config_yaml', not both")
    if payload.config is not None:
        return parse_config(payload.config)
    if payload.config_yaml is not None:
        return load_config_text(payload.config_yaml)
    raise ConfigurationError("Request is missing 'config' or 'config_yaml'")


def _batch_from_request(
    payload: EvaluateRequest,
) -> Tuple[List[ChangedFile], Dict[Tuple[str, str], str]]:
    files: List[ChangedFile] = []
    contents: Dict[Tuple[str, str], str] = {}
    for entry in payload.files:
        if not entry.old_path and not entry.new_path:
            raise ConfigurationError("Each file needs an 'old_path' or a 'new_path'")
        changed = ChangedFile(old_path=entry.old_path, new_path=entry.new_path, type=entry.type)
        files.append(changed)
        old_path = entry.old_path or entry.new_path
        new_path = entry.new_path or entry.old_path
        if entry.old_content is not None and old_path:
            contents[(payload.base, old_path)] = entry.old_content
        if entry.new_content is not None and new_path:
            contents[(payload.head, new_path)] = entry.new_content
    return files, contents


def run_service(
    host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    if not _FASTAPI_AVAILABLE:
        raise RuntimeError(_MISSING_FASTAPI)

    try:
        import uvicorn
    except ModuleNotFoundError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError(
            "uvicorn is required to run the service. Install it with `pip install tiltshift[service]`."
        ) from exc

    app = create_app()
    uvicorn.run(app, host=host, port=port)
