"""Pixelsmith — FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, all REST API routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
The HTTP layer is deliberately thin:

- **Services** (store, provider gateway, orchestrator, tuning registry,
  accounts) are built once in the lifespan handler and kept on
  ``app.state``.
- **Generation** is delegated to
  :class:`~pixelsmith.services.orchestrator.GenerationOrchestrator`; a failed
  generation is returned as a ``GenerationResult`` with the HTTP status of
  its error kind.
- **Errors** raised anywhere else are typed
  :class:`~pixelsmith.core.errors.PixelsmithError` subclasses, turned into
  ``{"error": {"kind", "message"}}`` by one exception handler.

Endpoints
---------
========  ================================  ==================================
Method    Path                              Purpose
========  ================================  ==================================
POST      ``/api/auth/register``            Create an account
POST      ``/api/auth/login``               Check credentials
GET       ``/api/users/{id}``               Public user profile
POST      ``/api/images/text-to-image``     Generate from a prompt (JSON)
POST      ``/api/images/{operationKind}``   Image-based operations (multipart)
GET       ``/api/images``                   Paginated gallery listing
GET       ``/api/images/{id}``              Single artifact
GET       ``/api/style-presets``            Style preset catalogue
GET       ``/api/ai-models``                AI model catalogue
GET       ``/api/model-tunings``            List tuning profiles
POST      ``/api/model-tunings``            Create a tuning profile
GET       ``/api/model-tunings/{id}``       Single tuning profile
PATCH     ``/api/model-tunings/{id}``       Partially update a profile
DELETE    ``/api/model-tunings/{id}``       Delete a profile
========  ================================  ==================================

Usage
-----
CLI (installed entry point)::

    pixelsmith

Direct invocation::

    python -m pixelsmith.api.main
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

import httpx
import pydantic
from fastapi import APIRouter, FastAPI, File, Form, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pixelsmith import __version__
from pixelsmith.api.models import (
    ArtifactPage,
    LoginRequest,
    ModelTuningRequest,
    RegisterRequest,
    TextToImageRequest,
)
from pixelsmith.api.uploads import prepare_upload
from pixelsmith.core.config import PixelsmithConfig, config
from pixelsmith.core.errors import NotFoundError, PixelsmithError, ValidationError
from pixelsmith.core.schemas import (
    AiModel,
    Artifact,
    ErrorInfo,
    GenerationRequest,
    GenerationResult,
    PublicUser,
    StylePreset,
    TunedModelView,
)
from pixelsmith.providers.gateway import ProviderGateway
from pixelsmith.services import AccountService, GenerationOrchestrator, ModelTuningRegistry
from pixelsmith.storage import DEFAULT_PAGE_SIZE, ArtifactStore, create_store

logger = logging.getLogger(__name__)

# HTTP status for each error kind.
STATUS_BY_KIND: dict[str, int] = {
    "ValidationError": 400,
    "AuthenticationError": 401,
    "NotFoundError": 404,
    "ContentPolicyError": 422,
    "RateLimitError": 429,
    "ConfigurationError": 500,
    "ProviderError": 502,
    "StorageUnavailableError": 503,
    "TimeoutError": 504,
}


def status_for(kind: str) -> int:
    return STATUS_BY_KIND.get(kind, 500)


def _result_response(result: GenerationResult) -> JSONResponse:
    status = 200 if result.success else status_for(result.error.kind)
    return JSONResponse(
        status_code=status,
        content=result.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


# ---------------------------------------------------------------------------
# Application factory and lifecycle.
# ---------------------------------------------------------------------------


def create_app(
    app_config: PixelsmithConfig | None = None,
    store: ArtifactStore | None = None,
    gateway: ProviderGateway | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        app_config: Configuration; defaults to the global ``config``.
        store: Pre-built store.  When omitted the lifespan handler builds
            (and later closes) one from the configuration.
        gateway: Pre-built gateway, e.g. one wired to stub adapters.

    Returns:
        The configured application.
    """
    settings = app_config or config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # --- Startup -------------------------------------------------------
        owns_store = store is None
        app_store = store if store is not None else await create_store(settings)

        client: httpx.AsyncClient | None = None
        app_gateway = gateway
        if app_gateway is None:
            client = httpx.AsyncClient(timeout=settings.provider_timeout)
            app_gateway = ProviderGateway(settings, client=client)

        app.state.config = settings
        app.state.store = app_store
        app.state.gateway = app_gateway
        app.state.orchestrator = GenerationOrchestrator(app_gateway, app_store, settings)
        app.state.tunings = ModelTuningRegistry(app_store)
        app.state.accounts = AccountService(app_store)
        logger.info(f"Pixelsmith {__version__} started ({app_store.backend} backend)")

        yield  # Application runs here.

        # --- Shutdown ------------------------------------------------------
        if client is not None:
            await client.aclose()
        if owns_store:
            await app_store.close()
        logger.info("Pixelsmith stopped.")

    app = FastAPI(
        title="Pixelsmith",
        description="AI image generation and editing across multiple providers.",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PixelsmithError)
    async def pixelsmith_error_handler(request: Request, exc: PixelsmithError) -> JSONResponse:
        return JSONResponse(status_code=status_for(exc.kind), content={"error": exc.to_dict()})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message = _describe_errors(exc.errors())
        if request.url.path.startswith("/api/images/"):
            error = ErrorInfo(kind="ValidationError", message=message)
            return _result_response(GenerationResult(success=False, error=error))
        return JSONResponse(
            status_code=status_for("ValidationError"),
            content={"error": ValidationError(message).to_dict()},
        )

    app.include_router(router)
    return app


router = APIRouter(prefix="/api")


# ---------------------------------------------------------------------------
# Accounts.
# ---------------------------------------------------------------------------


@router.post("/auth/register", status_code=201)
async def register(req: RegisterRequest, request: Request) -> PublicUser:
    """Create an account and return its public profile.

    Raises:
        ValidationError: 400 if a field is missing or the username or email
            is taken.
    """
    accounts: AccountService = request.app.state.accounts
    return await accounts.register(
        req.username,
        req.password,
        req.email,
        display_name=req.display_name,
        avatar=req.avatar,
    )


@router.post("/auth/login")
async def login(req: LoginRequest, request: Request) -> PublicUser:
    accounts: AccountService = request.app.state.accounts
    return await accounts.login(req.username, req.password)


@router.get("/users/{user_id}")
async def get_user(user_id: str, request: Request) -> PublicUser:
    accounts: AccountService = request.app.state.accounts
    user = await accounts.get_user(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


# ---------------------------------------------------------------------------
# Generation.
# ---------------------------------------------------------------------------


@router.post("/images/text-to-image")
async def text_to_image(req: TextToImageRequest, request: Request) -> JSONResponse:
    """Generate an image from a prompt.

    Returns:
        ``GenerationResult``: 200 with ``imageUrl`` (and ``artifact`` when a
        ``userId`` was given), or the error kind's status with ``error``.
    """
    orchestrator: GenerationOrchestrator = request.app.state.orchestrator
    try:
        generation = GenerationRequest(
            operation_kind="text-to-image",
            prompt=req.prompt,
            model_id=req.model_id,
            width=req.width,
            height=req.height,
            style_preset_id=req.style_preset_id,
            caller_user_id=req.user_id,
        )
    except pydantic.ValidationError as e:
        return _invalid_request(e)

    result = await orchestrator.generate(generation)
    return _result_response(result)


def _describe_errors(errors: Sequence[Any]) -> str:
    first = errors[0]
    field = ".".join(str(loc) for loc in first["loc"])
    return f"{field}: {first['msg']}"


def _invalid_request(exc: pydantic.ValidationError) -> JSONResponse:
    error = ErrorInfo(kind="ValidationError", message=_describe_errors(exc.errors()))
    return _result_response(GenerationResult(success=False, error=error))


def _parse_adjustments(raw: str | None) -> dict[str, Any] | None:
    if raw is None or raw == "":
        return None
    try:
        adjustments = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError("adjustments must be a JSON object") from None
    if not isinstance(adjustments, dict):
        raise ValidationError("adjustments must be a JSON object")
    return adjustments


@router.post("/images/{operation_kind}")
async def image_operation(
    operation_kind: str,
    request: Request,
    image: UploadFile | None = File(default=None),
    prompt: str | None = Form(default=None),
    model_id: str | None = Form(default=None, alias="modelId"),
    strength: float | None = Form(default=None),
    adjustments: str | None = Form(default=None),
    user_id: str | None = Form(default=None, alias="userId"),
    style_preset_id: str | None = Form(default=None, alias="stylePresetId"),
) -> JSONResponse:
    """Run an image-based operation on an uploaded image.

    ``operation_kind`` is one of ``image-to-image``, ``face-cloning``,
    ``edit-face`` or ``edit-objects``.  The upload is resized to fit 1024px
    and re-encoded as PNG before it is sent to a provider.  ``adjustments``
    (edit-face only) is a JSON object of feature name to intensity.
    """
    orchestrator: GenerationOrchestrator = request.app.state.orchestrator
    settings: PixelsmithConfig = request.app.state.config

    try:
        data = await image.read() if image is not None else b""
        generation = GenerationRequest(
            operation_kind=operation_kind,
            prompt=prompt,
            model_id=model_id or None,
            image_bytes=prepare_upload(data, settings.max_upload_bytes),
            strength=strength,
            adjustments=_parse_adjustments(adjustments),
            style_preset_id=style_preset_id or None,
            caller_user_id=user_id or None,
        )
    except PixelsmithError as e:
        return _result_response(GenerationResult(success=False, error=ErrorInfo(**e.to_dict())))
    except pydantic.ValidationError as e:
        return _invalid_request(e)

    result = await orchestrator.generate(generation)
    return _result_response(result)


# ---------------------------------------------------------------------------
# Gallery and catalogues.
# ---------------------------------------------------------------------------


@router.get("/images")
async def list_images(
    request: Request,
    user_id: str | None = Query(default=None, alias="userId"),
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> ArtifactPage:
    """Return one page of artifacts, newest first.

    Args:
        user_id: If provided, only this user's artifacts.
        limit: Page size (default 20).
        offset: Number of artifacts to skip.
    """
    store: ArtifactStore = request.app.state.store
    images = await store.list_artifacts(user_id=user_id, limit=limit, offset=offset)
    total = await store.count_artifacts(user_id=user_id)
    return ArtifactPage(total=total, limit=limit, offset=offset, images=images)


@router.get("/images/{artifact_id}")
async def get_image(artifact_id: str, request: Request) -> Artifact:
    store: ArtifactStore = request.app.state.store
    artifact = await store.get_artifact(artifact_id)
    if artifact is None:
        raise NotFoundError(f"Image {artifact_id} not found")
    return artifact


@router.get("/style-presets")
async def list_style_presets(request: Request) -> list[StylePreset]:
    store: ArtifactStore = request.app.state.store
    return await store.list_style_presets()


@router.get("/ai-models")
async def list_ai_models(request: Request) -> list[AiModel]:
    store: ArtifactStore = request.app.state.store
    return await store.list_ai_models()


# ---------------------------------------------------------------------------
# Model tunings.
# ---------------------------------------------------------------------------


@router.get("/model-tunings")
async def list_model_tunings(
    request: Request,
    user_id: str | None = Query(default=None, alias="userId"),
) -> list[TunedModelView]:
    tunings: ModelTuningRegistry = request.app.state.tunings
    return await tunings.list(user_id=user_id)


@router.post("/model-tunings", status_code=201)
async def create_model_tuning(req: ModelTuningRequest, request: Request) -> TunedModelView:
    """Create a tuning profile.

    Raises:
        ValidationError: 400 if ``name``, ``modelId`` or ``parameters`` is
            missing or malformed.
    """
    tunings: ModelTuningRegistry = request.app.state.tunings
    return await tunings.create(
        name=req.name,
        model_id=req.model_id,
        parameters=req.parameters,
        description=req.description,
        user_id=req.user_id,
    )


@router.get("/model-tunings/{tuning_id}")
async def get_model_tuning(tuning_id: str, request: Request) -> TunedModelView:
    tunings: ModelTuningRegistry = request.app.state.tunings
    tuning = await tunings.get(tuning_id)
    if tuning is None:
        raise NotFoundError(f"Model tuning {tuning_id} not found")
    return tuning


@router.patch("/model-tunings/{tuning_id}")
async def update_model_tuning(
    tuning_id: str, changes: dict[str, Any], request: Request
) -> TunedModelView:
    """Merge the supplied fields into a tuning profile and bump ``updatedAt``."""
    tunings: ModelTuningRegistry = request.app.state.tunings
    return await tunings.update(tuning_id, changes)


@router.delete("/model-tunings/{tuning_id}")
async def delete_model_tuning(tuning_id: str, request: Request) -> dict:
    tunings: ModelTuningRegistry = request.app.state.tunings
    if not await tunings.delete(tuning_id):
        raise NotFoundError(f"Model tuning {tuning_id} not found")
    return {"success": True, "deleted": tuning_id}


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~pixelsmith.core.config.config`
    (``PIXELSMITH_SERVER_HOST``, ``PIXELSMITH_SERVER_PORT``,
    ``PIXELSMITH_LOG_LEVEL``).  Defaults to ``0.0.0.0:5000``.

    This function is registered as the ``pixelsmith`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "pixelsmith.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
