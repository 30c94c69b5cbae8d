"""FastAPI application server."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from box_calibration import __version__
from box_calibration.api.dependencies import get_calibration_service, verify_api_key
from box_calibration.calibration.render import StaleImageError
from box_calibration.core.settings import get_settings
from box_calibration.core.utils import (
    decode_image,
    describe_image,
    get_opencv_version,
    image_key,
    setup_logging,
)
from box_calibration.enums import ModeOverride, ScaleOverride
from box_calibration.models import (
    CalibrationOverrides,
    CalibrationRequest,
    CalibrationResponse,
    HealthResponse,
    HitTestRequest,
    HitTestResponse,
    LayoutResponse,
    RenderDescriptor,
)
from box_calibration.services import (
    CalibrationService,
    ResultParseError,
    SessionNotFoundError,
    parse_analysis_result,
)
from box_calibration.services.overlay_renderer import draw_overlays, encode_png, render_image

logger = logging.getLogger(__name__)

# Rate limiter instance
limiter = Limiter(key_func=get_remote_address)

ScaleQuery = Annotated[
    ScaleOverride | None, Query(description="One-shot scale override for this request")
]
ModeQuery = Annotated[
    ModeOverride | None, Query(description="One-shot mode override for this request")
]


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Handle rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Please try again later."},
    )


def session_not_found_handler(request: Request, exc: SessionNotFoundError) -> Response:
    """Handle lookups of images that were never calibrated."""
    return JSONResponse(
        status_code=404,
        content={"detail": f"No calibration session for image {exc.args[0]!r}"},
    )


def stale_image_handler(request: Request, exc: StaleImageError) -> Response:
    """Handle render passes against a superseded image decode."""
    return JSONResponse(status_code=409, content={"detail": str(exc)})


def result_parse_error_handler(request: Request, exc: ResultParseError) -> Response:
    """Handle model output that is not a valid analysis result."""
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Args:
        app (FastAPI): The FastAPI application instance.

    Yields:
        None
    """
    settings = get_settings()
    setup_logging(settings=settings.logging)

    logger.info(f"Starting Box Calibration Service v{__version__}")

    overrides = get_calibration_service().preferences.load()
    logger.info(f"Persisted overrides: scale={overrides.scale} mode={overrides.mode}")

    yield

    logger.info("Shutting down Box Calibration Service")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: The configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Box Calibration Service",
        description="Calibrate model-reported bounding boxes onto homework images",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SessionNotFoundError, session_not_found_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StaleImageError, stale_image_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ResultParseError, result_parse_error_handler)  # type: ignore[arg-type]

    # CORS middleware - only add if origins are specified
    if settings.api_server.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api_server.cors_allow_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["*"],
        )

    return app


app = create_app()


async def _read_upload(upload: UploadFile) -> bytes:
    max_size = get_settings().api_server.max_upload_size
    data = await upload.read()
    if len(data) > max_size:
        raise HTTPException(
            status_code=413,
            detail=f"Image exceeds maximum size of {max_size // (1024 * 1024)}MB",
        )
    return data


def _render_from_form(width: float | None, height: float | None) -> RenderDescriptor | None:
    if width is None or height is None:
        return None
    return RenderDescriptor(width=width, height=height)


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint (no auth required).

    Returns:
        HealthResponse: Health status including version.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        opencv_version=get_opencv_version(),
    )


@app.post("/calibrate", response_model=CalibrationResponse)
async def calibrate_problems(
    body: CalibrationRequest,
    service: Annotated[CalibrationService, Depends(get_calibration_service)],
    scale: ScaleQuery = None,
    mode: ModeQuery = None,
) -> CalibrationResponse:
    """
    Calibrate problem rectangles for an image of known (or not yet known) size.

    Args:
        body (CalibrationRequest): Problems, natural size and render box.
        service (CalibrationService): Injected calibration service.
        scale (ScaleOverride | None): One-shot scale override.
        mode (ModeOverride | None): One-shot mode override.

    Returns:
        CalibrationResponse: Decisions and per-problem overlays.
    """
    return service.calibrate(
        problems=body.problems,
        image=body.image,
        image_id=body.image_id,
        render=body.render,
        scale=scale,
        mode=mode,
    )


@app.post("/calibrate/upload", response_model=CalibrationResponse)
@limiter.limit(lambda: get_settings().api_server.rate_limit)
async def calibrate_upload(
    request: Request,
    image: Annotated[UploadFile, File(description="Source image")],
    result: Annotated[str, Form(description="Raw analysis model output")],
    service: Annotated[CalibrationService, Depends(get_calibration_service)],
    render_width: Annotated[float | None, Form(gt=0)] = None,
    render_height: Annotated[float | None, Form(gt=0)] = None,
    scale: ScaleQuery = None,
    mode: ModeQuery = None,
) -> CalibrationResponse:
    """
    Decode an uploaded image and calibrate the model result against it.

    Args:
        request (Request): The request object (required for rate limiting).
        image (UploadFile): Source image.
        result (str): Raw analysis model output.
        service (CalibrationService): Injected calibration service.
        render_width (float | None): Rendered image width.
        render_height (float | None): Rendered image height.
        scale (ScaleOverride | None): One-shot scale override.
        mode (ModeOverride | None): One-shot mode override.

    Returns:
        CalibrationResponse: Decisions and per-problem overlays.
    """
    data = await _read_upload(image)
    decoded = decode_image(data)
    if decoded is None:
        raise HTTPException(status_code=400, detail="Uploaded file is not a decodable image")

    analysis = parse_analysis_result(result)
    return service.calibrate(
        problems=analysis.problems,
        image=describe_image(decoded),
        image_id=image_key(data),
        render=_render_from_form(render_width, render_height),
        scale=scale,
        mode=mode,
    )


@app.put("/sessions/{image_id}/layout", response_model=LayoutResponse)
async def update_layout(
    image_id: str,
    render: RenderDescriptor,
    service: Annotated[CalibrationService, Depends(get_calibration_service)],
) -> LayoutResponse:
    """
    Remap overlays after the rendered image box changed.

    Args:
        image_id (str): Identity of the image decode.
        render (RenderDescriptor): New on-screen image box.
        service (CalibrationService): Injected calibration service.

    Returns:
        LayoutResponse: Pixel overlays for the new layout.
    """
    return service.update_layout(image_id, render)


@app.post("/sessions/{image_id}/hit", response_model=HitTestResponse)
async def hit_test(
    image_id: str,
    pointer: HitTestRequest,
    service: Annotated[CalibrationService, Depends(get_calibration_service)],
) -> HitTestResponse:
    """
    Select the topmost problem under a pointer.

    Args:
        image_id (str): Identity of the image decode.
        pointer (HitTestRequest): Pointer position in screen pixels.
        service (CalibrationService): Injected calibration service.

    Returns:
        HitTestResponse: Selected problem id.
    """
    return service.hit_test(image_id, pointer.x, pointer.y)


@app.get("/sessions/{image_id}/diagnostics", response_class=PlainTextResponse)
async def diagnostics(
    image_id: str,
    service: Annotated[CalibrationService, Depends(get_calibration_service)],
) -> PlainTextResponse:
    """
    Get the diagnostic snapshot of a session as copyable text.

    Args:
        image_id (str): Identity of the image decode.
        service (CalibrationService): Injected calibration service.

    Returns:
        PlainTextResponse: Indented JSON snapshot.
    """
    return PlainTextResponse(service.snapshot(image_id).to_text())


@app.post("/overlay", response_class=Response)
@limiter.limit(lambda: get_settings().api_server.rate_limit)
async def overlay(
    request: Request,
    image: Annotated[UploadFile, File(description="Source image")],
    result: Annotated[str, Form(description="Raw analysis model output")],
    service: Annotated[CalibrationService, Depends(get_calibration_service)],
    render_width: Annotated[float | None, Form(gt=0)] = None,
    render_height: Annotated[float | None, Form(gt=0)] = None,
    selected: Annotated[str | None, Form()] = None,
    scale: ScaleQuery = None,
    mode: ModeQuery = None,
) -> Response:
    """
    Draw the calibrated overlay onto the uploaded image.

    Args:
        request (Request): The request object (required for rate limiting).
        image (UploadFile): Source image.
        result (str): Raw analysis model output.
        service (CalibrationService): Injected calibration service.
        render_width (float | None): Output width (natural width if omitted).
        render_height (float | None): Output height (natural height if omitted).
        selected (str | None): Problem to highlight (first problem if omitted).
        scale (ScaleOverride | None): One-shot scale override.
        mode (ModeOverride | None): One-shot mode override.

    Returns:
        Response: PNG image.
    """
    data = await _read_upload(image)
    decoded = decode_image(data)
    if decoded is None:
        raise HTTPException(status_code=400, detail="Uploaded file is not a decodable image")

    descriptor = describe_image(decoded)
    render = _render_from_form(render_width, render_height) or RenderDescriptor(
        width=descriptor.width, height=descriptor.height
    )
    analysis = parse_analysis_result(result)
    calibrated = service.calibrate(
        problems=analysis.problems,
        image=descriptor,
        image_id=image_key(data),
        render=render,
        scale=scale,
        mode=mode,
    )
    canvas = draw_overlays(
        render_image(decoded, render),
        calibrated.overlays,
        selected_problem_id=selected or calibrated.selected_problem_id,
    )
    return Response(content=encode_png(canvas), media_type="image/png")


@app.get("/overrides", response_model=CalibrationOverrides)
async def get_overrides(
    service: Annotated[CalibrationService, Depends(get_calibration_service)],
) -> CalibrationOverrides:
    """
    Get the persisted operator overrides.

    Returns:
        CalibrationOverrides: Overrides applied when a request has no one-shot values.
    """
    return service.preferences.load()


@app.put("/overrides", response_model=CalibrationOverrides)
async def put_overrides(
    overrides: CalibrationOverrides,
    service: Annotated[CalibrationService, Depends(get_calibration_service)],
    _api_key: Annotated[str | None, Depends(verify_api_key)],
) -> CalibrationOverrides:
    """
    Persist new operator overrides.

    Requires API key authentication if configured.

    Args:
        overrides (CalibrationOverrides): Overrides to persist.
        service (CalibrationService): Injected calibration service.

    Returns:
        CalibrationOverrides: The stored overrides.
    """
    try:
        return service.preferences.save(overrides)
    except OSError as e:
        logger.error(f"Failed to persist overrides: {e}")
        raise HTTPException(status_code=500, detail="Could not persist overrides") from e


@app.delete("/overrides", response_model=CalibrationOverrides)
async def delete_overrides(
    service: Annotated[CalibrationService, Depends(get_calibration_service)],
    _api_key: Annotated[str | None, Depends(verify_api_key)],
) -> CalibrationOverrides:
    """
    Forget the persisted operator overrides.

    Requires API key authentication if configured.

    Args:
        service (CalibrationService): Injected calibration service.

    Returns:
        CalibrationOverrides: The configured defaults now in effect.
    """
    try:
        return service.preferences.reset()
    except OSError as e:
        logger.error(f"Failed to remove persisted overrides: {e}")
        raise HTTPException(status_code=500, detail="Could not reset overrides") from e
