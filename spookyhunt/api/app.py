"""
FastAPI Application - REST API for the player app.

Endpoints:
    GET    /api/v1/health                                   Service health
    GET    /api/v1/locations                                Event locations
    POST   /api/v1/signup/validate                          Check a sign-up code
    POST   /api/v1/players                                  Register a player
    GET    /api/v1/players/{pid}/dashboard                  Status, progress, badges
    POST   /api/v1/players/{pid}/locations/{lid}/scan       Validate a scanned code
    POST   /api/v1/players/{pid}/locations/{lid}/photo      Upload the photo
    POST   /api/v1/players/{pid}/locations/{lid}/answer     Answer the quiz
    GET    /api/v1/players/{pid}/locations/{lid}/cooldown   Quiz cooldown
    WS     /api/v1/players/{pid}/locations/{lid}/cooldown/ws  Live countdown
    WS     /api/v1/players/{pid}/ws                         Progress refresh

Every HuntError becomes an ErrorResponse with the error's HTTP status.
Photos are multipart/form-data.
"""

from typing import Annotated
import asyncio
import json
import logging

from .. import __version__
from ..config import HuntConfig, configure_logging

logger = logging.getLogger(__name__)


def create_app(service=None, config: HuntConfig | None = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional HuntService instance (built from config if not provided)
        config: Optional HuntConfig (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, File, Request, UploadFile, WebSocket, WebSocketDisconnect
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn python-multipart"
        )

    from .service import HuntService
    from .schemas import (
        AnswerRequest,
        AnswerResponse,
        CooldownInfo,
        DashboardResponse,
        ErrorCode,
        ErrorResponse,
        HealthResponse,
        LocationListResponse,
        PhotoResponse,
        RegisterRequest,
        RegisterResponse,
        ScanRequest,
        ScanResponse,
        SignupCodeRequest,
        SignupCodeResponse,
    )
    from ..errors import HuntError
    from ..session.scheduler import CooldownCountdown, ProgressPoller

    config = config or HuntConfig.from_env()
    configure_logging(config.log_level)
    api_service = service or HuntService.from_config(config)

    app = FastAPI(
        title="Spooky Hunt API",
        description="""
In-venue scavenger hunt: scan the code, take a photo, answer the quiz.

## Error Codes

| Category | Status | Description |
|------|------|-------------|
| `VALIDATION_ERROR` | 400 | Malformed code, answer or sign-up field |
| `NOT_FOUND` | 404 | Unknown player or location |
| `CONFLICT` | 409 | Location locked or already completed |
| `COOLDOWN_ACTIVE` | 429 | Quiz locked after a wrong answer |
| `BACKEND_UNAVAILABLE` | 503 | Storage failure, retry later |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = api_service

    # =========================================================================
    # Error handling
    # =========================================================================

    def error_category(exc: HuntError) -> ErrorCode:
        for cls in type(exc).__mro__:
            try:
                return ErrorCode(cls.error_code)
            except (AttributeError, ValueError):
                continue
        return ErrorCode.INTERNAL_ERROR

    @app.exception_handler(HuntError)
    async def hunt_error_handler(request: Request, exc: HuntError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=exc.message,
                error_code=exc.error_code,
                category=error_category(exc),
                details=exc.details or None,
            ).model_dump(mode="json"),
        )

    # =========================================================================
    # Catalog & players
    # =========================================================================

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["Service"])
    async def health() -> HealthResponse:
        return api_service.health()

    @app.get("/api/v1/locations", response_model=LocationListResponse, tags=["Catalog"])
    async def list_locations() -> LocationListResponse:
        """Locations of the current event, in order. Codes and answers are omitted."""
        return api_service.list_locations()

    @app.post(
        "/api/v1/signup/validate",
        response_model=SignupCodeResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Players"],
    )
    async def validate_signup(body: SignupCodeRequest) -> SignupCodeResponse:
        return api_service.validate_signup(body)

    @app.post(
        "/api/v1/players",
        response_model=RegisterResponse,
        status_code=201,
        responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Players"],
    )
    async def register(body: RegisterRequest) -> RegisterResponse:
        return api_service.register(body)

    @app.get(
        "/api/v1/players/{player_id}/dashboard",
        response_model=DashboardResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Players"],
    )
    async def dashboard(player_id: str) -> DashboardResponse:
        """Unlock status per location, progress percentage and badges."""
        return api_service.dashboard(player_id)

    # =========================================================================
    # Location flow
    # =========================================================================

    @app.post(
        "/api/v1/players/{player_id}/locations/{location_id}/scan",
        response_model=ScanResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Hunt"],
    )
    async def scan(player_id: str, location_id: str, body: ScanRequest) -> ScanResponse:
        """
        Validate a decoded QR payload.

        A wrong or unknown code returns `accepted=false`; scan again right away.
        """
        return api_service.scan(player_id, location_id, body)

    @app.post(
        "/api/v1/players/{player_id}/locations/{location_id}/photo",
        response_model=PhotoResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Hunt"],
    )
    async def upload_photo(
        player_id: str,
        location_id: str,
        photo: Annotated[UploadFile, File(description="Selfie at the location")],
    ) -> PhotoResponse:
        data = await photo.read()
        return api_service.upload_photo(player_id, location_id, data, photo.content_type)

    @app.post(
        "/api/v1/players/{player_id}/locations/{location_id}/answer",
        response_model=AnswerResponse,
        responses={
            400: {"model": ErrorResponse},
            409: {"model": ErrorResponse},
            429: {"model": ErrorResponse, "description": "Quiz cooling down"},
            503: {"model": ErrorResponse},
        },
        tags=["Hunt"],
    )
    async def answer(player_id: str, location_id: str, body: AnswerRequest) -> AnswerResponse:
        """
        Answer the location quiz.

        A wrong answer locks the quiz for three hours.
        """
        return api_service.answer(player_id, location_id, body)

    @app.get(
        "/api/v1/players/{player_id}/locations/{location_id}/cooldown",
        response_model=CooldownInfo,
        responses={404: {"model": ErrorResponse}},
        tags=["Hunt"],
    )
    async def cooldown(player_id: str, location_id: str) -> CooldownInfo:
        return api_service.cooldown(player_id, location_id)

    # =========================================================================
    # Live updates
    # =========================================================================

    async def listen(websocket: WebSocket) -> None:
        """Answer client messages until the client disconnects."""
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_json({
                    "type": "error",
                    "payload": {"message": "Invalid JSON"},
                })
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})

    async def run_until_disconnect(websocket: WebSocket, task: asyncio.Task) -> None:
        """Wait for the task to finish or the client to leave, whichever is first."""
        receiver = asyncio.ensure_future(listen(websocket))
        try:
            await asyncio.wait({task, receiver}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            receiver.cancel()
        for done in (task, receiver):
            if done.done() and not done.cancelled() and done.exception() is not None:
                exc = done.exception()
                if not isinstance(exc, WebSocketDisconnect):
                    logger.warning("Live update for %s ended: %s", websocket.url.path, exc)

    @app.websocket("/api/v1/players/{player_id}/locations/{location_id}/cooldown/ws")
    async def cooldown_ws(websocket: WebSocket, player_id: str, location_id: str):
        await websocket.accept()

        async def send_tick(remaining):
            await websocket.send_json({
                "type": "cooldown",
                "active": remaining is not None,
                "remaining_seconds": remaining.total_seconds if remaining else 0,
                "remaining": remaining.display if remaining else None,
            })

        countdown = CooldownCountdown(api_service.engine, player_id, location_id, send_tick)
        try:
            await run_until_disconnect(websocket, countdown.start())
        except WebSocketDisconnect:
            pass
        finally:
            countdown.stop()
        try:
            await websocket.close()
        except (RuntimeError, WebSocketDisconnect):
            # Client already gone
            pass

    @app.websocket("/api/v1/players/{player_id}/ws")
    async def progress_ws(websocket: WebSocket, player_id: str):
        await websocket.accept()

        async def send_dashboard(_snapshot):
            view = api_service.dashboard(player_id)
            await websocket.send_json({"type": "dashboard", "payload": view.model_dump(mode="json")})

        poller = ProgressPoller(
            api_service.backend,
            player_id,
            on_update=send_dashboard,
            interval=config.poll_interval,
            clock=api_service.clock,
        )
        try:
            await run_until_disconnect(websocket, poller.start())
        except WebSocketDisconnect:
            pass
        finally:
            poller.stop()

    return app


# For running directly: uvicorn spookyhunt.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
