"""
API Module - Player app interface.

Exposes the engine via REST API. The player app:
1. Validates a sign-up code and registers
2. Reads the dashboard (what is unlocked, progress, badges)
3. Scans the location code
4. Uploads a photo
5. Answers the quiz, or waits out the cooldown

The server keeps no identity for the client; the app holds its player_id.
"""

from .schemas import (
    # Requests
    SignupCodeRequest,
    RegisterRequest,
    ScanRequest,
    AnswerRequest,
    # Responses
    HealthResponse,
    LocationListResponse,
    SignupCodeResponse,
    RegisterResponse,
    DashboardResponse,
    ScanResponse,
    PhotoResponse,
    AnswerResponse,
    ErrorResponse,
    # Shared
    PlayerInfo,
    LocationInfo,
    LocationStatusInfo,
    CooldownInfo,
    ProgressInfo,
    AchievementInfo,
)
from .service import HuntService
from .app import create_app

__all__ = [
    # Requests
    "SignupCodeRequest",
    "RegisterRequest",
    "ScanRequest",
    "AnswerRequest",
    # Responses
    "HealthResponse",
    "LocationListResponse",
    "SignupCodeResponse",
    "RegisterResponse",
    "DashboardResponse",
    "ScanResponse",
    "PhotoResponse",
    "AnswerResponse",
    "ErrorResponse",
    # Shared
    "PlayerInfo",
    "LocationInfo",
    "LocationStatusInfo",
    "CooldownInfo",
    "ProgressInfo",
    "AchievementInfo",
    # Service
    "HuntService",
    "create_app",
]
