"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between the player app and the engine.
Location answers and accepted codes are never part of a response.

Error Codes:
- VALIDATION_ERROR: malformed code, answer or sign-up field
- NOT_FOUND: unknown player or location
- CONFLICT: location locked, already completed, or submission in flight
- COOLDOWN_ACTIVE: quiz locked after a wrong answer (details carry the
  remaining time)
- BACKEND_UNAVAILABLE: storage backend failed, retry later
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class UnlockStatus(str, Enum):
    LOCKED = "locked"
    AVAILABLE = "available"
    COMPLETED = "completed"


class ScanResult(str, Enum):
    OK = "ok"
    WRONG_LOCATION = "wrong_location"
    INVALID = "invalid"


class FlowStage(str, Enum):
    SCANNING = "scanning"
    PHOTO = "photo"
    QUIZ = "quiz"
    COOLDOWN = "cooldown"
    COMPLETED = "completed"


class AnswerOutcome(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"


class ErrorCode(str, Enum):
    """Error categories. error_code on a response may be more specific."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    COOLDOWN_ACTIVE = "COOLDOWN_ACTIVE"
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class PlayerInfo(BaseModel):
    player_id: str
    name: str
    phone: str

    model_config = {"from_attributes": True}


class LocationInfo(BaseModel):
    """Public view of a location."""
    location_id: str
    name: str
    order: int
    floor: str
    clue: str
    quiz_question: str
    quiz_options: list[str]


class CooldownInfo(BaseModel):
    active: bool
    attempt_count: int = 0
    cooldown_until: Optional[float] = Field(None, description="Epoch seconds")
    remaining_seconds: int = 0
    remaining: Optional[str] = Field(None, description="e.g. 2h 59m 59s")


class LocationStatusInfo(BaseModel):
    location: LocationInfo
    status: UnlockStatus
    completed_at: Optional[datetime] = None
    cooldown: Optional[CooldownInfo] = None


class ProgressInfo(BaseModel):
    completed_count: int
    total_count: int
    percentage: int = Field(ge=0, le=100)


class AchievementInfo(BaseModel):
    achievement_id: str
    title: str
    description: str
    icon: str
    unlocked: bool
    unlocked_at: Optional[datetime] = None


# =============================================================================
# Request Models
# =============================================================================

class SignupCodeRequest(BaseModel):
    code: str = Field(description="Six-character sign-up code")


class RegisterRequest(BaseModel):
    code: str
    name: str
    phone: str = Field(description="Digits, starting with 08")


class ScanRequest(BaseModel):
    code: str = Field(description="Decoded QR payload or typed code")
    manual: bool = Field(False, description="Typed by hand rather than scanned")


class AnswerRequest(BaseModel):
    selected: int = Field(description="Index of the chosen option")


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    env: str
    location_count: int


class LocationListResponse(BaseModel):
    locations: list[LocationInfo]
    count: int


class SignupCodeResponse(BaseModel):
    valid: bool
    code: str
    message: str = ""


class RegisterResponse(BaseModel):
    player: PlayerInfo
    message: str = ""


class DashboardResponse(BaseModel):
    player: PlayerInfo
    progress: ProgressInfo
    locations: list[LocationStatusInfo]
    next_location_id: Optional[str] = None
    achievements: list[AchievementInfo]
    is_complete: bool = False
    api_version: str = "v1"


class ScanResponse(BaseModel):
    result: ScanResult
    accepted: bool
    stage: FlowStage
    message: str
    retry_allowed: bool = True


class PhotoResponse(BaseModel):
    photo_ref: str
    stage: FlowStage


class AnswerResponse(BaseModel):
    outcome: AnswerOutcome
    correct: bool
    already_completed: bool = False
    attempt_count: int = 0
    stage: FlowStage
    cooldown: Optional[CooldownInfo] = None
    message: str = ""


class ErrorResponse(BaseModel):
    error: str
    error_code: str
    category: ErrorCode = ErrorCode.INTERNAL_ERROR
    details: Optional[dict[str, Any]] = None
