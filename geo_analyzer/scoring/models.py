"""
Value types produced by the findings and scoring engine.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Severity(str, Enum):
    ERROR = "Fehler"
    WARNING = "Warnung"
    NOTICE = "Hinweis"


class Impact(str, Enum):
    HIGH = "hoch"
    MEDIUM = "mittel"
    LOW = "niedrig"


class Finding(BaseModel):
    """One immutable fact about one page."""
    model_config = ConfigDict(frozen=True)

    url: str
    category: str
    location: str
    severity: Severity
    issue: str
    fix: str
    example: str = ""
    impact: Impact


class MainIssue(BaseModel):
    """Human-readable issue line for the main page summary."""
    model_config = ConfigDict(frozen=True)

    message: str
    impact: Impact


class ScoreBreakdown(BaseModel):
    structured_data: int = 0
    technical: int = 0
    content: int = 0
    social: int = 0


class Score(BaseModel):
    total: int = 0
    breakdown: ScoreBreakdown = ScoreBreakdown()


class CheckStatus(str, Enum):
    OK = "ok"
    WARN = "warn"
    FAIL = "fail"


class CheckRow(BaseModel):
    """One row of the main-page check matrix."""
    category: str
    check: str
    status: CheckStatus
