from pydantic import BaseModel, Field, ConfigDict, TypeAdapter, ValidationError, field_validator
from datetime import datetime, timezone
from typing import Optional, List, Any
from enum import Enum
import logging
import uuid


logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


class Sentiment(str, Enum):
    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"


class Status(str, Enum):
    PENDING = "Pending"
    ON_HOLD = "On hold"
    APPROVED = "Approved"
    FLAGGED_NEGATIVE = "Flagged (Negative)"


_DATETIME = TypeAdapter(datetime)

_LABEL_DEFAULTS = {"source": "Google", "agent": UNKNOWN, "team": UNKNOWN}
_AGENT_DEFAULTS = {"name": UNKNOWN, "team": UNKNOWN, "email": ""}

# Wire names of fields that are only written when present
PASSTHROUGH_FIELDS = ("reviewerName", "reviewerThumbnail", "reviewerLink", "likes")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def _optional_int(value: Any, low: Optional[int] = None, high: Optional[int] = None) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    if (low is not None and number < low) or (high is not None and number > high):
        return None
    return number


class FeedbackItem(BaseModel):
    """One customer review, coerced to a complete shape on validation."""
    model_config = ConfigDict(use_enum_values=True, populate_by_name=True, validate_default=True)

    id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")
    source: str = "Google"
    rating: Optional[int] = None
    sentiment: Sentiment = Sentiment.NEUTRAL
    status: Status = Status.PENDING
    agent: str = UNKNOWN
    team: str = UNKNOWN
    theme: str = ""
    keywords: List[str] = Field(default_factory=list)
    tv_snippet: str = Field(default="", alias="tvSnippet")
    text: str = ""
    manager_rating: Optional[int] = Field(default=None, alias="managerRating")
    reviewer_name: Optional[str] = Field(default=None, alias="reviewerName")
    reviewer_thumbnail: Optional[str] = Field(default=None, alias="reviewerThumbnail")
    reviewer_link: Optional[str] = Field(default=None, alias="reviewerLink")
    likes: Optional[int] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        if value is None or value == "":
            return _new_id()
        return str(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def _coerce_created_at(cls, value: Any) -> datetime:
        if value is None or value == "":
            return _utcnow()
        try:
            parsed = _DATETIME.validate_python(value)
        except ValidationError:
            return _utcnow()
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    @field_validator("source", "agent", "team", mode="before")
    @classmethod
    def _coerce_label(cls, value: Any, info) -> str:
        if value is None or value == "":
            return _LABEL_DEFAULTS[info.field_name]
        return str(value)

    @field_validator("theme", "tv_snippet", "text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("sentiment", mode="before")
    @classmethod
    def _coerce_sentiment(cls, value: Any) -> Sentiment:
        try:
            return Sentiment(value)
        except ValueError:
            return Sentiment.NEUTRAL

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Status:
        try:
            return Status(value)
        except ValueError:
            return Status.PENDING

    @field_validator("rating", "manager_rating", mode="before")
    @classmethod
    def _coerce_rating(cls, value: Any) -> Optional[int]:
        return _optional_int(value, 1, 5)

    @field_validator("likes", mode="before")
    @classmethod
    def _coerce_likes(cls, value: Any) -> Optional[int]:
        return _optional_int(value, 0)

    @field_validator("keywords", mode="before")
    @classmethod
    def _coerce_keywords(cls, value: Any) -> List[str]:
        if isinstance(value, (set, frozenset)):
            return sorted(str(keyword) for keyword in value if keyword is not None)
        if not isinstance(value, (list, tuple)):
            return []
        return [str(keyword) for keyword in value if keyword is not None]

    @field_validator("reviewer_name", "reviewer_thumbnail", "reviewer_link", mode="before")
    @classmethod
    def _coerce_reviewer(cls, value: Any) -> Optional[str]:
        return str(value) if value else None

    def to_payload(self) -> dict:
        """JSON-ready dict with wire names; absent passthrough fields are omitted."""
        payload = self.model_dump(mode="json", by_alias=True)
        for key in PASSTHROUGH_FIELDS:
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload


class Agent(BaseModel):
    """Staff member that feedback can be attributed to."""
    id: str = Field(default_factory=_new_id)
    name: str = UNKNOWN
    team: str = UNKNOWN
    email: str = ""

    @field_validator("id", "name", "team", "email", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any, info) -> str:
        if value is None or value == "":
            return _new_id() if info.field_name == "id" else _AGENT_DEFAULTS[info.field_name]
        return str(value)


class BrandConfig(BaseModel):
    """Cosmetic branding; unknown keys are kept as-is."""
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1)
    primary: str = Field(..., min_length=1)

    @field_validator("name", "primary", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return value if value is None else str(value)


class StateSnapshot(BaseModel):
    """Complete dashboard state: brand, teams, agents and feedback items."""
    brand: BrandConfig
    teams: List[str] = Field(default_factory=list)
    agents: List[Agent] = Field(default_factory=list)
    items: List[FeedbackItem] = Field(default_factory=list)

    @field_validator("teams", mode="before")
    @classmethod
    def _coerce_teams(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [str(team) for team in value if team is not None]
        return value

    def find_item(self, item_id: str) -> Optional[FeedbackItem]:
        return next((item for item in self.items if item.id == item_id), None)

    def to_payload(self) -> dict:
        """Serialize to the persisted JSON shape."""
        return {
            "brand": self.brand.model_dump(mode="json"),
            "teams": list(self.teams),
            "agents": [agent.model_dump(mode="json") for agent in self.agents],
            "items": [item.to_payload() for item in self.items],
        }


class AgentRank(BaseModel):
    """Aggregated leaderboard row for one agent (or reviewer fallback key)."""
    agent: str
    team: str
    score: int
    count: int
    themes: List[str] = Field(default_factory=list)


class Leaderboards(BaseModel):
    """Weekly and monthly rankings plus TV highlights."""
    model_config = ConfigDict(populate_by_name=True)

    week_start: datetime = Field(..., alias="weekStart")
    month_start: datetime = Field(..., alias="monthStart")
    weekly_top: List[AgentRank] = Field(default_factory=list, alias="weeklyTop")
    monthly_top: List[AgentRank] = Field(default_factory=list, alias="monthlyTop")
    highlights: List[FeedbackItem] = Field(default_factory=list)


class OverviewStats(BaseModel):
    """Headline counts for the overview screen."""
    model_config = ConfigDict(populate_by_name=True)

    pending: int
    approved_count: int = Field(..., alias="approvedCount")
    negative_flagged: int = Field(..., alias="negativeFlagged")
    avg_sentiment: str = Field(..., alias="avgSentiment")


class ReviewBatch(BaseModel):
    """Batch of scraped reviews written by an external ingestion job."""
    model_config = ConfigDict(populate_by_name=True)

    scraped_at: Optional[datetime] = Field(default=None, alias="scrapedAt")
    business_name: Optional[str] = Field(default=None, alias="businessName")
    overall_rating: Optional[float] = Field(default=None, alias="overallRating")
    total_reviews: Optional[int] = Field(default=None, alias="totalReviews")
    reviews: List[FeedbackItem] = Field(default_factory=list)

    @field_validator("reviews", mode="before")
    @classmethod
    def _drop_non_objects(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            return value
        kept = [review for review in value if isinstance(review, (dict, FeedbackItem))]
        if len(kept) < len(value):
            logger.warning(f"Skipping {len(value) - len(kept)} review entries that are not objects")
        return kept
