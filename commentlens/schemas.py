from __future__ import annotations
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .sentiment import Sentiment, normalize_sentiment

PostState = Literal["idle", "analyzing", "complete", "error"]
PlatformId = Literal["facebook", "instagram", "tiktok", "x", "linkedin"]

# folder order of every campaign
PLATFORMS: List[tuple[PlatformId, str]] = [
    ("facebook", "Facebook"),
    ("instagram", "Instagram"),
    ("tiktok", "TikTok"),
    ("x", "X (Twitter)"),
    ("linkedin", "LinkedIn"),
]

DEFAULT_CONFIDENCE = 0.9
DEFAULT_LABEL = "Other"
ERROR_TOPIC = "Error"
ERROR_THEME = "Unanalyzed"


def new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CommentRecord(BaseModel):
    """One classified comment. Serialized with the camelCase keys of the store."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=new_id)
    source_image: str = Field(alias="imageSource")
    text: str
    sentiment: Sentiment
    confidence: float = Field(ge=0.0, le=1.0)
    topic: str = DEFAULT_LABEL
    theme: str = DEFAULT_LABEL

    def to_store(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    @classmethod
    def fallback(cls, text: str, source_image: str) -> "CommentRecord":
        """Record for a comment whose classification failed."""
        return cls(
            source_image=source_image,
            text=text,
            sentiment="neutral",
            confidence=0.0,
            topic=ERROR_TOPIC,
            theme=ERROR_THEME,
        )


class ClassificationResponse(BaseModel):
    """
    Decoded classifier output. Every field is lenient: absent or malformed
    values map to the documented defaults instead of failing validation.
    """
    reasoning: str = ""
    sentiment: Sentiment = "neutral"
    confidence: float = DEFAULT_CONFIDENCE
    topic: str = DEFAULT_LABEL
    theme: str = DEFAULT_LABEL

    @field_validator("reasoning", mode="before")
    @classmethod
    def _reasoning(cls, v: Any) -> str:
        return v.strip() if isinstance(v, str) else ""

    @field_validator("sentiment", mode="before")
    @classmethod
    def _sentiment(cls, v: Any) -> Sentiment:
        return normalize_sentiment(v if isinstance(v, str) else None)

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, v: Any) -> float:
        if v is None or isinstance(v, bool):
            return DEFAULT_CONFIDENCE
        try:
            value = float(v)
        except (TypeError, ValueError):
            return DEFAULT_CONFIDENCE
        if value != value:  # NaN
            return DEFAULT_CONFIDENCE
        return min(1.0, max(0.0, value))

    @field_validator("topic", "theme", mode="before")
    @classmethod
    def _label(cls, v: Any) -> str:
        if isinstance(v, str) and v.strip():
            return v.strip()
        return DEFAULT_LABEL

    def to_record(self, text: str, source_image: str) -> CommentRecord:
        return CommentRecord(
            source_image=source_image,
            text=text,
            sentiment=self.sentiment,
            confidence=self.confidence,
            topic=self.topic,
            theme=self.theme,
        )


class AnalysisStats(BaseModel):
    total: int = 0
    positive: int = 0
    negative: int = 0
    neutral: int = 0
    themes: Dict[str, int] = Field(default_factory=dict)
    topics: Dict[str, int] = Field(default_factory=dict)


class ImageInput(BaseModel):
    """One uploaded screenshot."""
    name: str
    mime_type: str
    data: bytes


class Post(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    platform_id: PlatformId
    campaign_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    image_paths: List[str] = Field(default_factory=list)
    records: List[CommentRecord] = Field(default_factory=list)
    state: PostState = "idle"
    error: Optional[str] = None


class PlatformFolder(BaseModel):
    id: PlatformId
    name: str
    posts: List[Post] = Field(default_factory=list)

    @property
    def records(self) -> List[CommentRecord]:
        return [r for post in self.posts for r in post.records]


def default_folders() -> List[PlatformFolder]:
    return [PlatformFolder(id=pid, name=name) for pid, name in PLATFORMS]


class Campaign(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    created_at: datetime = Field(default_factory=_utcnow)
    folders: List[PlatformFolder] = Field(default_factory=default_folders)

    def folder(self, platform_id: str) -> PlatformFolder:
        for f in self.folders:
            if f.id == platform_id:
                return f
        raise KeyError(platform_id)
