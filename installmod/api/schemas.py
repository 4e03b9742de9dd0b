from datetime import date, datetime, time
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

ContentStatus = Literal["draft", "scheduled", "published"]


# --- Scheduling ---
class ScheduleRequest(BaseModel):
    """Calendar date and wall-clock time in an explicit zone."""

    date: date
    time: time
    timezone: str | None = None


# --- Content ---
class ContentWriteBase(BaseModel):
    # Kind-specific fields (version, size, content, excerpt...) pass through.
    model_config = ConfigDict(extra="allow")

    status: ContentStatus | None = None
    scheduled_at: datetime | None = None
    schedule: ScheduleRequest | None = None
    associations: dict[str, list[Any]] | None = None


class ContentCreateRequest(ContentWriteBase):
    title: str


class ContentUpdateRequest(ContentWriteBase):
    title: str | None = None


class TransitionRequest(BaseModel):
    status: ContentStatus
    scheduled_at: datetime | None = None
    schedule: ScheduleRequest | None = None


class SaveResponse(BaseModel):
    record: dict[str, Any]
    version_number: int | None = None
    associations: dict[str, list[dict[str, Any]]] = {}
    warnings: list[str] = []


class AssociationReplaceRequest(BaseModel):
    items: list[Any] = []


class IconColorRequest(BaseModel):
    color: str | None = None


class VersionResponse(BaseModel):
    id: UUID
    record_id: UUID
    version_number: int
    title: str
    content: str
    excerpt: str
    created_at: datetime
    created_by: UUID | None = None


# --- Taxonomy ---
class CategoryRequest(BaseModel):
    name: str
    type: Literal["app", "game", "blog", "faq"]
    description: str = ""


class TagRequest(BaseModel):
    name: str


# --- Publishers ---
class PublisherRequest(BaseModel):
    name: str
    description: str = ""
    website: str = ""


class PublisherUpdateRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    website: str | None = None


# --- Task popup ---
class TaskButtonRequest(BaseModel):
    id: str
    label: str
    url: str
    icon: Literal["telegram", "instagram", "youtube", "twitter", "facebook", "tiktok"] = "telegram"


class TaskPopupRequest(BaseModel):
    enabled: bool = False
    buttons: list[TaskButtonRequest] = []
    target_apps: list[UUID] | None = None
    remember_completion: bool = True


# --- Homepage ---
class HomepageItem(BaseModel):
    content_id: UUID
    content_type: Literal["app", "game"]


class HomepageListRequest(BaseModel):
    items: list[HomepageItem]


class HomepageMoveRequest(BaseModel):
    content_id: UUID
    offset: int


# --- Comments ---
class CommentCreateRequest(BaseModel):
    content_id: UUID
    content_type: Literal["app", "game", "blog"]
    name: str
    email: str
    message: str
    reply_to: UUID | None = None


# --- Error log ---
class ClientError(BaseModel):
    """One browser-side error; accepts the camelCase keys browsers send."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    stack: str | None = None
    component_name: str | None = Field(default=None, alias="componentName")
    url: str | None = None
    user_id: str | None = Field(default=None, alias="userId")
    timestamp: datetime | None = None
    severity: Literal["low", "medium", "high", "critical"] | None = None
    additional_data: dict[str, Any] | None = Field(default=None, alias="additionalData")


class ErrorBatchRequest(BaseModel):
    errors: list[ClientError] = []


# --- Sitemap ---
class SitemapEntryRequest(BaseModel):
    url: str
    priority: float = 0.5
    change_frequency: str = "weekly"
    include_in_sitemap: bool = True
    notes: str | None = None


class SitemapEntryUpdateRequest(BaseModel):
    url: str | None = None
    priority: float | None = None
    change_frequency: str | None = None
    include_in_sitemap: bool | None = None
    notes: str | None = None


class SitemapExclusionRequest(BaseModel):
    url_pattern: str
    reason: str | None = None
