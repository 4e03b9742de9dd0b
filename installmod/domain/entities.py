from datetime import UTC, datetime
from typing import Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

# --- Enums / Literals ---
ContentKind = Literal["app", "game", "blog"]
ContentStatus = Literal["draft", "published", "scheduled"]
CategoryType = Literal["app", "game", "blog", "faq"]
CommentStatus = Literal["pending", "approved", "rejected"]
ErrorSeverity = Literal["low", "medium", "high", "critical"]
HomepageList = Literal["trending", "latest"]
ChangeFrequency = Literal["always", "hourly", "daily", "weekly", "monthly", "yearly", "never"]

KIND_TABLES: dict[str, str] = {
    "app": "apps",
    "game": "games",
    "blog": "blogs",
}

# Apps and games are never scheduled; only blog posts carry scheduled_at.
KIND_STATUSES: dict[str, tuple[str, ...]] = {
    "app": ("draft", "published"),
    "game": ("draft", "published"),
    "blog": ("draft", "published", "scheduled"),
}

VERSIONED_KINDS = frozenset({"blog"})
VERSIONED_FIELDS = ("title", "content", "excerpt")


def utcnow() -> datetime:
    return datetime.now(UTC)


# --- Content ---

class SeoFields(BaseModel):
    meta_title: str = ""
    meta_description: str = ""
    meta_keywords: str = ""
    og_title: str = ""
    og_description: str = ""
    og_type: str = ""
    og_url: str = ""
    og_image: str = ""
    twitter_title: str = ""
    twitter_description: str = ""
    twitter_card: str = ""
    twitter_image: str = ""


class ContentRecord(SeoFields):
    id: UUID = Field(default_factory=uuid4)
    title: str
    slug: str = ""
    status: ContentStatus = "draft"

    scheduled_at: datetime | None = None
    published_at: datetime | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class PackageRecord(ContentRecord):
    """An app or a game."""

    version: str = ""
    size: str = ""
    publisher: str = ""
    requirements: str = ""
    category_id: UUID | None = None
    description: str = ""
    mod_info: str = ""
    google_play_link: str = ""
    icon_url: str = ""
    icon_bg_color: str | None = None
    download_url: str = ""
    download_count: int = 0


class BlogPost(ContentRecord):
    content: str = ""
    excerpt: str = ""
    category_id: UUID | None = None
    featured_image: str = ""
    author_id: UUID | None = None
    publisher: str = ""
    read_time: int = 0
    view_count: int = 0


RECORD_MODELS: dict[str, type[ContentRecord]] = {
    "app": PackageRecord,
    "game": PackageRecord,
    "blog": BlogPost,
}


class Version(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    record_id: UUID
    version_number: int
    title: str
    content: str = ""
    excerpt: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    created_by: UUID | None = None


# --- Dependent associations ---

class Association(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    content_id: UUID
    content_type: ContentKind
    position: int | None = None
    created_at: datetime = Field(default_factory=utcnow)


class ModFeature(Association):
    feature: str


class Screenshot(Association):
    url: str


class BlogTag(Association):
    tag_id: UUID


class RelatedContent(Association):
    related_id: UUID
    related_type: Literal["app", "game"]


# --- Taxonomy ---

class Category(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    slug: str
    type: CategoryType
    description: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Tag(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    slug: str
    created_at: datetime = Field(default_factory=utcnow)


# --- Storefront ---

class Comment(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    content_id: UUID
    content_type: ContentKind
    name: str
    email: str
    message: str
    status: CommentStatus = "pending"
    reply_to: UUID | None = None
    created_at: datetime = Field(default_factory=utcnow)


class HomepageFeature(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    list_name: HomepageList
    content_id: UUID
    content_type: Literal["app", "game"]
    position: int
    created_at: datetime = Field(default_factory=utcnow)


class ErrorLogEntry(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    message: str
    stack: str | None = None
    component_name: str | None = None
    url: str | None = None
    user_id: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)
    severity: ErrorSeverity = "low"
    additional_data: dict[str, Any] = Field(default_factory=dict)


class SitemapEntry(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    url: str
    priority: float = Field(default=0.5, ge=0.0, le=1.0)
    change_frequency: ChangeFrequency = "weekly"
    last_modified: datetime = Field(default_factory=utcnow)
    include_in_sitemap: bool = True
    notes: str | None = None


class SitemapExclusion(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    url_pattern: str
    reason: str | None = None


class Publisher(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    slug: str
    description: str = ""
    website: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# --- Task-gated downloads ---

TaskIcon = Literal["telegram", "instagram", "youtube", "twitter", "facebook", "tiktok"]
TASK_POPUP_ID = "task-popup-config"


class TaskButton(BaseModel):
    id: str
    label: str = Field(min_length=1)
    url: str
    icon: TaskIcon = "telegram"


class TaskPopupConfig(BaseModel):
    """Site-wide popup of tasks a visitor completes before a download starts."""

    id: str = TASK_POPUP_ID
    enabled: bool = False
    buttons: list[TaskButton] = Field(default_factory=list)
    # None targets every app; a list limits the popup to those apps.
    target_apps: list[UUID] | None = None
    remember_completion: bool = True
    updated_at: datetime = Field(default_factory=utcnow)
