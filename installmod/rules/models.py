from typing import Literal

from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class SlugRules(BaseModel):
    max_attempts: int = Field(default=5, ge=1, le=20)
    disambiguator_length: int = Field(default=8, ge=4, le=32)


class PublishingRules(BaseModel):
    consistency: Literal["transactional", "best_effort"] = "transactional"
    display_timezone: str = "UTC"
    sweep_interval_seconds: float = Field(default=60.0, gt=0)
    schedule_grace_seconds: int = Field(default=0, ge=0)


class MediaRules(BaseModel):
    public_base_url: str
    placeholder: str = "/placeholder.svg"
    buckets: dict[str, str] = Field(default_factory=dict)


class SearchRules(BaseModel):
    default_limit: int = Field(default=5, ge=1, le=50)


class SitemapRules(BaseModel):
    base_url: str


class Rules(BaseModel):
    project: ProjectRules
    slugs: SlugRules = Field(default_factory=SlugRules)
    publishing: PublishingRules = Field(default_factory=PublishingRules)
    media: MediaRules
    search: SearchRules = Field(default_factory=SearchRules)
    sitemap: SitemapRules
