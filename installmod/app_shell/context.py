from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from installmod.adapters.change_feed import InMemoryChangeFeed
from installmod.adapters.clock import SystemClock
from installmod.adapters.media import BucketMediaResolver
from installmod.adapters.memory_repo import InMemoryContentRepo
from installmod.adapters.sqlite.repos import SQLiteContentRepo
from installmod.core.services.associations import AssociationService
from installmod.core.services.comments import CommentService
from installmod.core.services.content import ContentService
from installmod.core.services.curation import CurationService
from installmod.core.services.error_log import ErrorLogService
from installmod.core.services.publish import PublishService
from installmod.core.services.publishers import PublisherService
from installmod.core.services.search import SearchService
from installmod.core.services.sitemap import SitemapService
from installmod.core.services.slugs import SlugResolver
from installmod.core.services.task_popup import TaskPopupService
from installmod.core.services.taxonomy import TaxonomyService
from installmod.core.services.versions import VersionTrail
from installmod.rules.models import Rules

if TYPE_CHECKING:
    from installmod.ports.clock import ClockPort
    from installmod.ports.events import ChangeFeedPort
    from installmod.ports.media import MediaResolverPort
    from installmod.ports.repo import ContentRepoPort


@dataclass
class ServiceContext:
    content_service: ContentService
    publish_service: PublishService
    association_service: AssociationService
    version_trail: VersionTrail
    taxonomy_service: TaxonomyService
    search_service: SearchService
    curation_service: CurationService
    comment_service: CommentService
    error_log_service: ErrorLogService
    sitemap_service: SitemapService
    publisher_service: PublisherService
    task_popup_service: TaskPopupService
    content_repo: ContentRepoPort
    media: MediaResolverPort
    change_feed: ChangeFeedPort
    clock: ClockPort
    rules: Rules

    @classmethod
    def create(cls, db_path: str, rules: Rules) -> ServiceContext:
        return cls.from_repo(SQLiteContentRepo(db_path), rules)

    @classmethod
    def in_memory(cls, rules: Rules, clock: ClockPort | None = None) -> ServiceContext:
        return cls.from_repo(InMemoryContentRepo(), rules, clock=clock)

    @classmethod
    def from_repo(
        cls,
        repo: ContentRepoPort,
        rules: Rules,
        clock: ClockPort | None = None,
    ) -> ServiceContext:
        clock = clock or SystemClock()
        feed = InMemoryChangeFeed()
        media = BucketMediaResolver(rules.media.public_base_url, rules.media.placeholder)

        slugs = SlugResolver(
            repo,
            max_attempts=rules.slugs.max_attempts,
            disambiguator_length=rules.slugs.disambiguator_length,
        )
        versions = VersionTrail(repo)
        associations = AssociationService(repo)

        content_service = ContentService(
            repo,
            clock,
            slugs,
            versions,
            associations,
            change_feed=feed,
            consistency=rules.publishing.consistency,
            schedule_grace_seconds=rules.publishing.schedule_grace_seconds,
        )

        return cls(
            content_service=content_service,
            publish_service=PublishService(repo, clock),
            association_service=associations,
            version_trail=versions,
            taxonomy_service=TaxonomyService(repo, clock, slugs),
            search_service=SearchService(repo, rules.search.default_limit),
            curation_service=CurationService(repo),
            comment_service=CommentService(repo, clock),
            error_log_service=ErrorLogService(repo),
            sitemap_service=SitemapService(repo, clock, rules.sitemap.base_url),
            publisher_service=PublisherService(repo, clock, slugs),
            task_popup_service=TaskPopupService(repo, clock),
            content_repo=repo,
            media=media,
            change_feed=feed,
            clock=clock,
            rules=rules,
        )
