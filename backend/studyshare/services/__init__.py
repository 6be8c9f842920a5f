"""
Services Module

Query and mutation services used by the HTTP routers:
- ResourceService: listings, detail, downloads, owner-only edits
- RatingService: rating upsert/delete with aggregate recomputation
- FavoriteService / TagService: idempotent association tables
- StatsService: dashboard, contributors and trending folds
- UserService: upsert on first login, local accounts
- FileStorage: upload validation and on-disk storage

One Services container is built per application (see studyshare.main) and
handed to request handlers through the get_services dependency.
"""
from dataclasses import dataclass

from studyshare.config import Settings

from .associations import FavoriteService, TagService
from .file_storage import FileStorage, StoredFile
from .ratings import RatingService, refresh_rating_aggregate
from .resources import ResourceService
from .stats import StatsService
from .users import UserService


@dataclass
class Services:
    """Everything a request handler may need, constructed once at startup."""
    settings: Settings
    users: UserService
    resources: ResourceService
    ratings: RatingService
    favorites: FavoriteService
    tags: TagService
    stats: StatsService
    files: FileStorage


def build_services(settings: Settings) -> Services:
    tags = TagService()
    return Services(
        settings=settings,
        users=UserService(),
        resources=ResourceService(tags),
        ratings=RatingService(),
        favorites=FavoriteService(),
        tags=tags,
        stats=StatsService(),
        files=FileStorage(
            root=settings.upload_dir,
            max_bytes=settings.max_upload_bytes,
            allowed_types=settings.allowed_file_types,
        ),
    )


__all__ = [
    "Services",
    "build_services",
    "FavoriteService",
    "TagService",
    "FileStorage",
    "StoredFile",
    "RatingService",
    "refresh_rating_aggregate",
    "ResourceService",
    "StatsService",
    "UserService",
]
