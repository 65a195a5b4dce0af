"""Notice board service: cached list, uncached detail, evicting writes.

Only the list is cached. Viewing a detail page increments its read count,
so serving details from cache would hand out pre-increment rows.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Protocol

from readthrough.cache import Cache
from readthrough.keys import SingletonKey
from readthrough.manager import CacheManager
from readthrough.types import CacheConfig, Duration

logger = logging.getLogger(__name__)

NOTICE_LIST_CACHE = "notice:list"
NOTICE_LIST_KEY = SingletonKey("notice_list")


@dataclass(frozen=True, slots=True)
class Notice:
    notice_seq: int | None
    title: str
    contents: str = ""
    user_id: str = ""
    read_cnt: int = 0
    notice_yn: bool = False


class NoticeRepository(Protocol):
    """Persistence the service delegates to."""

    def list_notices(self) -> Sequence[Notice]: ...

    def get_notice(self, notice_seq: int) -> Notice | None: ...

    def increment_read_count(self, notice_seq: int) -> None: ...

    def insert_notice(self, notice: Notice) -> None: ...

    def update_notice(self, notice: Notice) -> None: ...

    def delete_notice(self, notice_seq: int) -> None: ...

    def transaction(self) -> AbstractContextManager[object]:
        """Unit of work; commits on clean exit, rolls back on error."""
        ...


def register_notice_caches(caches: CacheManager, *, ttl: Duration = "60s") -> Cache:
    return caches.get_or_create_cache(
        NOTICE_LIST_CACHE,
        CacheConfig(ttl=ttl, value_type=tuple[Notice, ...]),
    )


class NoticeService:
    def __init__(self, repository: NoticeRepository, caches: CacheManager) -> None:
        self._repository = repository
        self._caches = caches
        register_notice_caches(caches)

    def get_notice_list(self) -> tuple[Notice, ...]:
        """All notices, served from ``notice:list`` while fresh."""
        cache = self._caches.require(NOTICE_LIST_CACHE)
        return cache.get_or_load(NOTICE_LIST_KEY(), self._load_notice_list)

    def _load_notice_list(self) -> tuple[Notice, ...]:
        logger.info("Loading notice list from repository")
        return tuple(self._repository.list_notices())

    def get_notice_info(self, notice_seq: int, count_view: bool) -> Notice | None:
        """One notice, always read from the repository.

        With ``count_view`` the read count is incremented first, in the same
        transaction, so the returned row already reflects this view.
        """
        with self._repository.transaction():
            if count_view:
                self._repository.increment_read_count(notice_seq)
            return self._repository.get_notice(notice_seq)

    def insert_notice_info(self, notice: Notice) -> None:
        with self._repository.transaction():
            self._repository.insert_notice(notice)
        self._caches.evict_all(NOTICE_LIST_CACHE)

    def update_notice_info(self, notice: Notice) -> None:
        with self._repository.transaction():
            self._repository.update_notice(notice)
        self._caches.evict_all(NOTICE_LIST_CACHE)

    def delete_notice_info(self, notice_seq: int) -> None:
        with self._repository.transaction():
            self._repository.delete_notice(notice_seq)
        self._caches.evict_all(NOTICE_LIST_CACHE)
