"""Shared pytest fixtures."""

from collections.abc import Iterator
from contextlib import contextmanager

import pytest

from readthrough import AsyncCacheManager, CacheManager
from readthrough.notice import Notice


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeNoticeRepository:
    """In-memory NoticeRepository that records every call."""

    def __init__(self, notices: list[Notice] | None = None) -> None:
        self.rows: dict[int, Notice] = {n.notice_seq: n for n in notices or []}
        self.calls: list[str] = []
        self.fail_writes = False
        self.committed = 0
        self.rolled_back = 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        snapshot = dict(self.rows)
        try:
            yield
        except BaseException:
            self.rows = snapshot
            self.rolled_back += 1
            raise
        self.committed += 1

    def list_notices(self) -> list[Notice]:
        self.calls.append("list")
        return sorted(self.rows.values(), key=lambda n: n.notice_seq or 0, reverse=True)

    def get_notice(self, notice_seq: int) -> Notice | None:
        self.calls.append("get")
        return self.rows.get(notice_seq)

    def increment_read_count(self, notice_seq: int) -> None:
        self.calls.append("increment")
        row = self.rows[notice_seq]
        self.rows[notice_seq] = Notice(
            notice_seq=row.notice_seq,
            title=row.title,
            contents=row.contents,
            user_id=row.user_id,
            read_cnt=row.read_cnt + 1,
            notice_yn=row.notice_yn,
        )

    def _write(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_writes:
            raise RuntimeError(f"{name} failed")

    def insert_notice(self, notice: Notice) -> None:
        self._write("insert")
        seq = max(self.rows, default=0) + 1
        self.rows[seq] = Notice(notice_seq=seq, title=notice.title, contents=notice.contents)

    def update_notice(self, notice: Notice) -> None:
        self._write("update")
        assert notice.notice_seq is not None
        self.rows[notice.notice_seq] = notice

    def delete_notice(self, notice_seq: int) -> None:
        self._write("delete")
        del self.rows[notice_seq]


@pytest.fixture
def clock() -> FakeClock:
    """A fake clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def manager(clock: FakeClock) -> CacheManager:
    """A CacheManager driven by the fake clock."""
    return CacheManager(clock=clock)


@pytest.fixture
def async_manager(clock: FakeClock) -> AsyncCacheManager:
    """An AsyncCacheManager driven by the fake clock."""
    return AsyncCacheManager(clock=clock)


@pytest.fixture
def notices() -> list[Notice]:
    return [
        Notice(notice_seq=1, title="A", contents="first"),
        Notice(notice_seq=2, title="B", contents="second"),
        Notice(notice_seq=42, title="C", contents="answer", read_cnt=7),
    ]


@pytest.fixture
def repository(notices: list[Notice]) -> FakeNoticeRepository:
    return FakeNoticeRepository(notices)
