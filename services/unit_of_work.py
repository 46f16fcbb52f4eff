"""Unit of work with an explicit post-commit callback queue.

Full URL syncs must read committed entity state, so services queue them with
after_commit() while the entity write is still open, then commit() runs them
in order once the write transaction is durable. A rollback drops the queue.
"""

import logging
from typing import Any, Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

PostCommitCallback = Callable[[], Awaitable[Any]]


class UnitOfWork:
    """Wraps an AsyncSession for one entity write."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._after_commit: list[PostCommitCallback] = []
        self.results: list[Any] = []

    def after_commit(self, callback: PostCommitCallback) -> None:
        self._after_commit.append(callback)

    @property
    def pending_callbacks(self) -> int:
        return len(self._after_commit)

    async def commit(self) -> list[Any]:
        """
        Commit the write transaction, then run queued callbacks sequentially.

        Callbacks run after the commit; an exception from one stops the rest
        and propagates, while the committed write stays committed.

        Returns:
            Callback results in queue order
        """
        await self.session.commit()

        callbacks, self._after_commit = self._after_commit, []
        for callback in callbacks:
            self.results.append(await callback())

        return self.results

    async def rollback(self) -> None:
        if self._after_commit:
            logger.debug("Dropping %d post-commit callback(s) on rollback", len(self._after_commit))
        self._after_commit = []
        await self.session.rollback()

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            await self.rollback()
