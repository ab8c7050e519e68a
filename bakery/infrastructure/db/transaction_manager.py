from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from bakery.application.interfaces.transaction_manager import TransactionManager


class SQLAlchemyTransactionManager(TransactionManager):
    """
    One unit of work per outermost ``start()``.

    Nested ``start()`` calls join the running unit. A transaction that was
    autobegun by earlier reads is committed (or rolled back) here as well.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._depth = 0

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        if self._depth:
            yield
            return

        self._depth += 1
        try:
            if self._session.in_transaction():
                try:
                    yield
                except BaseException:
                    await self._session.rollback()
                    raise
                await self._session.commit()
            else:
                async with self._session.begin():
                    yield
        finally:
            self._depth -= 1
