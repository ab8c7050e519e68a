from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bakery.domain.errors import PersistenceError
from bakery.infrastructure.db.retry import is_deadlock_error


class SQLRepository:
    """
    Base for the SQL repositories: one shared session per request.

    Driver errors become ``PersistenceError`` except integrity violations,
    which subclasses translate themselves, and deadlocks, which the retry
    helpers handle.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _execute(self, stmt, operation: str):
        try:
            return await self._session.execute(stmt)
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            if is_deadlock_error(exc):
                raise
            raise PersistenceError(operation, str(exc.__class__.__name__)) from exc
