"""
Shared repository plumbing
Every read goes through _execute so driver errors surface as DataSourceError
"""

import logging

from sqlalchemy.engine import Result
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from fleet_timeline.domain.errors import DataSourceError

logger = logging.getLogger(__name__)


class BaseRepository:
    """Base for read repositories"""

    def __init__(self, session: AsyncSession):
        """Initialize with database session"""
        self.session = session

    async def _execute(self, operation: str, statement: Executable) -> Result:
        try:
            return await self.session.execute(statement)
        except SQLAlchemyError as exc:
            logger.error("%s failed: %s", operation, exc)
            raise DataSourceError(operation, type(exc).__name__) from exc
