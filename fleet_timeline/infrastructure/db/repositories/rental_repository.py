"""
Rental Repository
Bulk reads of rental intervals
"""

from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import func, or_, select

from fleet_timeline.domain.models import Rental
from fleet_timeline.infrastructure.db.models import RentalModel
from fleet_timeline.infrastructure.db.repositories.base import BaseRepository
from fleet_timeline.utils.time import as_day


class RentalRepository(BaseRepository):
    """Repository for Rental intervals"""

    async def list_intersecting(self, min_date: date, max_date: date) -> List[Rental]:
        """
        Get rentals covering at least one day of [min_date, max_date]

        Soft-deleted rentals are included: they still happened.

        Args:
            min_date: First day of the range
            max_date: Last day of the range

        Returns:
            List of Rentals
        """
        range_start = datetime.combine(min_date, time.min)
        range_end = datetime.combine(max_date + timedelta(days=1), time.min)

        result = await self._execute(
            "rentals.list_intersecting",
            select(
                RentalModel.id,
                RentalModel.vehicle_id,
                RentalModel.start_date,
                RentalModel.end_date,
            )
            .where(
                RentalModel.start_date < range_end,
                or_(RentalModel.end_date.is_(None), RentalModel.end_date >= range_start),
            )
            .order_by(RentalModel.id),
        )
        return [
            Rental(
                id=row.id,
                vehicle_id=row.vehicle_id,
                start_date=as_day(row.start_date),
                end_date=as_day(row.end_date),
            )
            for row in result.all()
        ]

    async def earliest_start_date(self) -> Optional[date]:
        """
        Get start day of the oldest rental

        Returns:
            Day or None when there are no rentals
        """
        result = await self._execute(
            "rentals.earliest_start_date",
            select(func.min(RentalModel.start_date)),
        )
        return as_day(result.scalar())
