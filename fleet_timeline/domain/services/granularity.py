"""
GRANULARITY AGGREGATOR
Re-buckets the daily series into day / week / month / year buckets

RULES:
- total_fleet, total_stock: value of the bucket's last day (snapshot)
- total_rented, rented_by_class, rented_unclassified: summed over the
  bucket's days (occupancy-days, not a snapshot)
- Weeks are ISO weeks keyed by ISO year, so a week spanning New Year
  stays one bucket
- An empty selection gives an empty series
"""

import logging
from datetime import date
from typing import Iterable, List, Optional, Union

import pandas as pd

from fleet_timeline.domain.errors import InvalidDateRange
from fleet_timeline.domain.models import AggregatedRecord, DailyRecord, Granularity

logger = logging.getLogger(__name__)

_CLASS_COLUMN = "class_{}"


def bucket_key(day: date, granularity: Granularity) -> str:
    if granularity is Granularity.YEAR:
        return f"{day.year:04d}"
    if granularity is Granularity.MONTH:
        return f"{day.year:04d}-{day.month:02d}"
    if granularity is Granularity.WEEK:
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year:04d}-W{iso_week:02d}"
    return day.isoformat()


def bucket_label(day: date, granularity: Granularity) -> str:
    if granularity is Granularity.YEAR:
        return f"{day.year}"
    if granularity is Granularity.MONTH:
        return day.strftime("%b %y")
    if granularity is Granularity.WEEK:
        iso_year, iso_week, _ = day.isocalendar()
        return f"Week {iso_week}, {iso_year}"
    return day.strftime("%b %d, '%y")


def filter_range(
    records: Iterable[DailyRecord],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[DailyRecord]:
    """Records inside [date_from, date_to], sorted by date; open bounds allowed"""
    if date_from is not None and date_to is not None and date_from > date_to:
        raise InvalidDateRange(date_from, date_to)
    selected = [
        r for r in records
        if (date_from is None or r.date >= date_from)
        and (date_to is None or r.date <= date_to)
    ]
    return sorted(selected, key=lambda r: r.date)


class GranularityAggregator:
    """
    Granularity Aggregator
    Buckets a daily series for charting
    """

    def aggregate(
        self,
        records: Iterable[DailyRecord],
        granularity: Union[Granularity, str],
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[AggregatedRecord]:
        """
        Aggregate daily records

        Args:
            records: Daily series
            granularity: day, week, month or year
            date_from: Optional inclusive lower bound, applied before bucketing
            date_to: Optional inclusive upper bound, applied before bucketing

        Returns:
            One AggregatedRecord per bucket, chronological

        Raises:
            InvalidGranularity: If granularity is not recognised
            InvalidDateRange: If date_from is after date_to
        """
        granularity = Granularity.parse(granularity)
        selected = filter_range(records, date_from, date_to)

        if not selected:
            return []

        if granularity is Granularity.DAY:
            return [self._from_day(record) for record in selected]

        return self._bucket(selected, granularity)

    @staticmethod
    def _from_day(record: DailyRecord) -> AggregatedRecord:
        return AggregatedRecord(
            bucket_key=record.date.isoformat(),
            label=record.label,
            period_start=record.date,
            period_end=record.date,
            day_count=1,
            total_fleet=record.total_fleet,
            total_stock=record.total_stock,
            total_rented=record.total_rented,
            rented_by_class=dict(record.rented_by_class),
            rented_unclassified=record.rented_unclassified,
        )

    def _bucket(self, selected: List[DailyRecord], granularity: Granularity) -> List[AggregatedRecord]:
        class_ids = sorted({cid for record in selected for cid in record.rented_by_class})
        class_columns = [_CLASS_COLUMN.format(cid) for cid in class_ids]

        frame = pd.DataFrame(
            {
                "bucket": [bucket_key(r.date, granularity) for r in selected],
                "date": [r.date for r in selected],
                "total_fleet": [r.total_fleet for r in selected],
                "total_stock": [r.total_stock for r in selected],
                "total_rented": [r.total_rented for r in selected],
                "rented_unclassified": [r.rented_unclassified for r in selected],
                **{
                    column: [r.rented_by_class.get(cid, 0) for r in selected]
                    for cid, column in zip(class_ids, class_columns)
                },
            }
        )

        # Rows are date-sorted, so "last" is the bucket's last day
        summary = frame.groupby("bucket", sort=False).agg(
            period_start=("date", "min"),
            period_end=("date", "max"),
            day_count=("date", "size"),
            total_fleet=("total_fleet", "last"),
            total_stock=("total_stock", "last"),
            total_rented=("total_rented", "sum"),
            rented_unclassified=("rented_unclassified", "sum"),
            **{column: (column, "sum") for column in class_columns},
        )

        aggregated: List[AggregatedRecord] = []
        for key, row in summary.iterrows():
            aggregated.append(
                AggregatedRecord(
                    bucket_key=str(key),
                    label=bucket_label(row["period_start"], granularity),
                    period_start=row["period_start"],
                    period_end=row["period_end"],
                    day_count=int(row["day_count"]),
                    total_fleet=int(row["total_fleet"]),
                    total_stock=int(row["total_stock"]),
                    total_rented=int(row["total_rented"]),
                    rented_by_class={
                        cid: int(row[column]) for cid, column in zip(class_ids, class_columns)
                    },
                    rented_unclassified=int(row["rented_unclassified"]),
                )
            )

        logger.debug(
            "Aggregated %d day(s) into %d %s bucket(s)",
            len(selected), len(aggregated), granularity.value,
        )
        return aggregated
