# fleet_timeline/reports/csv_export.py

"""
REPORTING - OCCUPANCY CSV EXPORT

One row per bucket: label, fleet, rented, stock, then one column per
vehicle class in legend order. Read-only.
"""

import csv
import logging
from typing import Iterable, List

import pandas as pd

from fleet_timeline.domain.models import AggregatedRecord, ClassLegendEntry

logger = logging.getLogger(__name__)

BASE_COLUMNS = ["Date", "Total Fleet", "Total Rented", "Total Stock"]


def build_export_frame(
    records: Iterable[AggregatedRecord],
    legend: List[ClassLegendEntry],
) -> pd.DataFrame:
    rows = [
        [
            record.label,
            record.total_fleet,
            record.total_rented,
            record.total_stock,
            *(record.rented_by_class.get(entry.id, 0) for entry in legend),
        ]
        for record in records
    ]
    return pd.DataFrame(rows, columns=BASE_COLUMNS + [entry.name for entry in legend])


def export_csv(
    records: Iterable[AggregatedRecord],
    legend: List[ClassLegendEntry],
) -> str:
    """Render the aggregated series as CSV text (labels always quoted)"""
    frame = build_export_frame(records, legend)
    logger.info("Exporting %d row(s) with %d class column(s)", len(frame), len(legend))
    return frame.to_csv(index=False, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
