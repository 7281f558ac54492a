"""
VEHICLE CLASS REGISTRY
Stable display colour and series key per vehicle class

RULES:
- Classes ordered by id, colours cycle through the palette
- More classes than colours means colours repeat
- Keys are derived from the class name with all whitespace removed
- Keys are unique within a registry: a class whose key is already taken
  by a lower id gets its own id appended
"""

from typing import Callable, Dict, Iterable, List, Optional, Sequence

from fleet_timeline.domain.models import ClassLegendEntry, VehicleClass


# Palette used by the historical occupancy chart
HISTORY_PALETTE: Sequence[str] = (
    "#04a96d", "#1c3151", "#2463eb", "#ff7f0e", "#ffbb78", "#d62728", "#ff9896",
    "#9467bd", "#c5b0d5", "#8c564b", "#c49c94", "#e377c2", "#f7b6d2", "#7f7f7f",
    "#c7c7c7", "#bcbd22", "#dbdb8d", "#17becf", "#9edae5",
)

# Palette used by the current-stock chart
STOCK_PALETTE: Sequence[str] = (
    "#1c3151", "#ff7f0e", "#2463eb", "#04a96d", "#ffbb78", "#d62728", "#ff9896",
    "#9467bd", "#c5b0d5", "#8c564b", "#c49c94", "#e377c2", "#f7b6d2", "#7f7f7f",
    "#c7c7c7", "#bcbd22", "#dbdb8d", "#17becf", "#9edae5",
)

SERIES_KEY_PREFIX = "totalClass"
STOCK_KEY_PREFIX = "class_"


def _compact(name: str) -> str:
    return "".join(name.split())


def series_key_for(name: str) -> str:
    """'Big Scooter' -> 'totalClassBigScooter'"""
    return f"{SERIES_KEY_PREFIX}{_compact(name)}"


def stock_key_for(name: str) -> str:
    """'Big Scooter' -> 'class_bigscooter'"""
    return f"{STOCK_KEY_PREFIX}{_compact(name).lower()}"


def _unique_keys(classes: Sequence[VehicleClass], key_for: Callable[[str], str]) -> Dict[int, str]:
    keys: Dict[int, str] = {}
    taken = set()
    for vehicle_class in classes:
        key = key_for(vehicle_class.name)
        while key in taken:
            key = f"{key}_{vehicle_class.id}"
        taken.add(key)
        keys[vehicle_class.id] = key
    return keys


class VehicleClassRegistry:
    """
    Vehicle Class Registry
    Assigns each class a position, a colour and its keys
    """

    def __init__(
        self,
        classes: Iterable[VehicleClass],
        palette: Sequence[str] = HISTORY_PALETTE,
    ):
        if not palette:
            raise ValueError("Palette must contain at least one colour")
        self.palette = tuple(palette)
        self._classes: List[VehicleClass] = sorted(classes, key=lambda c: c.id)
        self._index: Dict[int, int] = {c.id: i for i, c in enumerate(self._classes)}
        self._series_keys = _unique_keys(self._classes, series_key_for)
        self._stock_keys = _unique_keys(self._classes, stock_key_for)

    def __len__(self) -> int:
        return len(self._classes)

    def __contains__(self, class_id: object) -> bool:
        return class_id in self._index

    @property
    def class_ids(self) -> List[int]:
        """Known class ids in registry order"""
        return [c.id for c in self._classes]

    def index_of(self, class_id: Optional[int]) -> Optional[int]:
        """Position of a class in the registry, None if unknown"""
        if class_id is None:
            return None
        return self._index.get(class_id)

    def color_for(self, class_id: int) -> str:
        position = self._index[class_id]
        return self.palette[position % len(self.palette)]

    def legend(self) -> List[ClassLegendEntry]:
        """Legend entries in registry order"""
        return [
            ClassLegendEntry(
                id=vehicle_class.id,
                name=vehicle_class.name,
                color=self.palette[position % len(self.palette)],
                series_key=self._series_keys[vehicle_class.id],
                stock_key=self._stock_keys[vehicle_class.id],
            )
            for position, vehicle_class in enumerate(self._classes)
        ]

    def series_keys(self) -> Dict[int, str]:
        """class id -> series key"""
        return dict(self._series_keys)
