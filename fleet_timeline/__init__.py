"""Fleet occupancy timeline: daily fleet size, on-rent counts and stock."""

__version__ = "1.0.0"
