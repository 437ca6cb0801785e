"""Data models for readings and rangefinder state."""

from .reading import Aggregator, StalenessMonitor, reduce
from .state import RangeState, RangeStatus, StatusSink
