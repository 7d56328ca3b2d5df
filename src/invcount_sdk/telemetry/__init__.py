from .events import TELEMETRY_CATEGORIES, TelemetryEvent, build_event, outcome_category
from .logger import TelemetryLogger

__all__ = ["TELEMETRY_CATEGORIES", "TelemetryEvent", "TelemetryLogger", "build_event", "outcome_category"]
