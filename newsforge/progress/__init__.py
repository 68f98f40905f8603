"""Progress reporting for fetch runs."""

from newsforge.progress.broadcaster import ProgressBroadcaster, ProgressReporter
from newsforge.progress.schemas import ProgressEvent

__all__ = ["ProgressBroadcaster", "ProgressEvent", "ProgressReporter"]
