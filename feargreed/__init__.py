"""feargreed - daily Fear & Greed index tracker."""

from feargreed.core.exceptions import FearGreedError, StoreError
from feargreed.core.models import IndexRecord
from feargreed.core.tracker import FearGreedTracker

__version__ = "0.1.0"

__all__ = ["FearGreedError", "FearGreedTracker", "IndexRecord", "StoreError", "__version__"]
