"""Fee-potential forecasts from open Jupiter limit orders."""

from .forecast import FeeForecastService, build_default_service
from .models import FeeForecast, NormalizedOrder, OrderBucket, ParsedOrder, Side

__version__ = "0.1.0"

__all__ = [
    "FeeForecastService",
    "build_default_service",
    "FeeForecast",
    "NormalizedOrder",
    "OrderBucket",
    "ParsedOrder",
    "Side",
]
