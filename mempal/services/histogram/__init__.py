"""Fee histogram aggregation package."""

from .aggregator import aggregate, classify
from .models import ColorBand, FeeRange, FeeSample, RangeEntry

__all__ = ["aggregate", "classify", "ColorBand", "FeeRange", "FeeSample", "RangeEntry"]
