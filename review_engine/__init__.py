"""Contract review-state derivation engine.

Pure derivation services (anomalies, attention, review reasons, analytics)
over spreadsheet-shaped contract data, plus a thin CLI around them.
"""

from .services.pipeline import ReviewSnapshot, evaluate_dataset

__all__ = [
    "__version__",
    "ReviewSnapshot",
    "evaluate_dataset",
]

__version__ = "0.1.0"
