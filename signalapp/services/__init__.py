"""Application services."""

from signalapp.services.analysis_service import (
    AnalysisService,
    BatchResult,
    MarketSummary,
    summarize,
)

__all__ = ["AnalysisService", "BatchResult", "MarketSummary", "summarize"]
