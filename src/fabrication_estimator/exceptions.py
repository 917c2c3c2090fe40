from __future__ import annotations


class EstimatorError(Exception):
    """Base class for errors raised outside the pure calculation core."""


class EstimateNotFoundError(EstimatorError):
    def __init__(self, estimate_id: str) -> None:
        super().__init__(f"Estimate not found: {estimate_id}")
        self.estimate_id = estimate_id


class LineItemNotFoundError(EstimatorError):
    def __init__(self, estimate_id: str, row_id: str) -> None:
        super().__init__(f"Line item {row_id} not found in estimate {estimate_id}")
        self.estimate_id = estimate_id
        self.row_id = row_id


class FileParseError(EstimatorError):
    """An uploaded file could not be turned into line items."""


__all__ = ["EstimateNotFoundError", "EstimatorError", "FileParseError", "LineItemNotFoundError"]
