"""
Exception types for the sales warehouse.

Row-level data problems never raise; they are resolved by fallback values and
surfaced by the quality checks. These exceptions cover environment-level
failures only.
"""


class WarehouseError(Exception):
    """Base exception for all warehouse errors."""
    pass


class BronzeIngestionError(WarehouseError):
    """Raised when a source extract cannot be loaded into the bronze layer."""

    def __init__(self, table: str, reason: str):
        self.table = table
        self.reason = reason
        super().__init__(f"Cannot ingest bronze table '{table}': {reason}")


class BatchLoadError(WarehouseError):
    """Raised on request when a silver batch did not fully succeed."""

    def __init__(self, result):
        self.result = result
        failure = result.failure
        if failure is not None:
            message = (
                f"Silver batch {result.status.value}: table '{failure.table}' failed "
                f"({failure.state}, code {failure.code}): {failure.message}"
            )
        else:
            message = f"Silver batch {result.status.value}"
        super().__init__(message)
