"""
Exceptions raised by the variant engine.

Row-level problems are never raised; they are reported through
FailedVariant entries in a BatchReport. Only caller mistakes and
infrastructure faults use the exception channel.
"""


class VariantEngineError(Exception):
    """Base class for variant engine errors."""


class ConfigurationError(VariantEngineError):
    """The request itself is malformed; nothing was persisted."""


class CombinationLimitExceeded(ConfigurationError):
    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(
            f"Attribute groups would generate {count} combinations, "
            f"more than the limit of {limit}"
        )


class BatchTransactionError(VariantEngineError):
    """A creation transaction failed and was rolled back as a whole."""
