"""Storage engine errors."""


class EngineError(Exception):
    """An engine operation failed (bad schema, missing row, closed handle...)."""
