"""Local editing core for a collaborative text editor."""

__all__ = [
    "adapters",
    "document",
    "editing",
    "presence",
    "runtime",
    "session",
]

__version__ = "0.1.0"
