"""Japanese vocabulary trainer with spaced repetition."""

__version__ = "0.1.0"
