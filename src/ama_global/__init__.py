"""AMA Global: question-and-answer service with offline fallback."""

__version__ = "0.1.0"
