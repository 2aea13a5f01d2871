from .models import InputSnapshot
from .extractor import extract_snapshot
from .validation import MissingFieldError

__all__ = [
    "InputSnapshot",
    "extract_snapshot",
    "MissingFieldError",
]
