"""Common utilities for ReportHub."""

from common.logger import setup_logging
from common.utils import utc_now

__all__ = [
    "setup_logging",
    "utc_now",
]
