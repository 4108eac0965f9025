"""Tools library for AWS Labelling scripts.

Provides the logging bootstrap and file helpers shared by the tool entry points.
"""

from tools.lib.bootstrap_utils import (
    LOG_LEVEL_ENV,
    setup_logging,
    write_text_if_changed,
)

__all__ = [
    "LOG_LEVEL_ENV",
    "setup_logging",
    "write_text_if_changed",
]
