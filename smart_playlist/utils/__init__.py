# smart_playlist/utils/__init__.py
"""
Utilities package
Logging setup and small value helpers
"""

from .logger import (
    get_logger,
    configure_from_settings,
    setup_logging,
    OperationLogger,
    create_operation_logger,
    get_current_log_file
)
from .helpers import (
    parse_bool,
    to_number,
    parse_release_date,
    format_duration,
    chunked
)

__all__ = [
    # Logger exports
    'get_logger',
    'configure_from_settings',
    'setup_logging',
    'OperationLogger',
    'create_operation_logger',
    'get_current_log_file',

    # Helper exports
    'parse_bool',
    'to_number',
    'parse_release_date',
    'format_duration',
    'chunked'
]
