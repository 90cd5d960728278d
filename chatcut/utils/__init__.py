"""
Utility functions for ChatCut.
"""

from .utils import clamp, format_ruler_label, format_time, format_time_detailed
from .logging_utils import DualLogger, get_log_helper, get_logger

__all__ = [
    'clamp', 'format_ruler_label', 'format_time', 'format_time_detailed',
    'DualLogger', 'get_log_helper', 'get_logger'
]
