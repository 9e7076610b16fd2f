"""
Sentry Error Tracking Module

Provides exception capture with build context for debugging failed steps.
"""

from .sentry import (
    init_sentry,
    add_breadcrumb,
    capture_exception,
)

__all__ = [
    'init_sentry',
    'add_breadcrumb',
    'capture_exception',
]
