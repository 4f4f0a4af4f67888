"""
strict_csp - hash-based strict Content Security Policy for HTML documents
"""

__version__ = "0.1.0"

from strict_csp.core import StrictCsp, StrictCspResult, enable_strict_csp
from strict_csp.hasher import hash_inline_content
from strict_csp.logging_config import configure_logging
from strict_csp.policy import PolicyOptions, build_policy, parse_policy

__all__ = [
    'StrictCsp',
    'StrictCspResult',
    'PolicyOptions',
    'build_policy',
    'configure_logging',
    'enable_strict_csp',
    'hash_inline_content',
    'parse_policy',
]
