"""Shared utilities for the translations service."""

from transfilter.utils.auth import (
    token_required,
    token_optional,
    decode_token,
    issue_token,
)

__all__ = [
    'token_required',
    'token_optional',
    'decode_token',
    'issue_token',
]
