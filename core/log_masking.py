"""
Log masking processor to keep credentials out of logs.
"""

import re
from typing import Any, Dict


# Patterns for sensitive data, compiled once
SENSITIVE_PATTERNS = [
    # API keys
    (re.compile(r'(?i)(api[_-]?key["\']?\s*[:=]\s*["\']?)([^"\'\s,}]+)'), r'\1***MASKED***'),
    (re.compile(r'(?i)(x-api-key["\']?\s*[:=]\s*["\']?)([^"\'\s,}]+)'), r'\1***MASKED***'),

    # Database passwords
    (re.compile(r'(?i)(password["\']?\s*[:=]\s*["\']?)([^"\'\s,}]+)'), r'\1***MASKED***'),

    # Database URLs with passwords
    (re.compile(r'(postgresql(?:\+\w+)?://[^:/@]+:)([^@]+)(@)'), r'\1***MASKED***\3'),
    (re.compile(r'(redis://[^:/@]*:)([^@]+)(@)'), r'\1***MASKED***\3'),

    # Bearer tokens and secrets
    (re.compile(r'(?i)(bearer\s+)([A-Za-z0-9\-._~+/]+)'), r'\1***MASKED***'),
    (re.compile(r'(?i)(secret["\']?\s*[:=]\s*["\']?)([^"\'\s,}]+)'), r'\1***MASKED***'),
]

# Keys whose values are always masked
SENSITIVE_KEYS = [
    'api_key', 'apikey', 'password', 'database_password', 'secret', 'token', 'authorization',
]


def _is_sensitive_key(key: str) -> bool:
    key_lower = key.lower().replace('_', '').replace('-', '')
    return any(
        sensitive_key.replace('_', '') in key_lower
        for sensitive_key in SENSITIVE_KEYS
    )


def mask_string(text: str) -> str:
    """
    Mask sensitive data in a string.

    Args:
        text: Text to mask

    Returns:
        Masked text
    """
    if not isinstance(text, str):
        return text

    masked = text
    for pattern, replacement in SENSITIVE_PATTERNS:
        masked = pattern.sub(replacement, masked)

    return masked


def mask_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Mask sensitive values in a dictionary, recursing into nested containers."""
    masked = {}
    for key, value in data.items():
        if isinstance(key, str) and _is_sensitive_key(key) and value is not None:
            masked[key] = mask_dict(value) if isinstance(value, dict) else "***MASKED***"
        else:
            masked[key] = mask_log_data(value)

    return masked


def mask_log_data(data: Any) -> Any:
    """
    Mask sensitive data in log data (handles dict, list, str, or other types).

    Args:
        data: Data to mask

    Returns:
        Masked data
    """
    if isinstance(data, dict):
        return mask_dict(data)
    elif isinstance(data, (list, tuple)):
        return [mask_log_data(item) for item in data]
    elif isinstance(data, str):
        return mask_string(data)
    else:
        return data
