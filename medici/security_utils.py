#!/usr/bin/env python3
"""
security_utils.py (Medici)

Safe credential loading, API key masking and URL validation for the
remote store client.
"""

from __future__ import annotations

import os
import re
import stat
import warnings
from pathlib import Path
from typing import Optional, Tuple


# ============================================================================
# Credential Loading (Safe - No exec())
# ============================================================================

class CredentialError(Exception):
    """Raised when a credentials file cannot be read."""
    pass


def load_credentials_file(cred_file: Path) -> Tuple[Optional[str], Optional[str]]:
    """
    Read API_URL / API_KEY from a credentials file without executing it.

    Supports formats:
    - API_KEY = "value" or API_KEY = 'value'
    - API_KEY=value (no quotes)
    - API_KEY: value (YAML-style)

    Returns:
        Tuple of (api_url, api_key); either may be None

    Raises:
        CredentialError: If the file cannot be read
    """
    cred_file = Path(cred_file)
    try:
        content = cred_file.read_text(encoding="utf-8")
    except OSError as e:
        raise CredentialError(f"Cannot read credentials file {cred_file}: {e}")

    check_file_permissions(cred_file)

    api_key = _find_value("API_KEY", content)
    api_url = _find_value("API_URL", content)
    return (api_url.rstrip("/") if api_url else None), api_key


def _find_value(name: str, content: str) -> Optional[str]:
    patterns = [
        # Python-style: NAME = "value" or NAME = 'value'
        rf'{name}\s*=\s*["\']([^"\']+)["\']',
        # No quotes: NAME = value
        rf'{name}\s*=\s*(\S+)',
        # YAML-style: NAME: value
        rf'{name}\s*:\s*["\']?([^"\'\n]+)["\']?',
    ]
    for pattern in patterns:
        match = re.search(pattern, content)
        if match:
            return match.group(1).strip()
    return None


def check_file_permissions(file_path: Path) -> bool:
    """
    Warn if a credentials file is readable by group/others.

    Returns:
        True if permissions are secure, False otherwise
    """
    try:
        mode = os.stat(file_path).st_mode
    except OSError:
        # Can't check permissions (e.g., Windows)
        return True

    is_secure = not (mode & (stat.S_IRWXG | stat.S_IRWXO))
    if not is_secure:
        warnings.warn(
            f"Credentials file has insecure permissions: {file_path}\n"
            f"Fix with: chmod 600 {file_path}",
            UserWarning,
        )
    return is_secure


# ============================================================================
# API Key Masking for Logs
# ============================================================================

def mask_sensitive(value: Optional[str], visible_chars: int = 4) -> str:
    """
    Mask a sensitive value for safe logging, e.g. "abc1****xyz9".
    """
    if not value or len(value) <= visible_chars * 2:
        return "****"
    return f"{value[:visible_chars]}****{value[-visible_chars:]}"


# ============================================================================
# Input Validation
# ============================================================================

def validate_url(url: str) -> str:
    """
    Validate and normalize a URL.

    Raises:
        ValueError: If URL is invalid
    """
    if not url:
        raise ValueError("URL cannot be empty")

    url = url.strip()

    if not url.startswith(('http://', 'https://')):
        raise ValueError(f"URL must start with http:// or https://: {url}")

    if '..' in url or '\x00' in url:
        raise ValueError(f"Invalid URL: {url}")

    return url.rstrip('/')
