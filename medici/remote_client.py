#!/usr/bin/env python3
"""
remote_client.py - HTTP client for the remote store

    GET  {api_url}/sync/metadata   -> sync metadata snapshot
    POST {api_url}/sync            <- changeset

Both calls authenticate with a bearer token. Nothing is retried: a failed
call fails the run, which must then be started again from scratch.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from medici.config_utils import MediciConfig, default_credential_file
from medici.differ import Changeset, SyncMetadata
from medici.errors import (
    SnapshotError,
    TransportError,
    malformed_snapshot_error,
    missing_credentials_error,
    remote_request_error,
)
from medici.security_utils import mask_sensitive, validate_url

logger = logging.getLogger(__name__)

METADATA_ENDPOINT = "sync/metadata"
SYNC_ENDPOINT = "sync"


class RemoteStore:
    """Reads the sync snapshot from, and pushes changesets to, the remote store."""

    def __init__(self, api_url: str, api_key: str, timeout: float = 30.0):
        self.api_url = validate_url(api_url)
        self.api_key = api_key
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: MediciConfig) -> "RemoteStore":
        """
        Raises:
            ConfigurationError: If api_url or api_key is missing or invalid
        """
        missing = [name for name in ("api_url", "api_key") if not getattr(config, name)]
        if missing:
            raise missing_credentials_error(config.credential_file or default_credential_file(), missing)
        try:
            return cls(config.api_url, config.api_key, timeout=config.timeout)
        except ValueError as e:
            raise missing_credentials_error(
                config.credential_file or default_credential_file(), ["valid api_url"]
            ) from e

    def __repr__(self) -> str:
        return f"RemoteStore({self.api_url!r}, api_key={mask_sensitive(self.api_key)!r})"

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def url(self, endpoint: str) -> str:
        return f"{self.api_url}/{endpoint}"

    def fetch_snapshot(self) -> SyncMetadata:
        """
        Raises:
            SnapshotError: If the snapshot cannot be fetched or parsed
        """
        url = self.url(METADATA_ENDPOINT)
        logger.debug("[remote] GET %s (key %s)", url, mask_sensitive(self.api_key))

        try:
            resp = requests.get(url, headers=self.headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise remote_request_error(SnapshotError, "read sync metadata", url, cause=e)

        if resp.status_code != 200:
            raise remote_request_error(SnapshotError, "read sync metadata", url, status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise malformed_snapshot_error("response is not valid JSON", cause=e)

        snapshot = SyncMetadata.from_dict(data)
        logger.info(
            "[remote] Snapshot: %d course(s), %d question(s), %d option(s), %d evaluation(s)",
            len(snapshot.courses), len(snapshot.questions),
            len(snapshot.options), len(snapshot.evaluations),
        )
        return snapshot

    def push_changeset(self, changeset: Changeset) -> Optional[Dict[str, Any]]:
        """
        Send the whole changeset in one request. Empty changesets are not sent.

        Returns:
            The decoded response body, if it is JSON

        Raises:
            TransportError: If the request fails or is rejected
        """
        if changeset.is_empty:
            logger.info("[remote] Nothing to push")
            return None

        url = self.url(SYNC_ENDPOINT)
        logger.debug("[remote] POST %s", url)

        try:
            resp = requests.post(url, headers=self.headers, json=changeset.to_dict(), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise remote_request_error(TransportError, "push the changeset", url, cause=e)

        if resp.status_code not in (200, 201, 202, 204):
            raise remote_request_error(TransportError, "push the changeset", url, status_code=resp.status_code)

        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return None
