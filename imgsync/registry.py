from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from .digests import manifest_key_digest
from .errors import ManifestFetchFailed, NoStableTag
from .settings import settings


@dataclass(frozen=True)
class StableImage:
    key: str  # manifest key, e.g. sha256:<hex>
    digest: str
    tags: tuple[str, ...]


def find_stable(manifest: dict[str, Any], tag: str = "stable") -> StableImage:
    """Return the first manifest entry (in payload order) tagged `tag`."""
    for key, entry in manifest.items():
        tags = entry.get("tag") if isinstance(entry, dict) else None
        if isinstance(tags, list) and tag in tags:
            return StableImage(key=key, digest=manifest_key_digest(key), tags=tuple(tags))
    raise NoStableTag(f"No manifest entry is tagged '{tag}'")


class ManifestResolver:
    """Resolves the registry's stable image digest from its tag manifest."""

    def __init__(
        self,
        url: str | None = None,
        tag: str | None = None,
        client: httpx.Client | None = None,
        timeout_s: float | None = None,
    ):
        self.url = url or settings.manifest_url
        self.tag = tag or settings.stable_tag
        self.timeout_s = timeout_s if timeout_s is not None else settings.http_timeout_s
        self._client = client

    def fetch_manifest(self) -> dict[str, Any]:
        try:
            if self._client is not None:
                resp = self._client.get(self.url, timeout=self.timeout_s)
            else:
                with httpx.Client(timeout=self.timeout_s, follow_redirects=True) as client:
                    resp = client.get(self.url)
        except httpx.HTTPError as e:
            raise ManifestFetchFailed(f"GET {self.url} failed: {type(e).__name__}: {e}") from e

        if not resp.is_success:
            raise ManifestFetchFailed(f"HTTP error! Status: {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as e:
            raise ManifestFetchFailed("Manifest payload is not valid JSON") from e

        manifest = data.get("manifest") if isinstance(data, dict) else None
        if not isinstance(manifest, dict):
            raise ManifestFetchFailed("Manifest payload has no 'manifest' object")
        return manifest

    def resolve(self) -> StableImage:
        return find_stable(self.fetch_manifest(), self.tag)
