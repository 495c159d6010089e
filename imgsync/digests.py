from __future__ import annotations

import re

SHA256_RE = re.compile(r"sha256:([0-9a-fA-F]+)")


def image_digest(image: str | None) -> str | None:
    """Extract the content digest (or legacy tag) from an image reference.

    Handles `repo@sha256:<hex>`, `repo:sha256:<hex>` and the legacy
    `repo:<tag>` form, for which the tag is returned. Digests come back
    lower-cased so they compare as plain strings.
    """
    if not image:
        return None
    m = SHA256_RE.search(image)
    if m:
        return m.group(1).lower()
    # Legacy tag: only a colon after the last path segment separates a tag
    # (a colon before it is a registry port).
    name = image.rsplit("/", 1)[-1]
    if ":" in name:
        return name.split(":", 1)[1] or None
    return None


def manifest_key_digest(key: str) -> str:
    """`sha256:<hex>` -> `<hex>` (split on the first colon)."""
    _, sep, rest = key.partition(":")
    return (rest if sep else key).lower()


def digest_image(repo: str, digest: str) -> str:
    """Canonical, immutable reference: `<repo>@sha256:<digest>`."""
    return f"{repo}@sha256:{digest.lower()}"


def image_has_digest(image: str | None, digest: str) -> bool:
    if not image or not digest:
        return False
    return digest.lower() in image.lower()
