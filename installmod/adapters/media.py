"""
Bucket media resolver.

Stored media references are either absolute URLs (pasted by an editor) or
object paths inside a storage bucket. Paths resolve against the storage
service's public object endpoint:

    {public_base_url}/storage/v1/object/public/{bucket}/{path}
"""

from __future__ import annotations

from urllib.parse import quote, urlsplit

DEFAULT_PLACEHOLDER = "/placeholder.svg"


class BucketMediaResolver:
    def __init__(self, public_base_url: str, placeholder: str = DEFAULT_PLACEHOLDER) -> None:
        self._base = public_base_url.rstrip("/")
        self._placeholder = placeholder

    def resolve(self, path_or_url: str | None, bucket: str | None = None) -> str:
        if not path_or_url:
            return self._placeholder

        parts = urlsplit(path_or_url)
        if parts.netloc and parts.scheme.lower() in ("http", "https", ""):
            return path_or_url

        if not bucket:
            return self._placeholder

        path = quote(path_or_url.lstrip("/"))
        return f"{self._base}/storage/v1/object/public/{bucket}/{path}"
