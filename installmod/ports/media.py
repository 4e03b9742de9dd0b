from typing import Protocol


class MediaResolverPort(Protocol):
    def resolve(self, path_or_url: str | None, bucket: str | None = None) -> str:
        """
        Resolve a stored object path or literal URL to a servable URL.

        Absolute http(s) URLs are returned unchanged.
        """
        ...
