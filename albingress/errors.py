"""Exception hierarchy for albingress."""

from __future__ import annotations


class AlbIngressError(Exception):
    """Base class for all albingress errors."""


class CacheNotSyncedError(AlbIngressError):
    """Raised when listing a kind the cache has never synced."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"cache for kind '{kind}' has not synced")
        self.kind = kind


class GroupIDError(AlbIngressError):
    """Raised when an Ingress's group identifier cannot be derived."""


class InvalidGroupNameError(GroupIDError):
    """The explicit group name annotation holds an invalid value."""

    def __init__(self, group_name: str, reason: str) -> None:
        super().__init__(f"invalid ingress group name '{group_name}': {reason}")
        self.group_name = group_name


class MalformedIngressError(GroupIDError):
    """The Ingress object lacks the metadata needed to identify it."""


class InvalidGroupOrderError(AlbIngressError):
    """The group order annotation is not an integer in range."""

    def __init__(self, ingress: str, value: str) -> None:
        super().__init__(f"invalid group order '{value}' on ingress {ingress}")
        self.ingress = ingress
        self.value = value
