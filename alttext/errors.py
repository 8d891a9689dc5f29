"""Typed failures raised while describing an asset."""
from alttext.constants import MSG_ASSET_NOT_FOUND
from alttext.models import ErrorKind


class AltTextError(Exception):
    """Base class for every failure this package raises."""


class AssetNotFound(AltTextError):
    def __init__(self, asset_id: int, site_id: int | None = None) -> None:
        super().__init__(MSG_ASSET_NOT_FOUND % (asset_id, site_id))
        self.asset_id = asset_id
        self.site_id = site_id


class DescribeError(AltTextError):
    """A single work item could not be completed. Siblings are unaffected."""


class NotAnImage(DescribeError):
    pass


class UnsupportedAnimated(DescribeError):
    pass


class UnreadableSource(DescribeError):
    pass


class GenerationFailed(DescribeError):
    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def retryable(self) -> bool:
        return self.kind == ErrorKind.TRANSPORT


class PersistFailed(DescribeError):
    pass
