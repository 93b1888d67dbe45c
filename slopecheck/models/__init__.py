"""Plain data records exchanged with model sources."""

from slopecheck.models.pipe import PipeRecord

__all__ = ["PipeRecord"]
