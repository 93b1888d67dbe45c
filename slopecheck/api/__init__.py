"""Public API facade."""

from slopecheck.api.facade import SlopeCheck

__all__ = ["SlopeCheck"]
