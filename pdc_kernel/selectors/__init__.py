"""Read-only query selectors."""

from pdc_kernel.selectors.base import BaseSelector

__all__ = ["BaseSelector"]
