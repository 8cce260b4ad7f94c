from .base import PageResponse, Response

__all__ = ["Response", "PageResponse"]
