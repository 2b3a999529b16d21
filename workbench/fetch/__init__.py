"""HTTP resolution of fetch input cards."""

from .lib import FetchClient, FetchError, clean_headers

__all__ = ["FetchClient", "FetchError", "clean_headers"]
