"""Exceptions raised by the search core."""
from __future__ import annotations


class SearchError(Exception):
    """Base class for failures that end a search request."""


class BackendUnavailable(SearchError):
    """The catalog store could not be reached or is not set up."""


class InvalidToken(SearchError):
    """The anti-forgery token is missing, unknown or expired."""


class TokenUnavailable(SearchError):
    """A new anti-forgery token could not be stored."""
