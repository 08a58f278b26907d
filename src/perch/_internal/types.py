"""Callable aliases for the user code perch dispatches to."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Called with its path parameters (and optionally the request)
Handler: TypeAlias = Callable[..., Any]

# Called when no mount or route answers; takes () or (request)
DefaultHandler: TypeAlias = Callable[..., Any]

# Takes (), (request) or (request, exc)
ErrorHandler: TypeAlias = Callable[..., Any]
