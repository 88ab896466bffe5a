"""Layout text parsing."""

from .models import IndentStack, LayoutEntry, PermissionSpec
from .parser import LayoutSyntaxError, parse_layout
from .scanner import TokenError

__all__ = [
    "IndentStack",
    "LayoutEntry",
    "LayoutSyntaxError",
    "PermissionSpec",
    "TokenError",
    "parse_layout",
]
