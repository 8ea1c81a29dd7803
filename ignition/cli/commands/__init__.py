"""Command implementations package."""

from . import (
    run,
    validate,
)
