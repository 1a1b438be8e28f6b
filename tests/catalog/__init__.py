"""Entity package exposing its classes from the package root."""

from .models import Item

__all__ = ["Item"]
