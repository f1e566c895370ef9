"""Command-line entry point for the conversion worker."""

from .main import app, main
from .models import ExitCode

__all__ = ["app", "main", "ExitCode"]
