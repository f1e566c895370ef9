"""Root of the notemark exception hierarchy.

Every subpackage defines its own typed exceptions in an ``errors`` module;
all of them inherit from PipelineError so callers can catch any
application-level error in one place.
"""


class PipelineError(Exception):
    """Base exception for all notemark errors."""
    pass
