"""Object key derivation.

Output keys are a pure function of (document id, version, user id), so a
redelivered job overwrites its own artifact and never another version's.
"""

import re
from typing import Optional, Union

from .errors import InvalidKeyError

# Characters allowed in a single key component
_COMPONENT_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")

CONTENT_FILENAME = "content.md"

# Used in dead-letter keys when the job never yielded a usable document id
UNKNOWN_DOCUMENT = "_unknown"


def validate_component(value: Union[str, int]) -> str:
    """Check that a value is safe to use as one segment of a key.

    Args:
        value: Document id, version, user id, ...

    Returns:
        The value as a string

    Raises:
        InvalidKeyError: If the value is empty, contains characters other
            than letters, digits, ``.``, ``_`` and ``-``, or is ``.``/``..``
    """
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise InvalidKeyError(repr(value), "must be a string or integer")

    component = str(value)
    if component in (".", ".."):
        raise InvalidKeyError(component, "relative path segments are not allowed")
    if not _COMPONENT_PATTERN.match(component):
        raise InvalidKeyError(
            component, "only letters, digits, '.', '_' and '-' are allowed"
        )
    return component


def output_key(
    document_id: str,
    version: Union[str, int],
    user_id: Optional[str] = None,
) -> str:
    """Build the key of a note version's Markdown artifact.

    Examples:
        >>> output_key("note-1", 3)
        'notes/note-1/versions/3/content.md'
        >>> output_key("note-1", 3, user_id="u42")
        'users/u42/notes/note-1/versions/3/content.md'
    """
    key = (
        f"notes/{validate_component(document_id)}"
        f"/versions/{validate_component(version)}/{CONTENT_FILENAME}"
    )
    if user_id is not None:
        key = f"users/{validate_component(user_id)}/{key}"
    return key


def dead_letter_key(
    prefix: str,
    document_id: Optional[str],
    message_id: str,
    timestamp_ms: int,
) -> str:
    """Build the key of a dead-letter record.

    Dead letters are written for jobs that may have failed precisely because
    their ids are unusable, so unsafe ids are replaced rather than rejected.
    """
    segments = [validate_component(part) for part in prefix.strip("/").split("/")]

    try:
        document_segment = validate_component(document_id)
    except InvalidKeyError:
        document_segment = UNKNOWN_DOCUMENT

    message_segment = _UNSAFE_CHARS.sub("_", str(message_id)) or "message"
    segments.extend([document_segment, f"{timestamp_ms}-{message_segment}.json"])
    return "/".join(segments)
