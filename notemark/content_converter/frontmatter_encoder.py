"""YAML front matter encoding for converted notes.

A note's metadata record is serialized into a ``---`` delimited YAML header
that sits at the top of the Markdown artifact. Field order is fixed so the
same record always produces the same bytes:

- title, tags, folder, created_at, updated_at (when present, in that order)
- every other field, sorted by name

Fields whose value is None are treated as absent. Lists are written in flow
style (``tags: [work, meetings]``).
"""

import datetime
import re
from typing import Any, Dict, List, Mapping, Tuple

import yaml

from .errors import FrontmatterError


class _FrontmatterDumper(yaml.SafeDumper):
    """SafeDumper that writes sequences inline."""


def _represent_flow_sequence(dumper: yaml.SafeDumper, data: list) -> yaml.Node:
    return dumper.represent_sequence("tag:yaml.org,2002:seq", data, flow_style=True)


_FrontmatterDumper.add_representer(list, _represent_flow_sequence)

_SCALAR_TYPES = (str, int, float, bool, datetime.date, datetime.datetime)


class FrontmatterEncoder:
    """Encodes metadata records as YAML front matter and decodes them back.

    Example:
        >>> FrontmatterEncoder.encode({"title": "Meeting Notes", "tags": ["work"]})
        '---\\ntitle: Meeting Notes\\ntags: [work]\\n---\\n'
    """

    DELIMITER = "---"

    # Well-known fields, emitted first and in this order
    FIELD_ORDER = ("title", "tags", "folder", "created_at", "updated_at")

    # Regex pattern to match YAML front matter (between --- delimiters)
    FRONTMATTER_PATTERN = re.compile(
        r'^---[ \t]*\n(.*?)\n?---[ \t]*\n',
        re.DOTALL
    )

    @classmethod
    def encode(cls, metadata: Mapping[str, Any]) -> str:
        """Serialize a metadata record into a front matter block.

        Args:
            metadata: Flat mapping of scalar or list-of-scalar fields

        Returns:
            Front matter including both delimiter lines and a trailing newline.
            An empty record gives an empty header (``---\\n---\\n``).

        Raises:
            FrontmatterError: If the record is not a flat mapping
        """
        fields = cls.ordered_fields(metadata)
        if not fields:
            return f"{cls.DELIMITER}\n{cls.DELIMITER}\n"

        yaml_str = yaml.dump(
            fields,
            Dumper=_FrontmatterDumper,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=float("inf"),
        )
        return f"{cls.DELIMITER}\n{yaml_str}{cls.DELIMITER}\n"

    @classmethod
    def ordered_fields(cls, metadata: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate a record and return its present fields in output order.

        Raises:
            FrontmatterError: If a key is not a string or a value is nested
        """
        if not isinstance(metadata, Mapping):
            raise FrontmatterError(
                f"metadata must be a mapping, got {type(metadata).__name__}"
            )

        present: Dict[str, Any] = {}
        for key, value in metadata.items():
            if not isinstance(key, str):
                raise FrontmatterError(f"field names must be strings, got {key!r}")
            if value is None:
                continue
            present[key] = cls._normalize_value(key, value)

        ordered: Dict[str, Any] = {}
        for key in cls.FIELD_ORDER:
            if key in present:
                ordered[key] = present[key]
        for key in sorted(present):
            if key not in ordered:
                ordered[key] = present[key]
        return ordered

    @classmethod
    def decode(cls, markdown: str) -> Tuple[Dict[str, Any], str]:
        """Split a Markdown artifact into its front matter and body.

        Args:
            markdown: Full Markdown content

        Returns:
            Tuple of (front matter dict, body). Returns ({}, markdown) if the
            content has no front matter.

        Raises:
            FrontmatterError: If the header is not valid YAML or not a mapping
        """
        match = cls.FRONTMATTER_PATTERN.match(markdown)
        if not match:
            return {}, markdown

        frontmatter_str = match.group(1)
        body = markdown[match.end():]
        # A blank line separates the header from the body
        if body.startswith("\n"):
            body = body[1:]

        try:
            frontmatter = yaml.safe_load(frontmatter_str)
        except yaml.YAMLError as e:
            raise FrontmatterError(f"Invalid YAML syntax: {str(e)}")

        if frontmatter is None:
            return {}, body

        if not isinstance(frontmatter, dict):
            raise FrontmatterError(
                f"Front matter must be a YAML dictionary, got {type(frontmatter).__name__}"
            )

        return frontmatter, body

    @classmethod
    def _normalize_value(cls, key: str, value: Any) -> Any:
        if isinstance(value, _SCALAR_TYPES):
            return value
        if isinstance(value, (list, tuple)):
            items: List[Any] = []
            for item in value:
                if not isinstance(item, _SCALAR_TYPES):
                    raise FrontmatterError(
                        f"list items must be scalars, got {type(item).__name__}", key
                    )
                items.append(item)
            return items
        raise FrontmatterError(
            f"value must be a scalar or a list of scalars, got {type(value).__name__}", key
        )
