"""notemark: converts note block trees into indexable Markdown documents.

The pipeline renders a note's structured content blocks into canonical
Markdown with a YAML front-matter header, and runs as an asynchronous queue
consumer that persists one artifact per (document, version).
"""

__version__ = "0.1.0"
