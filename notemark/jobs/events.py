"""Note-mutation event intake.

When a note is saved or re-indexed, the surrounding application emits a
note-mutation event. This module turns it into conversion job payloads
and puts them on the queue.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from .models import JobKind
from .queue import JobQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoteMutationEvent:
    """A note was created, updated or re-indexed.

    Attributes:
        document_id: Note identifier
        version: Note version after the mutation
        blocks: Block tree of that version
        metadata: Metadata record for the front matter, if any
        user_id: Owner of the note
        title: Note title
    """

    document_id: str
    version: Union[int, str]
    blocks: List[Any]
    metadata: Optional[Mapping[str, Any]] = None
    user_id: Optional[str] = None
    title: Optional[str] = None


def build_job_payload(
    event: NoteMutationEvent, kind: JobKind = JobKind.CONVERT_TO_MARKDOWN
) -> Dict[str, Any]:
    """Build the queue payload for one job kind.

    Optional fields are only included when set. Index jobs carry no blocks.
    """
    payload: Dict[str, Any] = {
        "type": kind.value,
        "documentId": event.document_id,
        "version": event.version,
    }
    if kind == JobKind.CONVERT_TO_MARKDOWN:
        payload["blocks"] = list(event.blocks)
        if event.metadata is not None:
            payload["metadata"] = dict(event.metadata)
    if event.user_id is not None:
        payload["userId"] = event.user_id
    if event.title is not None:
        payload["title"] = event.title
    return payload


def enqueue_note_mutation(
    queue: JobQueue, event: NoteMutationEvent, index: bool = False
) -> List[str]:
    """Enqueue the jobs for a note mutation.

    Message ids are derived from (document id, version, kind), so a repeated
    event produces the same ids.

    Args:
        queue: Queue to send to
        event: The mutation
        index: Also enqueue an index-for-search job

    Returns:
        Ids of the enqueued messages
    """
    kinds = [JobKind.CONVERT_TO_MARKDOWN]
    if index:
        kinds.append(JobKind.INDEX_FOR_SEARCH)

    message_ids = []
    for kind in kinds:
        message_id = f"{event.document_id}-{event.version}-{kind.value}"
        message_ids.append(queue.enqueue(build_job_payload(event, kind), message_id))

    logger.info(
        f"Enqueued {len(message_ids)} job(s) for document {event.document_id} "
        f"version {event.version}"
    )
    return message_ids
