"""Conversion jobs: payloads, queue consumption and retry.

Key classes:
    ConversionJobHandler: Processes one queue delivery end to end
    ConversionWorker: Runs batches of deliveries concurrently
    InMemoryJobQueue: Local at-least-once queue
    ConversionJob: Validated job payload
"""

from .errors import InvalidPayloadError, JobError, TransientError
from .events import NoteMutationEvent, build_job_payload, enqueue_note_mutation
from .handler import ConversionJobHandler
from .models import (
    ConversionJob,
    FailureReason,
    JobKind,
    JobOutcome,
    JobResult,
    JobState,
)
from .queue import InMemoryJobQueue, InMemoryMessage, JobQueue, QueueMessage
from .retry_logic import backoff_delay, should_retry
from .worker import ConversionWorker

__all__ = [
    "ConversionJobHandler",
    "ConversionWorker",
    "ConversionJob",
    "JobKind",
    "JobState",
    "JobOutcome",
    "FailureReason",
    "JobResult",
    "QueueMessage",
    "JobQueue",
    "InMemoryJobQueue",
    "InMemoryMessage",
    "NoteMutationEvent",
    "build_job_payload",
    "enqueue_note_mutation",
    "backoff_delay",
    "should_retry",
    "JobError",
    "InvalidPayloadError",
    "TransientError",
]
