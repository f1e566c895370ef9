"""Conversion job handler.

Queue-consumer entry point for one delivery. Drives the job through
received -> validating -> rendering -> persisting -> completed, and turns
every failure into an outcome the queue understands:

- InvalidPayload and MalformedDocument are permanent: dead-lettered and acked
- TransientError (including any unexpected exception) is retried with
  backoff until the attempt budget is spent, then dead-lettered and acked

Handling a message never raises, so one bad job cannot stop a worker.
"""

import hashlib
import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from notemark.blocks.errors import MalformedDocumentError
from notemark.config.models import WorkerConfig
from notemark.content_converter.document_assembler import DocumentAssembler
from notemark.content_converter.frontmatter_encoder import FrontmatterEncoder
from notemark.storage.base import IndexingSink, OutputStore
from notemark.storage.errors import InvalidKeyError, StorageError
from notemark.storage.keys import dead_letter_key, output_key
from .errors import InvalidPayloadError, TransientError
from .models import ConversionJob, FailureReason, JobKind, JobOutcome, JobResult, JobState
from .queue import QueueMessage
from .retry_logic import backoff_delay, should_retry

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"


class ConversionJobHandler:
    """Processes single conversion job deliveries.

    Args:
        store: Durable output target for artifacts and dead-letter records
        config: Retry, front matter and dead-letter settings
        assembler: Document assembler (a default one if None)
        indexing_sink: Optional downstream consumer of finished artifacts
        clock: Wall clock used for dead-letter timestamps
    """

    def __init__(
        self,
        store: OutputStore,
        config: Optional[WorkerConfig] = None,
        assembler: Optional[DocumentAssembler] = None,
        indexing_sink: Optional[IndexingSink] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.config = config or WorkerConfig()
        self.assembler = assembler or DocumentAssembler()
        self.indexing_sink = indexing_sink
        self._clock = clock
        # In-progress results by message id; a cancelled handle() leaves its entry
        self._active: Dict[str, JobResult] = {}

    async def handle(self, message: QueueMessage) -> JobResult:
        """Process one delivery and settle it with the queue.

        Args:
            message: Queue message carrying a conversion job payload

        Returns:
            JobResult with the state transitions and outcome
        """
        result = JobResult(message_id=message.id, attempts=message.attempts)
        self._active[message.id] = result
        await self._process(message, result)
        self._active.pop(message.id, None)
        return result

    async def _process(self, message: QueueMessage, result: JobResult) -> None:
        result.transition(JobState.RECEIVED)

        try:
            result.transition(JobState.VALIDATING)
            job = ConversionJob.from_payload(message.body)
            result.document_id = job.document_id
            result.version = job.version
            result.kind = job.kind
            result.output_key = self._output_key(job)

            if job.kind == JobKind.CONVERT_TO_MARKDOWN:
                await self._convert(job, result)
            else:
                await self._index(job, result)

            result.transition(JobState.COMPLETED)
        except (InvalidPayloadError, MalformedDocumentError) as e:
            reason = (
                FailureReason.INVALID_PAYLOAD
                if isinstance(e, InvalidPayloadError)
                else FailureReason.MALFORMED_DOCUMENT
            )
            await self._fail(message, result, reason, e)
            return
        except TransientError as e:
            await self._fail(message, result, FailureReason.TRANSIENT_ERROR, e)
            return
        except Exception as e:
            logger.exception(f"Unexpected error handling message {message.id}")
            error = TransientError(f"Unexpected error: {type(e).__name__}: {e}", cause=e)
            await self._fail(message, result, FailureReason.TRANSIENT_ERROR, error)
            return

        result.outcome = JobOutcome.SUCCESS
        message.ack()
        logger.info(
            f"Completed {job.kind.value} for document {job.document_id} "
            f"version {job.version} (attempt {message.attempts})"
        )

    async def handle_abandoned(self, message: QueueMessage) -> JobResult:
        """Settle a delivery whose processing exceeded its time budget.

        Abandonment counts as a transient failure: the message is retried with
        backoff, or dead-lettered once its attempts are spent. Writes are
        atomic per object, so nothing partial is left behind.

        A delivery that had already failed permanently is only acknowledged:
        its dead letter may be missing, but it is never redelivered.
        """
        interrupted = self._active.pop(message.id, None)
        if interrupted is not None and interrupted.is_permanent_failure:
            logger.warning(
                f"Message {message.id} timed out after failing permanently "
                f"({interrupted.reason.value}), acknowledging without retry"
            )
            message.ack()
            return interrupted

        result = JobResult(message_id=message.id, attempts=message.attempts)
        result.transition(JobState.RECEIVED)
        timeout = self.config.processing_timeout_seconds
        error = TransientError(f"Processing exceeded {timeout}s and was abandoned")
        await self._fail(message, result, FailureReason.TRANSIENT_ERROR, error)
        return result

    async def _convert(self, job: ConversionJob, result: JobResult) -> None:
        result.transition(JobState.RENDERING)
        metadata = job.metadata if self.config.include_front_matter else None
        conversion = self.assembler.assemble(job.blocks, metadata)
        result.warnings = conversion.warnings
        if conversion.warnings:
            logger.warning(
                f"Document {job.document_id} version {job.version}: "
                f"skipped {len(conversion.warnings)} block(s)"
            )

        result.transition(JobState.PERSISTING)
        object_metadata = self._object_metadata(job, conversion.markdown)
        try:
            await self.store.put(result.output_key, conversion.markdown, object_metadata)
        except StorageError as e:
            raise TransientError(f"Failed to write {result.output_key}: {e}", cause=e)

        if self.indexing_sink is not None:
            await self._hand_off(job, conversion.markdown, job.metadata or {})

    async def _index(self, job: ConversionJob, result: JobResult) -> None:
        result.transition(JobState.PERSISTING)
        try:
            stored = await self.store.get(result.output_key)
        except StorageError as e:
            raise TransientError(f"Failed to read {result.output_key}: {e}", cause=e)

        # Conversion may not have finished yet
        if stored is None:
            raise TransientError(f"Markdown not found for document {job.document_id}")

        if self.indexing_sink is None:
            logger.info(f"No indexing sink configured, skipping document {job.document_id}")
            return

        metadata, _ = FrontmatterEncoder.decode(stored.text)
        await self._hand_off(job, stored.text, metadata)

    async def _hand_off(self, job: ConversionJob, markdown: str, metadata: Dict[str, Any]) -> None:
        try:
            await self.indexing_sink.index(job.document_id, str(job.version), markdown, metadata)
        except Exception as e:
            raise TransientError(f"Indexing failed for document {job.document_id}: {e}", cause=e)
        logger.debug(f"Handed document {job.document_id} to indexing")

    def _output_key(self, job: ConversionJob) -> str:
        try:
            return output_key(job.document_id, job.version, job.user_id)
        except InvalidKeyError as e:
            raise InvalidPayloadError(e.reason, e.component)

    def _object_metadata(self, job: ConversionJob, markdown: str) -> Dict[str, str]:
        title = (job.metadata or {}).get("title") or job.title or DEFAULT_TITLE
        metadata = {
            "contentType": "text/markdown",
            "documentId": job.document_id,
            "version": str(job.version),
            "title": str(title),
            "contentSha256": hashlib.sha256(markdown.encode("utf-8")).hexdigest(),
        }
        if job.user_id is not None:
            metadata["userId"] = job.user_id
        return metadata

    async def _fail(
        self,
        message: QueueMessage,
        result: JobResult,
        reason: FailureReason,
        error: Exception,
    ) -> None:
        result.transition(JobState.FAILED)
        result.reason = reason
        result.error = str(error)

        if should_retry(error, message.attempts, self.config.max_attempts):
            delay = backoff_delay(
                message.attempts,
                self.config.base_delay_seconds,
                self.config.max_delay_seconds,
            )
            logger.warning(
                f"Message {message.id} failed ({reason.value}): {error}. "
                f"Retrying in {delay}s (attempt {message.attempts + 1}/{self.config.max_attempts})"
            )
            result.outcome = JobOutcome.RETRYABLE_FAILURE
            message.retry(delay_seconds=delay)
            return

        logger.error(f"Message {message.id} failed permanently ({reason.value}): {error}")
        result.outcome = JobOutcome.PERMANENT_FAILURE
        await self._write_dead_letter(message, result)
        # Ack so the queue stops redelivering
        message.ack()

    async def _write_dead_letter(self, message: QueueMessage, result: JobResult) -> None:
        timestamp_ms = int(self._clock() * 1000)
        document_id = result.document_id or _peek_document_id(message.body)
        key = dead_letter_key(
            self.config.dead_letter_prefix, document_id, message.id, timestamp_ms
        )
        record = {
            "messageId": message.id,
            "documentId": document_id,
            "version": result.version,
            "reason": result.reason.value if result.reason else None,
            "error": result.error,
            "attempts": message.attempts,
            "timestamp": timestamp_ms,
            "body": message.body,
        }

        try:
            text = json.dumps(record, indent=2, default=str, ensure_ascii=False)
            await self.store.put(key, text, {"contentType": "application/json"})
        except Exception:
            logger.exception(f"Failed to write dead letter for message {message.id}")
            return

        logger.info(f"Wrote dead letter {key}")


def _peek_document_id(body: Any) -> Optional[str]:
    """Best-effort document id from a payload that failed validation."""
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body)
        except ValueError:
            return None
    if isinstance(body, dict):
        for name in ("documentId", "document_id", "noteId"):
            value = body.get(name)
            if isinstance(value, str):
                return value
    return None
