"""Data models for conversion jobs and their outcomes."""

import copy
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from notemark.content_converter.errors import FrontmatterError
from notemark.content_converter.frontmatter_encoder import FrontmatterEncoder
from notemark.content_converter.models import ConversionWarning
from .errors import InvalidPayloadError


class JobKind(Enum):
    """Work a queue message asks for."""

    CONVERT_TO_MARKDOWN = "convert-to-markdown"
    INDEX_FOR_SEARCH = "index-for-search"


class JobState(Enum):
    """States of the conversion job state machine.

    received -> validating -> rendering -> persisting -> completed, with
    failed reachable from validating, rendering and persisting.
    """

    RECEIVED = "received"
    VALIDATING = "validating"
    RENDERING = "rendering"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    FAILED = "failed"


class FailureReason(Enum):
    """Why a job attempt failed."""

    INVALID_PAYLOAD = "InvalidPayload"
    MALFORMED_DOCUMENT = "MalformedDocument"
    TRANSIENT_ERROR = "TransientError"


class JobOutcome(Enum):
    """Outcome signal reported for each handled delivery."""

    SUCCESS = "success"
    RETRYABLE_FAILURE = "retryable_failure"
    PERMANENT_FAILURE = "permanent_failure"


# Transitions the handler may make; anything else is a programming error
ALLOWED_TRANSITIONS = {
    None: {JobState.RECEIVED},
    JobState.RECEIVED: {JobState.VALIDATING, JobState.FAILED},
    JobState.VALIDATING: {JobState.RENDERING, JobState.PERSISTING, JobState.FAILED},
    JobState.RENDERING: {JobState.PERSISTING, JobState.FAILED},
    JobState.PERSISTING: {JobState.COMPLETED, JobState.FAILED},
    JobState.COMPLETED: set(),
    JobState.FAILED: set(),
}


def _first_present(payload: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if payload.get(name) is not None:
            return payload[name]
    return None


@dataclass(frozen=True)
class ConversionJob:
    """One unit of conversion work for one note version.

    The job owns deep copies of the block tree and metadata it was created
    from, so the caller's structures are never shared or mutated.

    Attributes:
        document_id: Note identifier
        version: Note version (non-negative integer or tag)
        blocks: Raw block sequence (empty for index jobs)
        metadata: Metadata record for the front matter, if supplied
        kind: Work requested
        user_id: Owner, scopes the output key when present
        title: Note title stored with the artifact
    """

    document_id: str
    version: Union[int, str]
    blocks: List[Any] = field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None
    kind: JobKind = JobKind.CONVERT_TO_MARKDOWN
    user_id: Optional[str] = None
    title: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ConversionJob":
        """Validate and deserialize a queue message body.

        Args:
            payload: Mapping, or a JSON string/bytes holding one

        Returns:
            ConversionJob

        Raises:
            InvalidPayloadError: If the payload is malformed
        """
        if isinstance(payload, (bytes, bytearray)):
            try:
                payload = payload.decode("utf-8")
            except UnicodeDecodeError as e:
                raise InvalidPayloadError(f"body is not UTF-8: {e}")
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError as e:
                raise InvalidPayloadError(f"body is not valid JSON: {e}")

        if not isinstance(payload, Mapping):
            raise InvalidPayloadError(
                f"body must be an object, got {type(payload).__name__}"
            )

        kind = cls._parse_kind(payload.get("type"))
        document_id = cls._parse_document_id(
            _first_present(payload, "documentId", "document_id", "noteId")
        )
        version = cls._parse_version(payload.get("version"))

        blocks: List[Any] = []
        if kind == JobKind.CONVERT_TO_MARKDOWN:
            if "blocks" not in payload:
                raise InvalidPayloadError("missing required field", "blocks")
            raw_blocks = payload["blocks"]
            if not isinstance(raw_blocks, (list, tuple)):
                raise InvalidPayloadError(
                    f"must be an array, got {type(raw_blocks).__name__}", "blocks"
                )
            blocks = copy.deepcopy(list(raw_blocks))

        return cls(
            document_id=document_id,
            version=version,
            blocks=blocks,
            metadata=cls._parse_metadata(payload.get("metadata")),
            kind=kind,
            user_id=cls._parse_optional_str(
                _first_present(payload, "userId", "user_id"), "userId"
            ),
            title=cls._parse_optional_str(payload.get("title"), "title"),
        )

    @staticmethod
    def _parse_kind(raw: Any) -> JobKind:
        if raw is None:
            return JobKind.CONVERT_TO_MARKDOWN
        try:
            return JobKind(raw)
        except ValueError:
            raise InvalidPayloadError(f"unknown job type {raw!r}", "type")

    @staticmethod
    def _parse_document_id(raw: Any) -> str:
        if raw is None:
            raise InvalidPayloadError("missing required field", "documentId")
        if isinstance(raw, bool) or not isinstance(raw, (str, int)):
            raise InvalidPayloadError(
                f"must be a string, got {type(raw).__name__}", "documentId"
            )
        document_id = str(raw)
        if not document_id.strip():
            raise InvalidPayloadError("must not be empty", "documentId")
        return document_id

    @staticmethod
    def _parse_version(raw: Any) -> Union[int, str]:
        if raw is None:
            raise InvalidPayloadError("missing required field", "version")
        if isinstance(raw, bool):
            raise InvalidPayloadError("must be an integer or string tag", "version")
        if isinstance(raw, int):
            if raw < 0:
                raise InvalidPayloadError(f"must not be negative, got {raw}", "version")
            return raw
        if isinstance(raw, str) and raw.strip():
            return raw
        raise InvalidPayloadError("must be an integer or non-empty string tag", "version")

    @staticmethod
    def _parse_metadata(raw: Any) -> Optional[Dict[str, Any]]:
        if raw is None:
            return None
        try:
            FrontmatterEncoder.ordered_fields(raw)
        except FrontmatterError as e:
            raise InvalidPayloadError(e.original_message, "metadata")
        return copy.deepcopy(dict(raw))

    @staticmethod
    def _parse_optional_str(raw: Any, field_name: str) -> Optional[str]:
        if raw is None:
            return None
        if not isinstance(raw, str):
            raise InvalidPayloadError(
                f"must be a string, got {type(raw).__name__}", field_name
            )
        return raw


@dataclass
class JobResult:
    """Record of one delivery of one job.

    Attributes:
        message_id: Queue message id
        attempts: 1-based delivery count
        document_id: Note identifier (None if the payload never validated)
        version: Note version (None if the payload never validated)
        kind: Job kind (None if the payload never validated)
        state: Current state of the state machine
        transitions: Every state entered, in order
        outcome: Signal reported for the delivery
        reason: Failure reason (failed jobs only)
        error: Error message (failed jobs only)
        output_key: Key of the Markdown artifact
        warnings: Blocks skipped during conversion
    """

    message_id: str
    attempts: int = 1
    document_id: Optional[str] = None
    version: Optional[Union[int, str]] = None
    kind: Optional[JobKind] = None
    state: Optional[JobState] = None
    transitions: List[JobState] = field(default_factory=list)
    outcome: Optional[JobOutcome] = None
    reason: Optional[FailureReason] = None
    error: Optional[str] = None
    output_key: Optional[str] = None
    warnings: List[ConversionWarning] = field(default_factory=list)

    def transition(self, new_state: JobState) -> None:
        """Move to a new state.

        Raises:
            ValueError: If the transition is not allowed from the current state
        """
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            current = self.state.value if self.state else "start"
            raise ValueError(f"Invalid job transition: {current} -> {new_state.value}")
        self.state = new_state
        self.transitions.append(new_state)

    @property
    def succeeded(self) -> bool:
        return self.outcome == JobOutcome.SUCCESS

    @property
    def is_permanent_failure(self) -> bool:
        return self.outcome == JobOutcome.PERMANENT_FAILURE

    def describe(self) -> Tuple[str, str, str]:
        """Summarize the result as (message id, target, outcome) strings."""
        target = f"{self.document_id}@{self.version}" if self.document_id else "?"
        outcome = self.outcome.value if self.outcome else "pending"
        return self.message_id, target, outcome
