"""Worker configuration model."""

from dataclasses import dataclass


@dataclass
class WorkerConfig:
    """Settings for the conversion worker.

    Attributes:
        output_dir: Root directory of the filesystem output store
        max_attempts: Deliveries of a job before a transient failure becomes permanent
        base_delay_seconds: Retry delay after the first failed attempt
        max_delay_seconds: Upper bound for the retry delay
        processing_timeout_seconds: Time a job may run before it is abandoned
        batch_size: Messages taken from the queue per batch
        dead_letter_prefix: Key prefix for dead-letter records
        include_front_matter: Whether job metadata is written as front matter
    """

    output_dir: str = "./notemark-output"
    max_attempts: int = 3
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 60.0
    processing_timeout_seconds: float = 30.0
    batch_size: int = 10
    dead_letter_prefix: str = "dead-letter-queue"
    include_front_matter: bool = True
