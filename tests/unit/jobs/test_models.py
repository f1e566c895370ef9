"""Unit tests for jobs.models module."""

import json

import pytest

from notemark.jobs.errors import InvalidPayloadError
from notemark.jobs.models import ConversionJob, JobKind, JobResult, JobState
from tests.fixtures.block_fixtures import job_payload, paragraph


class TestConversionJobFromPayload:
    """Test cases for ConversionJob.from_payload."""

    def test_minimal_payload(self):
        job = ConversionJob.from_payload(job_payload([paragraph("x")]))
        assert job.document_id == "note-1"
        assert job.version == 1
        assert job.kind == JobKind.CONVERT_TO_MARKDOWN
        assert job.metadata is None
        assert job.user_id is None

    def test_snake_case_keys(self):
        payload = {"document_id": "d", "version": "v1", "blocks": [], "user_id": "u"}
        job = ConversionJob.from_payload(payload)
        assert (job.document_id, job.version, job.user_id) == ("d", "v1", "u")

    def test_json_string_and_bytes(self):
        raw = json.dumps(job_payload([]))
        assert ConversionJob.from_payload(raw).document_id == "note-1"
        assert ConversionJob.from_payload(raw.encode("utf-8")).document_id == "note-1"

    @pytest.mark.parametrize("body", ["{not json", b"\xff\xfe", 42, ["list"]])
    def test_undecodable_body(self, body):
        with pytest.raises(InvalidPayloadError):
            ConversionJob.from_payload(body)

    def test_missing_blocks(self):
        with pytest.raises(InvalidPayloadError) as exc_info:
            ConversionJob.from_payload({"documentId": "d", "version": 1})
        assert exc_info.value.field == "blocks"

    def test_non_array_blocks(self):
        with pytest.raises(InvalidPayloadError) as exc_info:
            ConversionJob.from_payload({"documentId": "d", "version": 1, "blocks": {"type": "x"}})
        assert exc_info.value.field == "blocks"

    def test_missing_document_id(self):
        with pytest.raises(InvalidPayloadError) as exc_info:
            ConversionJob.from_payload({"version": 1, "blocks": []})
        assert exc_info.value.field == "documentId"

    @pytest.mark.parametrize("version", [None, -1, True, "", "  ", 1.5])
    def test_invalid_version(self, version):
        with pytest.raises(InvalidPayloadError) as exc_info:
            ConversionJob.from_payload({"documentId": "d", "version": version, "blocks": []})
        assert exc_info.value.field == "version"

    def test_unknown_job_type(self):
        with pytest.raises(InvalidPayloadError) as exc_info:
            ConversionJob.from_payload(job_payload([], type="summarize"))
        assert exc_info.value.field == "type"

    def test_index_job_needs_no_blocks(self):
        job = ConversionJob.from_payload({"type": "index-for-search", "documentId": "d", "version": 2})
        assert job.kind == JobKind.INDEX_FOR_SEARCH
        assert job.blocks == []

    def test_nested_metadata_is_invalid(self):
        with pytest.raises(InvalidPayloadError) as exc_info:
            ConversionJob.from_payload(job_payload([], metadata={"a": {"b": 1}}))
        assert exc_info.value.field == "metadata"

    def test_non_string_title(self):
        with pytest.raises(InvalidPayloadError):
            ConversionJob.from_payload(job_payload([], title=5))

    def test_job_owns_copies(self):
        """Later changes to the payload do not reach the job."""
        payload = job_payload([paragraph("x")], metadata={"tags": ["a"]})
        job = ConversionJob.from_payload(payload)
        payload["blocks"][0]["type"] = "heading"
        payload["metadata"]["tags"].append("b")

        assert job.blocks[0]["type"] == "paragraph"
        assert job.metadata == {"tags": ["a"]}


class TestJobResult:
    """Test cases for JobResult state transitions."""

    def test_happy_path(self):
        result = JobResult(message_id="m")
        for state in (JobState.RECEIVED, JobState.VALIDATING, JobState.RENDERING,
                      JobState.PERSISTING, JobState.COMPLETED):
            result.transition(state)
        assert result.state == JobState.COMPLETED
        assert len(result.transitions) == 5

    def test_failed_reachable_from_rendering(self):
        result = JobResult(message_id="m")
        for state in (JobState.RECEIVED, JobState.VALIDATING, JobState.RENDERING, JobState.FAILED):
            result.transition(state)
        assert result.state == JobState.FAILED

    def test_invalid_transition(self):
        result = JobResult(message_id="m")
        result.transition(JobState.RECEIVED)
        with pytest.raises(ValueError):
            result.transition(JobState.COMPLETED)

    def test_terminal_states(self):
        result = JobResult(message_id="m")
        result.transition(JobState.RECEIVED)
        result.transition(JobState.FAILED)
        with pytest.raises(ValueError):
            result.transition(JobState.VALIDATING)
