"""Unit tests for storage.keys module."""

import pytest

from notemark.storage.errors import InvalidKeyError
from notemark.storage.keys import dead_letter_key, output_key, validate_component


class TestOutputKey:
    """Test cases for output_key."""

    def test_version_qualified_key(self):
        assert output_key("note-1", 3) == "notes/note-1/versions/3/content.md"

    def test_user_scoped_key(self):
        assert output_key("note-1", "v2", user_id="u_42") == (
            "users/u_42/notes/note-1/versions/v2/content.md"
        )

    def test_versions_never_collide(self):
        assert output_key("n", 1) != output_key("n", 2)

    @pytest.mark.parametrize("bad", ["..", ".", "a/b", "", "a b", "ü"])
    def test_unsafe_document_id(self, bad):
        with pytest.raises(InvalidKeyError):
            output_key(bad, 1)

    def test_unsafe_user_id(self):
        with pytest.raises(InvalidKeyError):
            output_key("n", 1, user_id="../etc")


class TestValidateComponent:
    """Test cases for validate_component."""

    def test_integers_are_stringified(self):
        assert validate_component(7) == "7"

    def test_booleans_are_rejected(self):
        with pytest.raises(InvalidKeyError):
            validate_component(True)


class TestDeadLetterKey:
    """Test cases for dead_letter_key."""

    def test_layout(self):
        key = dead_letter_key("dead-letter-queue", "note-1", "msg-9", 1700000000123)
        assert key == "dead-letter-queue/note-1/1700000000123-msg-9.json"

    def test_unusable_document_id_is_replaced(self):
        key = dead_letter_key("dlq", "../x", "m", 1)
        assert key == "dlq/_unknown/1-m.json"

    def test_missing_document_id(self):
        assert dead_letter_key("dlq", None, "m", 1) == "dlq/_unknown/1-m.json"

    def test_message_id_is_sanitized(self):
        assert dead_letter_key("dlq", "n", "a/b c", 5) == "dlq/n/5-a_b_c.json"

    def test_nested_prefix(self):
        assert dead_letter_key("ops/dlq/", "n", "m", 5) == "ops/dlq/n/5-m.json"
