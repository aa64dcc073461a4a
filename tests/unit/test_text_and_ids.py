"""
Test suite for text fingerprinting and id coercion.

System role: Verification of dedup keys, token estimates and UUID parsing
"""

import uuid

import pytest

from segment_index.core.exceptions import InvalidInputError
from segment_index.core.ids import coerce_uuid, coerce_uuids
from segment_index.core.text import content_hash, estimate_token_count, normalize_text


class TestNormalizeText:
    """Test suite for normalize_text() and content_hash()."""

    def test_normalize_should_collapse_whitespace_and_strip(self) -> None:
        """Test runs of spaces, tabs and newlines become one space."""
        assert normalize_text("  hello \n\t  world  ") == "hello world"

    def test_normalize_should_apply_nfkc(self) -> None:
        """Test compatibility forms (fullwidth letters) fold to their plain form."""
        assert normalize_text("ＡＢＣ") == "ABC"

    def test_content_hash_should_ignore_whitespace_variants(self) -> None:
        """Test texts differing only in whitespace share a fingerprint."""
        assert content_hash("The  quick\nfox") == content_hash(" The quick fox ")

    def test_content_hash_should_differ_for_different_text(self) -> None:
        """Test distinct content gets distinct fingerprints."""
        assert content_hash("alpha") != content_hash("beta")

    def test_content_hash_should_be_sha256_hex(self) -> None:
        """Test the fingerprint is a 64-char hex digest."""
        digest = content_hash("alpha")

        assert len(digest) == 64
        int(digest, 16)


class TestEstimateTokenCount:
    """Test suite for estimate_token_count()."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("", 0),
            ("abcd", 1),
            ("abcde", 2),
            ("abcdefgh", 2),
        ],
    )
    def test_estimate_should_use_four_chars_per_token(self, text: str, expected: int) -> None:
        """Test latin text counts one token per four characters, rounded up."""
        assert estimate_token_count(text) == expected

    def test_estimate_should_weight_cjk_text(self) -> None:
        """Test CJK text counts 0.7 tokens per character, rounded up."""
        assert estimate_token_count("你好世界") == 3


class TestCoerceUuid:
    """Test suite for coerce_uuid() and coerce_uuids()."""

    def test_coerce_should_accept_uuid_and_string(self) -> None:
        """Test UUID objects pass through and strings are parsed."""
        value = uuid.uuid4()

        assert coerce_uuid(value) is value
        assert coerce_uuid(str(value)) == value

    def test_coerce_should_reject_garbage_with_field_name(self) -> None:
        """Test invalid ids raise InvalidInputError naming the field."""
        with pytest.raises(InvalidInputError) as exc_info:
            coerce_uuid("not-a-uuid", "parent_id")

        assert exc_info.value.details["field"] == "parent_id"

    def test_coerce_uuids_should_reject_single_string(self) -> None:
        """Test a bare string is not mistaken for a list of characters."""
        with pytest.raises(InvalidInputError):
            coerce_uuids(str(uuid.uuid4()))

    def test_coerce_uuids_should_preserve_order(self) -> None:
        """Test every element is converted in order."""
        ids = [uuid.uuid4(), uuid.uuid4()]

        assert coerce_uuids([str(ids[0]), ids[1]]) == ids
