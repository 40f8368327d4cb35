"""Tests for SQL normalization and hashing."""

import hashlib

from sqlshift.assets.hasher import hash_sql, normalize_sql


class TestNormalizeSql:
    def test_trims_and_normalizes_line_endings(self):
        """CRLF and CR become LF; outer whitespace is removed."""
        assert normalize_sql("  \r\nSELECT 1;\r\nGO\rSELECT 2;  \n\n") == "SELECT 1;\nGO\nSELECT 2;"

    def test_strips_trailing_whitespace_per_line(self):
        """Trailing spaces and tabs are dropped, leading ones kept."""
        assert normalize_sql("SELECT 1;   \n    FROM t\t\n") == "SELECT 1;\n    FROM t"

    def test_keeps_internal_spacing(self):
        """Whitespace inside a line is untouched."""
        assert normalize_sql("SELECT  1;") == "SELECT  1;"


class TestHashSql:
    def test_line_endings_do_not_change_hash(self):
        """CRLF and LF variants hash identically."""
        assert hash_sql("SELECT 1;\r\n") == hash_sql("SELECT 1;\n")

    def test_trailing_whitespace_does_not_change_hash(self):
        """Per-line trailing whitespace is ignored."""
        assert hash_sql("SELECT 1;   \nGO  ") == hash_sql("SELECT 1;\nGO")

    def test_internal_spacing_changes_hash(self):
        """Any other byte difference changes the hash."""
        assert hash_sql("SELECT  1;") != hash_sql("SELECT 1;")

    def test_comment_changes_hash(self):
        """Comments are not stripped."""
        assert hash_sql("SELECT 1; -- a") != hash_sql("SELECT 1; -- b")

    def test_uppercase_sha256_hex(self):
        """Hash is SHA-256 of the UTF-8 normalized text, uppercase hex."""
        expected = hashlib.sha256("SELECT 'ñ';".encode("utf-8")).hexdigest().upper()
        result = hash_sql("  SELECT 'ñ';\r\n")
        assert result == expected
        assert len(result) == 64
        assert result == result.upper()
