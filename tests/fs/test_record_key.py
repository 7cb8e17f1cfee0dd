"""
Tests for src/filenotary/fs/hashing.py

Covers:
- Record key determinism and fixed field order
- Sensitivity to every input
- Key format and configurable length
- Streaming hashers
"""

import hashlib
import io
import unittest
from datetime import datetime, timezone

from filenotary.fs.hashing import (
    RecordKeyHasher,
    StreamHasher,
    compute_bytes_sha1,
    compute_record_key,
    compute_stream_sha1,
)

HEX = set("0123456789abcdef")

REPORT = b"%PDF-1.4 minimal report"
ARCHIVE = b"PK\x03\x04 minimal archive"


class TestRecordKey(unittest.TestCase):
    def test_known_answer_for_fixed_field_order(self):
        """Key is the 10-char SHA-1 prefix of name, email, comments, report, archive."""
        expected = hashlib.sha1(b"Bob" + b"bob@ku.dk" + b"test" + REPORT + ARCHIVE).hexdigest()[:10]
        key = compute_record_key("Bob", "bob@ku.dk", "test", REPORT, ARCHIVE)
        self.assertEqual(key, expected)

    def test_deterministic(self):
        first = compute_record_key("Alice", "alice@ku.dk", "", REPORT, ARCHIVE)
        second = compute_record_key("Alice", "alice@ku.dk", "", REPORT, ARCHIVE)
        self.assertEqual(first, second)

    def test_always_ten_lowercase_hex_chars(self):
        for name, comments in [("", ""), ("Ærø Ünicode", "ñ\n"), ("x" * 1000, "y")]:
            key = compute_record_key(name, "a@ku.dk", comments, b"", b"")
            self.assertEqual(len(key), 10)
            self.assertTrue(set(key) <= HEX, key)

    def test_empty_inputs_are_valid(self):
        expected = hashlib.sha1(b"").hexdigest()[:10]
        self.assertEqual(compute_record_key("", "", "", b"", b""), expected)

    def test_every_input_changes_the_key(self):
        base = dict(name="Bob", email="bob@ku.dk", comments="test", report=REPORT, archive=ARCHIVE)
        base_key = compute_record_key(**base)

        variants = [
            dict(base, name="Bob."),
            dict(base, email="bob@ku.dj"),
            dict(base, comments="tesT"),
            dict(base, report=REPORT[:-1] + b"X"),
            dict(base, archive=b"Q" + ARCHIVE[1:]),
        ]
        for variant in variants:
            self.assertNotEqual(compute_record_key(**variant), base_key, variant)

    def test_timestamp_variant_differs_and_is_stable(self):
        ts = datetime(2011, 10, 5, 14, 48, 0, tzinfo=timezone.utc)
        with_ts = compute_record_key("Bob", "bob@ku.dk", "test", REPORT, ARCHIVE, timestamp=ts)
        expected = hashlib.sha1(
            b"Bob" + b"bob@ku.dk" + b"test" + b"2011-10-05T14:48:00Z" + REPORT + ARCHIVE
        ).hexdigest()[:10]
        self.assertEqual(with_ts, expected)
        self.assertNotEqual(with_ts, compute_record_key("Bob", "bob@ku.dk", "test", REPORT, ARCHIVE))

    def test_configurable_length(self):
        full = hashlib.sha1(b"nec" + REPORT + ARCHIVE).hexdigest()
        self.assertEqual(compute_record_key("n", "e", "c", REPORT, ARCHIVE, length=40), full)
        self.assertEqual(compute_record_key("n", "e", "c", REPORT, ARCHIVE, length=16), full[:16])

    def test_length_out_of_range(self):
        with self.assertRaisesRegex(ValueError, "between 1 and 40"):
            compute_record_key("n", "e", "c", b"", b"", length=0)
        with self.assertRaisesRegex(ValueError, "between 1 and 40"):
            compute_record_key("n", "e", "c", b"", b"", length=41)


class TestRecordKeyHasher(unittest.TestCase):
    def test_chunking_does_not_matter(self):
        hasher = RecordKeyHasher("Bob", "bob@ku.dk", "test")
        for i in range(0, len(REPORT), 3):
            hasher.update(REPORT[i:i + 3])
        hasher.update(ARCHIVE[:5])
        hasher.update(ARCHIVE[5:])
        self.assertEqual(hasher.key(), compute_record_key("Bob", "bob@ku.dk", "test", REPORT, ARCHIVE))


class TestPayloadDigests(unittest.TestCase):
    def test_bytes_and_stream_agree(self):
        data = b"payload" * 20000
        expected = hashlib.sha1(data).hexdigest()
        self.assertEqual(compute_bytes_sha1(data), expected)
        self.assertEqual(compute_stream_sha1(io.BytesIO(data)), expected)

    def test_stream_hasher_tracks_size(self):
        hasher = StreamHasher()
        hasher.update(b"abc")
        hasher.update(b"defg")
        self.assertEqual(hasher.size, 7)
        self.assertEqual(hasher.hexdigest(), hashlib.sha1(b"abcdefg").hexdigest())


if __name__ == "__main__":
    unittest.main()
