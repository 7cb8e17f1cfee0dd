"""
Tests for src/filenotary/fs/blobs.py
"""

import hashlib
import io
import tempfile
import unittest
from pathlib import Path

from filenotary.fs.blobs import BlobNotFoundError, BlobStore


class _FailingStream(io.RawIOBase):
    def __init__(self, first: bytes):
        self._first = first
        self._sent = False

    def readable(self):
        return True

    def read(self, size=-1):
        if not self._sent:
            self._sent = True
            return self._first
        raise OSError("connection reset")


class TestBlobStore(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name) / "blobs"
        self.blobs = BlobStore(self.root)

    def tearDown(self):
        self._tmp.cleanup()

    def test_put_then_open_and_stat(self):
        data = b"%PDF-1.4" + b"x" * 200000
        chunks = []
        info = self.blobs.put_stream(
            io.BytesIO(data),
            filename="paper.pdf",
            content_type="application/pdf",
            on_chunk=chunks.append,
        )

        self.assertEqual(info.size, len(data))
        self.assertEqual(info.sha1, hashlib.sha1(data).hexdigest())
        self.assertEqual(b"".join(chunks), data)
        self.assertGreater(len(chunks), 1)

        with self.blobs.open(info.handle) as f:
            self.assertEqual(f.read(), data)

        self.assertEqual(self.blobs.stat(info.handle), info)
        self.assertEqual(self.blobs.stat(info.handle).filename, "paper.pdf")

    def test_handles_are_unique_for_same_content(self):
        a = self.blobs.put_stream(io.BytesIO(b"same"))
        b = self.blobs.put_stream(io.BytesIO(b"same"))
        self.assertNotEqual(a.handle, b.handle)
        self.assertEqual(a.sha1, b.sha1)

    def test_empty_payload(self):
        info = self.blobs.put_stream(io.BytesIO(b""))
        self.assertEqual(info.size, 0)
        self.assertIsNone(info.filename)
        with self.blobs.open(info.handle) as f:
            self.assertEqual(f.read(), b"")

    def test_unknown_and_malformed_handles(self):
        for handle in ["0" * 32, "../../etc/passwd", "", "ABCDEF", "a" * 32 + "\n"]:
            with self.assertRaises(BlobNotFoundError):
                self.blobs.open(handle)
            with self.assertRaises(BlobNotFoundError):
                self.blobs.stat(handle)

    def test_delete(self):
        info = self.blobs.put_stream(io.BytesIO(b"bye"))
        self.blobs.delete(info.handle)
        with self.assertRaises(BlobNotFoundError):
            self.blobs.stat(info.handle)
        # Deleting twice is harmless
        self.blobs.delete(info.handle)

    def test_failed_copy_leaves_nothing_behind(self):
        with self.assertRaises(OSError):
            self.blobs.put_stream(_FailingStream(b"partial"))

        leftovers = [p for p in self.root.rglob("*") if p.is_file()]
        self.assertEqual(leftovers, [])


if __name__ == "__main__":
    unittest.main()
