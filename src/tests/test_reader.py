import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

# Add src and tests directories to path for imports
BASE_DIR = Path(__file__).resolve().parents[1]
for _p in (BASE_DIR, Path(__file__).resolve().parent):
    if str(_p) not in sys.path:
        sys.path.insert(0, str(_p))

from mpegaudio.errors import AudioLoadError
from mpegaudio.reader import id3v2_tag_size, load_mp3
from mp3_fixtures import frames, id3v2_tag


class TestId3TagSize(unittest.TestCase):

    def test_no_tag(self):
        self.assertEqual(id3v2_tag_size(b""), 0)
        self.assertEqual(id3v2_tag_size(frames(1)), 0)
        self.assertEqual(id3v2_tag_size(b"ID3"), 0)

    def test_syncsafe_size(self):
        self.assertEqual(id3v2_tag_size(id3v2_tag(0)), 10)
        self.assertEqual(id3v2_tag_size(id3v2_tag(300)), 310)
        self.assertEqual(id3v2_tag_size(id3v2_tag(200000)), 200010)

    def test_footer(self):
        self.assertEqual(id3v2_tag_size(id3v2_tag(50, footer=True)), 70)

    def test_size_not_syncsafe(self):
        self.assertEqual(id3v2_tag_size(b"ID3\x04\x00\x00\x80\x00\x00\x00"), 0)


class TestLoadMp3(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.tag = id3v2_tag(1000)
        self.mp3 = os.path.join(self.tmpdir.name, "song.mp3")
        Path(self.mp3).write_bytes(self.tag + frames(20))

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_load_without_hint(self):
        summary = load_mp3(self.mp3)
        self.assertTrue(summary.has_mpeg_audio)
        self.assertEqual(summary.frame_count, 20)
        self.assertEqual(summary.offset_hint, 0)
        self.assertEqual(summary.audio_offset, len(self.tag))

    def test_skip_id3_sets_hint(self):
        summary = load_mp3(self.mp3, skip_id3=True)
        self.assertEqual(summary.offset_hint, len(self.tag))
        self.assertEqual(summary.first_frame_offset, 0)
        self.assertEqual(summary.audio_offset, len(self.tag))
        self.assertEqual(summary.frame_count, 20)

    def test_explicit_hint(self):
        summary = load_mp3(self.mp3, offset_hint=len(self.tag) + 417)
        self.assertEqual(summary.frame_count, 19)
        self.assertEqual(summary.audio_offset, len(self.tag) + 417)

    def test_hint_past_end_reads_whole_file(self):
        size = os.path.getsize(self.mp3)
        summary = load_mp3(self.mp3, offset_hint=size)
        self.assertEqual(summary.offset_hint, 0)
        self.assertEqual(summary.frame_count, 20)

    def test_not_mpeg(self):
        path = os.path.join(self.tmpdir.name, "notes.txt")
        Path(path).write_text("hello world\n" * 100)
        summary = load_mp3(path, skip_id3=True)
        self.assertFalse(summary.has_mpeg_audio)

    def test_missing_file(self):
        with self.assertRaises(AudioLoadError):
            load_mp3(os.path.join(self.tmpdir.name, "missing.mp3"))

    def test_file_is_closed(self):
        opened = []
        real_open = open

        def tracking_open(*args, **kwargs):
            f = real_open(*args, **kwargs)
            opened.append(f)
            return f

        with patch("builtins.open", side_effect=tracking_open):
            load_mp3(self.mp3)
        self.assertEqual(len(opened), 1)
        self.assertTrue(opened[0].closed)


if __name__ == "__main__":
    unittest.main()
