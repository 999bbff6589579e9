import os
import sys
import tempfile
import unittest
import wave
from pathlib import Path

import numpy as np

# Add src directory to path for imports
BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from mpegaudio.pcm import PcmChannelCount, PcmData


class TestPcmFormat(unittest.TestCase):

    def test_stereo_44100(self):
        pcm = PcmData(PcmChannelCount.STEREO, 44100)
        self.assertEqual(pcm.block_alignment, 4)
        self.assertEqual(pcm.bytes_per_second, 176400)

    def test_channel_count_from_int(self):
        pcm = PcmData()
        pcm.set_channel_count_as_int(2)
        self.assertEqual(pcm.channel_count, PcmChannelCount.STEREO)
        pcm.set_channel_count_as_int(1)
        self.assertEqual(pcm.channel_count, PcmChannelCount.MONO)

    def test_estimate_includes_cushion(self):
        pcm = PcmData(PcmChannelCount.STEREO, 44100)
        # (1000 + 2000) ms of 16-bit stereo at 44.1 kHz
        self.assertEqual(pcm.estimate_size(1000), 3 * 176400)
        pcm = PcmData(PcmChannelCount.MONO, 8000, cushion_ms=0)
        self.assertEqual(pcm.estimate_size(500), 8000)

    def test_estimate_for_long_audio(self):
        pcm = PcmData(PcmChannelCount.STEREO, 48000, cushion_ms=0)
        twelve_hours_ms = 12 * 3600 * 1000
        self.assertEqual(pcm.estimate_size(twelve_hours_ms), 12 * 3600 * 48000 * 4)

    def test_prepare_resets_buffer(self):
        pcm = PcmData(PcmChannelCount.MONO, 8000)
        pcm.append_pcm(b"\x01\x00" * 10)
        pcm.prepare_buffer(100)
        self.assertEqual(pcm.size, 0)
        self.assertEqual(pcm.estimated_size, pcm.estimate_size(100))


class TestPositionConversion(unittest.TestCase):

    def setUp(self):
        self.pcm = PcmData(PcmChannelCount.STEREO, 44100)
        self.pcm.append_pcm(bytes(176400))  # one second

    def test_bytes_to_ms(self):
        self.assertEqual(self.pcm.bytes_to_ms(0), 0)
        self.assertEqual(self.pcm.bytes_to_ms(88200), 500)
        self.assertEqual(self.pcm.bytes_to_ms(176400), 1000)

    def test_bytes_to_ms_clamped(self):
        self.assertEqual(self.pcm.bytes_to_ms(10 * 176400), 1000)

    def test_ms_to_bytes_block_aligned(self):
        self.assertEqual(self.pcm.ms_to_bytes(500), 88200)
        offset = self.pcm.ms_to_bytes(1)  # 176.4 bytes
        self.assertEqual(offset % self.pcm.block_alignment, 0)
        self.assertEqual(offset, 176)

    def test_ms_to_bytes_clamped(self):
        self.assertEqual(self.pcm.ms_to_bytes(5000), 176400)

    def test_no_rate_set(self):
        self.assertEqual(PcmData().bytes_to_ms(100), 0)


class TestPcmOutput(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_as_array_shape(self):
        pcm = PcmData(PcmChannelCount.STEREO, 8000)
        samples = np.arange(-50, 50, dtype="<i2")
        pcm.append_pcm(samples.tobytes())
        arr = pcm.as_array()
        self.assertEqual(arr.shape, (50, 2))
        self.assertEqual(arr.dtype, np.int16)
        self.assertEqual(int(arr[0, 0]), -50)
        self.assertEqual(int(arr[0, 1]), -49)

    def test_as_array_empty(self):
        self.assertEqual(PcmData(PcmChannelCount.MONO, 8000).as_array().shape, (0, 1))

    def test_write_wav(self):
        pcm = PcmData(PcmChannelCount.MONO, 8000)
        samples = (np.sin(np.arange(800) / 10.0) * 1000).astype("<i2")
        pcm.append_pcm(samples.tobytes())
        out = os.path.join(self.tmpdir.name, "out.wav")
        pcm.write_wav(out)

        with wave.open(out, "rb") as wf:
            self.assertEqual(wf.getnchannels(), 1)
            self.assertEqual(wf.getsampwidth(), 2)
            self.assertEqual(wf.getframerate(), 8000)
            self.assertEqual(wf.getnframes(), 800)
            self.assertEqual(wf.readframes(800), samples.tobytes())


if __name__ == "__main__":
    unittest.main()
