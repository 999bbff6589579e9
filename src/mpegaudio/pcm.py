"""16-bit PCM buffer sized from a scan summary, plus WAV output."""
import logging
import wave
from enum import IntEnum

import numpy as np

from .config import DEFAULT_DECODE_CUSHION_MS

logger = logging.getLogger(__name__)

PCM_BITS_PER_SAMPLE = 16
MS_PER_SECOND = 1000


class PcmChannelCount(IntEnum):
    MONO = 1
    STEREO = 2


def _round_half_up(x: float) -> int:
    return int(x + 0.5)


class PcmData:
    def __init__(self, channel_count: PcmChannelCount = PcmChannelCount.MONO, samples_per_second: int = 0,
                 cushion_ms: int = DEFAULT_DECODE_CUSHION_MS):
        self.channel_count = PcmChannelCount(channel_count)
        self.bits_per_sample = PCM_BITS_PER_SAMPLE
        self.samples_per_second = int(samples_per_second)
        self.cushion_ms = cushion_ms
        self.estimated_size = 0
        self._pcm = bytearray()

    def set_channel_count_as_int(self, channels: int):
        self.channel_count = PcmChannelCount.MONO if channels == 1 else PcmChannelCount.STEREO

    @property
    def block_alignment(self) -> int:
        return int(self.channel_count) * self.bits_per_sample // 8

    @property
    def bytes_per_second(self) -> int:
        return self.block_alignment * self.samples_per_second

    @property
    def size(self) -> int:
        return len(self._pcm)

    @property
    def data(self) -> bytes:
        return bytes(self._pcm)

    def estimate_size(self, audio_ms: int) -> int:
        """Bytes needed for `audio_ms` of audio plus the decode cushion."""
        ms = int(audio_ms) + self.cushion_ms
        sample_count = ms * self.samples_per_second // MS_PER_SECOND
        return sample_count * (self.bits_per_sample // 8) * int(self.channel_count)

    def prepare_buffer(self, audio_ms: int):
        self.estimated_size = self.estimate_size(audio_ms)
        self._pcm = bytearray()

    def append_pcm(self, data: bytes):
        self._pcm.extend(data)
        if self.estimated_size and len(self._pcm) > self.estimated_size:
            logger.debug("PCM buffer grew past estimate (%d > %d bytes)", len(self._pcm), self.estimated_size)

    def bytes_to_ms(self, byte_position: int) -> int:
        bps = float(self.bytes_per_second)
        if bps <= 0:
            return 0
        ms = _round_half_up(byte_position / bps * MS_PER_SECOND)
        # never refer past the end of the data
        max_ms = _round_half_up(self.size / bps * MS_PER_SECOND)
        return min(ms, max_ms)

    def ms_to_bytes(self, position_ms: int) -> int:
        bytes_per_ms = self.bytes_per_second / float(MS_PER_SECOND)
        offset = _round_half_up(position_ms * bytes_per_ms)
        align = self.block_alignment
        offset = offset // align * align
        return min(offset, self.size)

    def as_array(self) -> np.ndarray:
        """Samples as int16, shaped (frames, channels)."""
        usable = self.size - self.size % self.block_alignment
        arr = np.frombuffer(bytes(self._pcm[:usable]), dtype="<i2").astype(np.int16)
        return arr.reshape((-1, int(self.channel_count)))

    def write_wav(self, out_path: str):
        pcm = self.as_array()
        with wave.open(str(out_path), "wb") as wf:
            wf.setnchannels(int(self.channel_count))
            wf.setsampwidth(self.bits_per_sample // 8)
            wf.setframerate(int(self.samples_per_second))
            wf.writeframes(pcm.astype("<i2").tobytes())
