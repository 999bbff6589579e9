import logging
import time
from typing import Optional, Tuple

import numpy as np

try:
    import pygame
    from pygame import sndarray
except Exception:
    pygame = None
    sndarray = None

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

from .config import ScanConfig
from .errors import DecodeError, PlaybackError
from .mp3stream import AudioStreamSummary
from .pcm import PCM_BITS_PER_SAMPLE, PcmData
from .reader import load_mp3

logger = logging.getLogger(__name__)

MIXER_BUFFER = 1024


def decode_mp3(path: str, summary: AudioStreamSummary, config: Optional[ScanConfig] = None) -> PcmData:
    """Decode an MP3 into a PcmData sized from its scan summary.

    Decoding itself is done by pydub, which requires ffmpeg to be present in
    the environment.
    """
    config = config or ScanConfig()
    pcm = PcmData(cushion_ms=config.decode_cushion_ms)
    pcm.set_channel_count_as_int(summary.channel_count)
    pcm.samples_per_second = summary.sampling_rate_hz
    pcm.prepare_buffer(summary.duration_ms)

    try:
        seg = AudioSegment.from_file(str(path), format="mp3")
    except (CouldntDecodeError, OSError) as e:
        raise DecodeError(f"Cannot decode {path}: {e}") from e
    seg = (seg.set_sample_width(PCM_BITS_PER_SAMPLE // 8)
              .set_channels(int(pcm.channel_count))
              .set_frame_rate(pcm.samples_per_second))
    pcm.append_pcm(seg.raw_data)
    logger.debug("Decoded %s: %d PCM bytes (estimated %d)", path, pcm.size, pcm.estimated_size)
    return pcm


class WavePlayer:
    """Plays an MP3 by decoding it to PCM and handing it to the pygame mixer."""

    def __init__(self, config: Optional[ScanConfig] = None):
        self.config = config or ScanConfig()
        self.pcm: Optional[PcmData] = None
        self.summary: Optional[AudioStreamSummary] = None
        self.sound = None
        self.channel = None
        self.loaded_path: Optional[str] = None
        self._volume: Tuple[float, float] = (1.0, 1.0)
        self._start_ms = 0
        self._started_at: Optional[float] = None
        self._paused_at: Optional[float] = None

    def _ensure_pygame(self):
        if pygame is None or sndarray is None:
            raise PlaybackError("Module 'pygame' is required. Install with: pip install pygame")

    def load_mp3(self, path: str) -> bool:
        """Scan, decode and open the mixer. False when the file holds no MPEG audio."""
        self._ensure_pygame()
        summary = load_mp3(path, skip_id3=True, config=self.config)
        if not summary.has_mpeg_audio:
            return False

        pcm = decode_mp3(path, summary, self.config)
        self.stop()
        try:
            pygame.mixer.quit()
        except Exception:
            pass
        pygame.mixer.init(frequency=pcm.samples_per_second, size=-PCM_BITS_PER_SAMPLE,
                          channels=int(pcm.channel_count), buffer=MIXER_BUFFER)

        self.pcm = pcm
        self.summary = summary
        self.loaded_path = str(path)
        self._start_ms = 0
        self._started_at = None
        logger.info("Loaded %s (%d ms, %d Hz, %d ch)", path, summary.duration_ms,
                    summary.sampling_rate_hz, summary.channel_count)
        return True

    def start(self, position_ms: int = 0):
        self._ensure_pygame()
        if self.pcm is None:
            raise PlaybackError("No audio loaded")
        self.stop()
        first_frame = self.pcm.ms_to_bytes(position_ms) // self.pcm.block_alignment
        arr = self.pcm.as_array()[first_frame:]
        if arr.shape[0] == 0:
            # nothing left to play
            self._start_ms = self.length_ms
            self._started_at = None
            return
        if arr.shape[1] == 1:
            arr = arr[:, 0]
        self.sound = sndarray.make_sound(np.ascontiguousarray(arr))
        self.channel = self.sound.play()
        if self.channel is not None:
            self.channel.set_volume(*self._volume)
        self._start_ms = self.pcm.bytes_to_ms(first_frame * self.pcm.block_alignment)
        self._started_at = time.monotonic()
        self._paused_at = None

    def pause(self):
        if self.channel is not None and self._paused_at is None:
            self.channel.pause()
            self._paused_at = time.monotonic()

    def restart(self):
        if self.channel is not None and self._paused_at is not None:
            self.channel.unpause()
            self._started_at += time.monotonic() - self._paused_at
            self._paused_at = None

    def stop(self):
        try:
            if self.channel is not None and self.channel.get_busy():
                self.channel.stop()
        finally:
            self.channel = None
            self._paused_at = None

    def is_playing(self) -> bool:
        return bool(self.channel and self.channel.get_busy()) and self._paused_at is None

    def has_ended(self) -> bool:
        return not (self.channel and self.channel.get_busy())

    @property
    def length_ms(self) -> int:
        return self.pcm.bytes_to_ms(self.pcm.size) if self.pcm else 0

    @property
    def position_ms(self) -> int:
        if self._started_at is None:
            return self._start_ms
        now = self._paused_at if self._paused_at is not None else time.monotonic()
        played = int((now - self._started_at) * 1000)
        return min(self._start_ms + played, self.length_ms)

    @property
    def volume(self) -> Tuple[float, float]:
        return self._volume

    @volume.setter
    def volume(self, value: Tuple[float, float]):
        left, right = (min(max(float(v), 0.0), 1.0) for v in value)
        self._volume = (left, right)
        if self.channel is not None:
            self.channel.set_volume(left, right)
