import bisect
import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from .config import ScanConfig
from .frame_header import (
    HEADER_SIZE,
    SYNC_BYTE,
    FrameHeader,
    MpegLayer,
    MpegVersion,
)

logger = logging.getLogger(__name__)

MS_PER_SECOND = 1000.0


@dataclass(frozen=True)
class AudioStreamSummary:
    """Result of one scan. Empty when no MPEG audio was found."""
    buffer: bytes = field(default=b"", repr=False)
    offset_hint: int = 0
    first_frame_offset: Optional[int] = None
    first_header: Optional[FrameHeader] = None
    duration_seconds: float = 0.0
    frame_offsets: Tuple[int, ...] = field(default=(), repr=False)

    @property
    def has_mpeg_audio(self) -> bool:
        return self.first_header is not None and self.first_header.is_valid()

    @property
    def version(self) -> MpegVersion:
        return self.first_header.version if self.has_mpeg_audio else MpegVersion.NONE

    @property
    def layer(self) -> MpegLayer:
        return self.first_header.layer if self.has_mpeg_audio else MpegLayer.NONE

    @property
    def frame_count(self) -> int:
        return len(self.frame_offsets)

    @property
    def duration_ms(self) -> int:
        # round half up, the total is never negative
        return int(self.duration_seconds * MS_PER_SECOND + 0.5)

    @property
    def sampling_rate_hz(self) -> int:
        return self.first_header.sampling_rate_hz if self.has_mpeg_audio else 0

    @property
    def channel_count(self) -> int:
        return self.first_header.channel_count if self.has_mpeg_audio else 0

    @property
    def audio_offset(self) -> Optional[int]:
        """Offset of the first frame within the data originally scanned."""
        if self.first_frame_offset is None:
            return None
        return self.offset_hint + self.first_frame_offset

    def iter_frames(self) -> Iterator[Tuple[int, FrameHeader]]:
        """(offset, header) for each counted frame, headers re-read from the buffer."""
        for offset in self.frame_offsets:
            yield offset, FrameHeader.from_bytes(self.buffer, offset)

    def as_dict(self) -> dict:
        return {
            "has_mpeg_audio": self.has_mpeg_audio,
            "version": self.version.value,
            "layer": self.layer.value,
            "duration_ms": self.duration_ms,
            "frame_count": self.frame_count,
            "sampling_rate_hz": self.sampling_rate_hz,
            "channel_count": self.channel_count,
            "audio_offset": self.audio_offset,
        }


def _header_at(buf: bytes, pos: int) -> Optional[FrameHeader]:
    if buf[pos] != SYNC_BYTE or pos + HEADER_SIZE > len(buf):
        return None
    return FrameHeader.from_bytes(buf, pos)


def _is_mp3_frame(hdr: Optional[FrameHeader]) -> bool:
    return (hdr is not None
            and hdr.is_valid()
            and hdr.version == MpegVersion.V1
            and hdr.layer == MpegLayer.LAYER_III)


class StreamScanner:
    """Locates MPEG-1 Layer III frames in a buffer and totals the stream.

    Sync acquisition only accepts V1 Layer III frames, but the accounting pass
    counts any valid header once the stream has been recognized. A stream that
    starts as MP3 and later switches version or layer is still totalled.
    """

    def __init__(self, config: Optional[ScanConfig] = None):
        self.config = config or ScanConfig()

    def scan(self, data, offset_hint: int = 0) -> AudioStreamSummary:
        if offset_hint < 0 or offset_hint >= len(data):
            if offset_hint:
                logger.debug("Offset hint %d outside buffer of %d bytes; scanning from 0", offset_hint, len(data))
            offset_hint = 0
        buf = bytes(data[offset_hint:])

        found = self._find_first_frame(buf)
        if found is None:
            logger.debug("No MPEG-1 Layer III stream in %d bytes", len(buf))
            return AudioStreamSummary(buffer=buf, offset_hint=offset_hint)

        first_offset, first_header = found
        offsets, duration = self._parse_frames(buf, first_offset)
        summary = AudioStreamSummary(
            buffer=buf,
            offset_hint=offset_hint,
            first_frame_offset=first_offset,
            first_header=first_header,
            duration_seconds=duration,
            frame_offsets=tuple(offsets),
        )
        logger.debug("First frame %s at offset %d; %d frames, %d ms",
                     first_header, summary.audio_offset, summary.frame_count, summary.duration_ms)
        return summary

    def _find_first_frame(self, buf: bytes) -> Optional[Tuple[int, FrameHeader]]:
        limit = min(len(buf), self.config.search_limit_bytes)
        first = None
        matches = 0
        i = 0
        while i < limit:
            step = 1
            hdr = _header_at(buf, i)
            if _is_mp3_frame(hdr):
                if first is None:
                    first = (i, hdr)
                matches += 1
                if matches >= self.config.min_frames:
                    break
                # the next header should start right here
                step = hdr.frame_bytes
            i += step

        if matches < self.config.min_frames:
            return None
        return first

    def _parse_frames(self, buf: bytes, start: int) -> Tuple[List[int], float]:
        offsets: List[int] = []
        duration = 0.0
        i = start
        n = len(buf)
        while i < n:
            step = 1
            hdr = _header_at(buf, i)
            if hdr is not None and hdr.is_valid():
                offsets.append(i)
                duration += hdr.frame_duration_seconds
                step = hdr.frame_bytes
            i += step
        return offsets, duration


def scan_mp3(data, offset_hint: int = 0, config: Optional[ScanConfig] = None) -> AudioStreamSummary:
    return StreamScanner(config).scan(data, offset_hint)


def unaccounted_sync_offsets(summary: AudioStreamSummary) -> List[int]:
    """Offsets of valid headers the accounting pass neither counted nor skipped over.

    Diagnostic only. A correct scan always yields an empty list.
    """
    if not summary.has_mpeg_audio:
        return []
    buf = summary.buffer
    starts = list(summary.frame_offsets)
    counted = set(starts)
    missed = []
    for pos in range(summary.first_frame_offset, len(buf)):
        if pos in counted:
            continue
        hdr = _header_at(buf, pos)
        if hdr is None or not hdr.is_valid():
            continue
        idx = bisect.bisect_right(starts, pos) - 1
        if idx >= 0 and pos < starts[idx] + FrameHeader.from_bytes(buf, starts[idx]).frame_bytes:
            continue
        missed.append(pos)
    return missed
