"""Scanner configuration loaded from environment variables."""
import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Search no further than this for the first frames; audio data can start at
# quite large offsets in real files.
DEFAULT_SEARCH_LIMIT_BYTES = 512 * 1024
# Find this many frames before assuming the buffer is MPEG audio
DEFAULT_MIN_FRAMES = 3
# Extra PCM room for slightly incorrect song times
DEFAULT_DECODE_CUSHION_MS = 2000


@dataclass(frozen=True)
class ScanConfig:
    search_limit_bytes: int = DEFAULT_SEARCH_LIMIT_BYTES
    min_frames: int = DEFAULT_MIN_FRAMES
    decode_cushion_ms: int = DEFAULT_DECODE_CUSHION_MS
    log_level: str = "INFO"

    def __post_init__(self):
        if self.search_limit_bytes <= 0:
            raise ValueError(f"search_limit_bytes must be positive, got {self.search_limit_bytes}")
        if self.min_frames <= 0:
            raise ValueError(f"min_frames must be positive, got {self.min_frames}")
        if self.decode_cushion_ms < 0:
            raise ValueError(f"decode_cushion_ms must not be negative, got {self.decode_cushion_ms}")

    @staticmethod
    def from_env() -> "ScanConfig":
        """Load config from .env file and environment variables."""
        load_dotenv()
        return ScanConfig(
            search_limit_bytes=int(os.getenv("MPEGAUDIO_SEARCH_LIMIT_BYTES", str(DEFAULT_SEARCH_LIMIT_BYTES))),
            min_frames=int(os.getenv("MPEGAUDIO_MIN_FRAMES", str(DEFAULT_MIN_FRAMES))),
            decode_cushion_ms=int(os.getenv("MPEGAUDIO_DECODE_CUSHION_MS", str(DEFAULT_DECODE_CUSHION_MS))),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
