import dataclasses
import logging
import os
import threading
from pathlib import Path
from typing import Optional

from .config import ScanConfig
from .errors import AudioLoadError
from .mp3stream import AudioStreamSummary, StreamScanner

logger = logging.getLogger(__name__)

ID3_HEADER_SIZE = 10
ID3_FOOTER_FLAG = 0x10


def id3v2_tag_size(data: bytes) -> int:
    """Total size of a leading ID3v2 tag, header and footer included; 0 if none.

    Only the 10-byte tag header is read, the tag itself is left alone.
    """
    if len(data) < ID3_HEADER_SIZE or data[:3] != b"ID3":
        return 0
    size_bytes = data[6:10]
    if any(b & 0x80 for b in size_bytes):
        return 0  # not a syncsafe integer, so not a real tag
    size = ((size_bytes[0] & 0x7F) << 21) | ((size_bytes[1] & 0x7F) << 14) | ((size_bytes[2] & 0x7F) << 7) | (size_bytes[3] & 0x7F)
    footer = ID3_HEADER_SIZE if data[5] & ID3_FOOTER_FLAG else 0
    return ID3_HEADER_SIZE + size + footer


def load_mp3(path, offset_hint: int = 0, skip_id3: bool = False, config: Optional[ScanConfig] = None) -> AudioStreamSummary:
    """Read an MP3 file from `offset_hint` onward and scan it.

    With `skip_id3` and no explicit hint, the hint is taken from a leading
    ID3v2 tag. The file handle is closed on a background thread while the
    buffer is scanned.
    """
    path = Path(path)
    try:
        f = open(path, "rb")
    except OSError as e:
        logger.warning("Failed to open MP3 file %s: %s", path, e)
        raise AudioLoadError(f"Cannot open {path}: {e}") from e

    try:
        length = os.fstat(f.fileno()).st_size
        if skip_id3 and not offset_hint:
            offset_hint = id3v2_tag_size(f.read(ID3_HEADER_SIZE))
        if offset_hint < 0 or offset_hint >= length:
            if offset_hint:
                logger.debug("Offset hint %d beyond %s (%d bytes); reading from 0", offset_hint, path, length)
            offset_hint = 0
        f.seek(offset_hint)
        data = f.read()
    except OSError as e:
        f.close()
        logger.warning("Failed to read MP3 file %s: %s", path, e)
        raise AudioLoadError(f"Cannot read {path}: {e}") from e

    closer = threading.Thread(target=f.close, name="mp3-close", daemon=True)
    closer.start()
    try:
        summary = StreamScanner(config).scan(data)
    finally:
        closer.join()

    if not summary.has_mpeg_audio:
        logger.info("%s: no MPEG audio found", path)
    return dataclasses.replace(summary, offset_hint=offset_hint)
