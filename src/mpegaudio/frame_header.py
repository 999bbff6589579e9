"""Decoder for the 32-bit MPEG audio frame header.

Layout and tables follow the MPEG-1/2/2.5 audio frame header as documented at
https://www.mp3-tech.org/programmer/frame_header.html
"""
import struct
from dataclasses import dataclass
from enum import Enum

HEADER_SIZE = 4
SYNC_BYTE = 0xFF  # first 8 bits of the header are always ones
KBPS = 1000  # MPEG uses 1000, not 1024


class MpegField(Enum):
    FRAME_SYNC = "frame_sync"
    VERSION_INDEX = "version_index"
    LAYER_INDEX = "layer_index"
    PROTECTION_BIT = "protection_bit"
    BITRATE_INDEX = "bitrate_index"
    SAMPLING_RATE_FREQ_INDEX = "sampling_rate_freq_index"
    PADDING_BIT = "padding_bit"
    CHANNEL_MODE = "channel_mode"
    MODE_EXTENSION = "mode_extension"
    COPYRIGHT = "copyright"
    ORIGINAL = "original"
    EMPHASIS = "emphasis"


class MpegVersion(Enum):
    NONE = "none"
    V1 = "1"
    V2 = "2"
    V2_5 = "2.5"


class MpegLayer(Enum):
    NONE = "none"
    LAYER_I = "I"
    LAYER_II = "II"
    LAYER_III = "III"


class MpegChannelMode(Enum):
    STEREO = "stereo"
    JOINT_STEREO = "joint_stereo"
    DUAL_CHANNEL = "dual_channel"
    SINGLE_CHANNEL = "mono"


# field -> (shift, mask), shift counted from the least significant bit
FIELD_LAYOUT = {
    MpegField.FRAME_SYNC:               (21, 0b11111111111),
    MpegField.VERSION_INDEX:            (19, 0b11),
    MpegField.LAYER_INDEX:              (17, 0b11),
    MpegField.PROTECTION_BIT:           (16, 0b1),
    MpegField.BITRATE_INDEX:            (12, 0b1111),
    MpegField.SAMPLING_RATE_FREQ_INDEX: (10, 0b11),
    MpegField.PADDING_BIT:              (9,  0b1),
    MpegField.CHANNEL_MODE:             (6,  0b11),
    MpegField.MODE_EXTENSION:           (4,  0b11),
    MpegField.COPYRIGHT:                (3,  0b1),
    MpegField.ORIGINAL:                 (2,  0b1),
    MpegField.EMPHASIS:                 (0,  0b11),
}

# Indexed directly by the raw header values
VERSIONS = (MpegVersion.V2_5, MpegVersion.NONE, MpegVersion.V2, MpegVersion.V1)
LAYERS = (MpegLayer.NONE, MpegLayer.LAYER_III, MpegLayer.LAYER_II, MpegLayer.LAYER_I)
CHANNEL_MODES = (
    MpegChannelMode.STEREO,
    MpegChannelMode.JOINT_STEREO,
    MpegChannelMode.DUAL_CHANNEL,
    MpegChannelMode.SINGLE_CHANNEL,
)

GOOD_FRAME_SYNC = 0b11111111111
VERSION_INDEX_RESERVED = 0b01
LAYER_INDEX_RESERVED = 0b00
SAMPLING_RATE_INDEX_RESERVED = 0b11
BITRATE_INDEX_RESERVED = (0b0000, 0b1111)

# [version index][sampling rate index]; index 3 is reserved
SAMPLING_RATES = (
    (11025, 12000, 8000),   # V2.5
    (0, 0, 0),              # reserved
    (22050, 24000, 16000),  # V2
    (44100, 48000, 32000),  # V1
)

# [version index][layer index]; layer order is None, III, II, I
SAMPLES_PER_FRAME = (
    (0, 576, 1152, 384),   # V2.5
    (0, 0, 0, 0),          # reserved
    (0, 576, 1152, 384),   # V2
    (0, 1152, 1152, 384),  # V1
)

# [layer index]
SLOT_SIZES = (0, 1, 1, 4)

_V1 = (
    # L3   L2   L1
    (0, 0, 0),
    (32, 32, 32), (40, 48, 64), (48, 56, 96), (56, 64, 128),
    (64, 80, 160), (80, 96, 192), (96, 112, 224), (112, 128, 256),
    (128, 160, 288), (160, 192, 320), (192, 224, 352), (224, 256, 384),
    (256, 320, 416), (320, 384, 448),
)
_V2 = (
    (0, 0, 0),
    (8, 8, 32), (16, 16, 48), (24, 24, 56), (32, 32, 64),
    (40, 40, 80), (48, 48, 96), (56, 56, 112), (64, 64, 128),
    (80, 80, 144), (96, 96, 160), (112, 112, 176), (128, 128, 192),
    (144, 144, 224), (160, 160, 256),
)

# Bitrates in kbps, [bitrate index][version index][layer index].
# Index 15 is not allowed, so the table has 15 rows.
BITRATES = tuple(
    (
        (0,) + _V2[i],  # V2.5 shares the V2 column
        (0, 0, 0, 0),   # reserved
        (0,) + _V2[i],
        (0,) + _V1[i],
    )
    for i in range(15)
)


@dataclass(frozen=True)
class FrameHeader:
    """One MPEG audio frame header.

    Only `is_valid()` is safe on arbitrary input; every other accessor assumes
    a valid header and may return garbage (or zero) otherwise.
    """
    word: int = 0

    @classmethod
    def from_bytes(cls, data, offset: int = 0) -> "FrameHeader":
        if offset < 0 or len(data) - offset < HEADER_SIZE:
            raise ValueError(f"Need {HEADER_SIZE} bytes at offset {offset}, buffer has {len(data)}")
        return cls(struct.unpack_from(">I", data, offset)[0])

    def extract(self, field: MpegField) -> int:
        shift, mask = FIELD_LAYOUT[field]
        return (self.word >> shift) & mask

    def is_valid(self) -> bool:
        bitrate_index = self.extract(MpegField.BITRATE_INDEX)
        return (self.extract(MpegField.FRAME_SYNC) == GOOD_FRAME_SYNC
                and self.extract(MpegField.VERSION_INDEX) != VERSION_INDEX_RESERVED
                and self.extract(MpegField.LAYER_INDEX) != LAYER_INDEX_RESERVED
                and bitrate_index not in BITRATE_INDEX_RESERVED
                and self.extract(MpegField.SAMPLING_RATE_FREQ_INDEX) != SAMPLING_RATE_INDEX_RESERVED)

    @property
    def version(self) -> MpegVersion:
        return VERSIONS[self.extract(MpegField.VERSION_INDEX)]

    @property
    def layer(self) -> MpegLayer:
        return LAYERS[self.extract(MpegField.LAYER_INDEX)]

    @property
    def channel_mode(self) -> MpegChannelMode:
        return CHANNEL_MODES[self.extract(MpegField.CHANNEL_MODE)]

    @property
    def channel_count(self) -> int:
        return 1 if self.channel_mode == MpegChannelMode.SINGLE_CHANNEL else 2

    @property
    def bitrate_kbps(self) -> int:
        bitrate_index = self.extract(MpegField.BITRATE_INDEX)
        if bitrate_index >= len(BITRATES):
            return 0
        return BITRATES[bitrate_index][self.extract(MpegField.VERSION_INDEX)][self.extract(MpegField.LAYER_INDEX)]

    @property
    def sampling_rate_hz(self) -> int:
        rate_index = self.extract(MpegField.SAMPLING_RATE_FREQ_INDEX)
        if rate_index == SAMPLING_RATE_INDEX_RESERVED:
            return 0
        return SAMPLING_RATES[self.extract(MpegField.VERSION_INDEX)][rate_index]

    @property
    def sample_count(self) -> int:
        """Samples per frame."""
        return SAMPLES_PER_FRAME[self.extract(MpegField.VERSION_INDEX)][self.extract(MpegField.LAYER_INDEX)]

    @property
    def slot_size(self) -> int:
        return SLOT_SIZES[self.extract(MpegField.LAYER_INDEX)]

    @property
    def frame_bytes(self) -> int:
        """Bytes from the start of this header to the start of the next one.

        Must not be called on an invalid header: sampling rate, bitrate or
        samples per frame may be zero there.
        """
        slot = self.slot_size
        samples_per_byte = self.sample_count // 8 // slot
        bitrate = self.bitrate_kbps * KBPS
        padding = slot if self.has_padding_bit else 0
        return samples_per_byte * bitrate // self.sampling_rate_hz + padding

    @property
    def frame_duration_seconds(self) -> float:
        # per-frame durations let VBR files be summed exactly
        return float(self.sample_count) / float(self.sampling_rate_hz)

    @property
    def protected_by_crc(self) -> bool:
        """True when a 16-bit CRC follows the header."""
        return self.extract(MpegField.PROTECTION_BIT) == 0

    @property
    def has_padding_bit(self) -> bool:
        return bool(self.extract(MpegField.PADDING_BIT))

    @property
    def is_intensity_stereo_on(self) -> bool:
        return bool(self.extract(MpegField.MODE_EXTENSION) & 0b01)

    @property
    def is_ms_stereo_on(self) -> bool:
        return bool(self.extract(MpegField.MODE_EXTENSION) & 0b10)

    @property
    def is_copyrighted(self) -> bool:
        return bool(self.extract(MpegField.COPYRIGHT))

    @property
    def is_original(self) -> bool:
        return bool(self.extract(MpegField.ORIGINAL))

    @property
    def emphasis(self) -> int:
        return self.extract(MpegField.EMPHASIS)

    def __str__(self):
        if not self.is_valid():
            return f"[FrameHeader invalid 0x{self.word:08X}]"
        attributes = [
            f"MPEG-{self.version.value}",
            f"Layer {self.layer.value}",
            f"{self.bitrate_kbps}kbps",
            f"{self.sampling_rate_hz}Hz",
            self.channel_mode.value,
        ]
        if self.protected_by_crc:
            attributes.append("crc")
        if self.has_padding_bit:
            attributes.append("pad")
        return "[FrameHeader %s]" % " ".join(attributes)
