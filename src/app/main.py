"""Command line front end.

Usage:
    mpeg-audio-scan info song.mp3 [--json]     # scan and print stream summary
    mpeg-audio-scan towav song.mp3 out.wav     # decode to WAV
    mpeg-audio-scan play song.mp3              # play until done or Ctrl+C
"""
import argparse
import json
import logging
import sys
import time

from mpegaudio.config import ScanConfig
from mpegaudio.errors import AudioLoadError, DecodeError, PlaybackError
from mpegaudio.player import WavePlayer, decode_mp3
from mpegaudio.reader import load_mp3

logger = logging.getLogger(__name__)

POLL_SECONDS = 0.1


def _format_summary(path: str, summary) -> str:
    if not summary.has_mpeg_audio:
        return f"{path}: no MPEG audio found"
    seconds = summary.duration_ms / 1000.0
    return "\n".join([
        f"{path}:",
        f"  MPEG-{summary.version.value} Layer {summary.layer.value}",
        f"  Audio offset: {summary.audio_offset}",
        f"  Frames: {summary.frame_count}",
        f"  Duration: {seconds:.3f} s ({summary.duration_ms} ms)",
        f"  Sampling rate: {summary.sampling_rate_hz} Hz",
        f"  Channels: {summary.channel_count}",
    ])


def cmd_info(config: ScanConfig, args) -> int:
    summary = load_mp3(args.file, offset_hint=args.offset, skip_id3=not args.no_skip_id3, config=config)
    if args.json:
        print(json.dumps(dict(summary.as_dict(), file=args.file)))
    else:
        print(_format_summary(args.file, summary))
    return 0 if summary.has_mpeg_audio else 1


def cmd_towav(config: ScanConfig, args) -> int:
    summary = load_mp3(args.file, skip_id3=True, config=config)
    if not summary.has_mpeg_audio:
        print(f"{args.file}: no MPEG audio found", file=sys.stderr)
        return 1
    pcm = decode_mp3(args.file, summary, config)
    pcm.write_wav(args.output)
    print(f"Wrote {pcm.bytes_to_ms(pcm.size)} ms to {args.output}")
    return 0


def cmd_play(config: ScanConfig, args) -> int:
    player = WavePlayer(config)
    if not player.load_mp3(args.file):
        print(f"{args.file}: no MPEG audio found", file=sys.stderr)
        return 1
    player.start(args.start_ms)
    print(f"Playing {args.file} ({player.length_ms} ms). Press Ctrl+C to stop.", file=sys.stderr)
    try:
        while not player.has_ended():
            time.sleep(POLL_SECONDS)
    except KeyboardInterrupt:
        print("\nStopping...", file=sys.stderr)
    finally:
        player.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and play MPEG-1 Layer III audio files")
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_info = sub.add_parser("info", help="Scan a file and print its stream summary")
    p_info.add_argument("file", help="Path to MP3 file")
    p_info.add_argument("--offset", type=int, default=0, help="Byte offset where audio is expected to start")
    p_info.add_argument("--no-skip-id3", action="store_true", help="Do not skip a leading ID3v2 tag")
    p_info.add_argument("--json", action="store_true", help="Print the summary as JSON")

    p_towav = sub.add_parser("towav", help="Decode an MP3 file to WAV")
    p_towav.add_argument("file", help="Path to MP3 file")
    p_towav.add_argument("output", help="Output WAV file")

    p_play = sub.add_parser("play", help="Play an MP3 file")
    p_play.add_argument("file", help="Path to MP3 file")
    p_play.add_argument("--start-ms", type=int, default=0, help="Start position in milliseconds")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = ScanConfig.from_env()
    except ValueError as e:
        print(f"[ERROR] Invalid configuration: {e}", file=sys.stderr)
        return 2

    level = (args.log_level or config.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    commands = {"info": cmd_info, "towav": cmd_towav, "play": cmd_play}
    try:
        return commands[args.command](config, args)
    except (AudioLoadError, DecodeError, PlaybackError) as e:
        logger.error("%s", e)
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
