"""Main entry point for PodTrack."""

import argparse
import signal
import sys
import threading
from typing import List, Optional

from podtrack.audio.session import RecordingSession
from podtrack.audio.streams import MicrophoneStream
from podtrack.batch.dead_air_processor import DeadAirProcessor
from podtrack.batch.exporter import Exporter, ExportJob
from podtrack.utils.exceptions import EmptyInputError, PodTrackError
from podtrack.utils.file_manager import TrackStore
from podtrack.utils.logger import setup_logger

logger = setup_logger(__name__)

LOCAL_TRACK_ID = "local"

# Set by the signal handler to end a running recording
stop_event = threading.Event()


def signal_handler(sig, frame):
    """Handle interrupt signals gracefully."""
    logger.info("Received interrupt signal, finishing recording...")
    stop_event.set()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="podtrack", description="Multi-track podcast recording tools"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    record = subparsers.add_parser("record", help="Record the local microphone")
    record.add_argument("session", help="Session name used as the file prefix")
    record.add_argument("--name", default="Host", help="Display name of the track")
    record.add_argument(
        "--duration", type=float, default=None, help="Stop after this many seconds"
    )
    record.add_argument("--device", type=int, default=None, help="Input device index")
    record.add_argument("--output", default=None, help="Folder for the track files")

    dead_air = subparsers.add_parser(
        "dead-air", help="Remove silence shared by every track of a session"
    )
    dead_air.add_argument("folder", help="Folder holding the session's tracks")
    dead_air.add_argument("session", help="Session name prefix")

    export = subparsers.add_parser("export", help="Mix tracks into one file")
    export.add_argument("output", help="Output file (.mp3, .m4a or .wav)")
    export.add_argument("inputs", nargs="*", help="Track files to mix")

    return parser


def run_record(args: argparse.Namespace) -> int:
    session = RecordingSession(args.session)
    session.add_track(LOCAL_TRACK_ID, args.name, MicrophoneStream(device=args.device))

    errors = session.start_all()
    if errors:
        for track_id, error in errors.items():
            logger.error(f"🛑 {track_id}: {error}")
        session.stop_all()
        return 1

    if args.duration is not None:
        logger.info(f"🔴 Recording for {args.duration:.1f}s...")
    else:
        logger.info("🔴 Recording, press Ctrl+C to stop")
    stop_event.wait(timeout=args.duration)

    result = session.stop_all()
    for track_id, error in result.errors.items():
        logger.error(f"🛑 Track {track_id} lost: {error}")

    saved = session.save_tracks(result, TrackStore(), args.output)
    for path in saved.values():
        print(path)
    return 0 if result.ok and len(saved) == len(result.tracks) else 1


def run_dead_air(args: argparse.Namespace) -> int:
    processor = DeadAirProcessor()
    result = processor.process_folder(args.folder, args.session)

    logger.info(
        f"✂️ Removed {len(result.plan)} region(s), {result.plan.total_removed:.2f}s "
        f"from {len(result.edited)} track(s)"
    )
    for path in result.edited.values():
        print(path)
    return 1 if result.failed else 0


def run_export(args: argparse.Namespace) -> int:
    job = ExportJob.for_output(args.inputs, args.output)
    if not job.inputs:
        raise EmptyInputError("Export requires at least one input file")

    exporter = Exporter()
    exporter.check_ffmpeg()
    print(exporter.export(job))
    return 0


COMMANDS = {
    "record": run_record,
    "dead-air": run_dead_air,
    "export": run_export,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to run PodTrack."""
    args = build_parser().parse_args(argv)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        return COMMANDS[args.command](args)
    except PodTrackError as e:
        logger.error(f"🛑 {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user (Ctrl+C)")
        return 130


if __name__ == "__main__":
    sys.exit(main())
