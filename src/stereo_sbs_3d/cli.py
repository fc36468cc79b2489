#!/usr/bin/env python3
"""
Stereo SBS 3D command line - convert a 2D video into side-by-side stereo frames.
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
import time
from pathlib import Path

import cv2

from .core.constants import (
    BRIGHTNESS_PRESETS,
    CONTRAST_PRESETS,
    DEFAULT_SETTINGS,
    VR_DEVICE_PUPIL_DISTANCES,
)
from .core.errors import ExtractionError
from .core.models import (
    ColorAdjustments,
    ConversionOptions,
    Frame,
    FrameRequest,
    ProcessorStatus,
    StereoParameters,
)
from .io.frame_sources import OpenCVFrameSource, probe_video_metadata, validate_video_file
from .processing.batch_controller import BatchConversionController
from .processing.sampling import plan_sampling
from .utils.console import error, saved_to, step_complete, success, title_bar, warning
from .utils.path_utils import (
    calculate_frame_range,
    format_file_size,
    format_processing_time,
    generate_frame_filename,
    parse_time_string,
)
from .utils.progress import ProgressTracker
from .utils.stereo_math import compute_shift, pupil_distance_for_device, validate_options


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert a 2D video into side-by-side (SBS) stereo frames for VR"
    )
    parser.add_argument("input_video", help="Input video file path")
    parser.add_argument("-o", "--output", default=DEFAULT_SETTINGS["output_dir"],
                        help="Output directory for SBS frames (default: ./output)")

    pupil = parser.add_mutually_exclusive_group()
    pupil.add_argument("-p", "--pupil-distance", type=float,
                       help="Interpupillary distance in mm, 50-80 (default: 65)")
    pupil.add_argument("--device-preset", choices=sorted(VR_DEVICE_PUPIL_DISTANCES),
                       help="Use the pupil distance of a headset preset")
    parser.add_argument("-c", "--convergence-distance", type=float,
                        default=DEFAULT_SETTINGS["convergence_distance"],
                        help="Convergence distance in mm, 500-5000 (default: 1000)")

    brightness = parser.add_mutually_exclusive_group()
    brightness.add_argument("--brightness", type=float,
                            help="Brightness multiplier (default: 1.0)")
    brightness.add_argument("--brightness-preset", choices=sorted(BRIGHTNESS_PRESETS))
    contrast = parser.add_mutually_exclusive_group()
    contrast.add_argument("--contrast", type=float,
                          help="Contrast factor around mid-grey (default: 1.0)")
    contrast.add_argument("--contrast-preset", choices=sorted(CONTRAST_PRESETS))
    parser.add_argument("--saturation", type=float, default=DEFAULT_SETTINGS["saturation"],
                        help="Saturation factor, 0 is greyscale (default: 1.0)")

    parser.add_argument("-s", "--start", dest="start_time",
                        help="Start time in mm:ss or hh:mm:ss format")
    parser.add_argument("-e", "--end", dest="end_time",
                        help="End time in mm:ss or hh:mm:ss format")
    parser.add_argument("--width", type=int, help="Per-eye frame width (default: source)")
    parser.add_argument("--height", type=int, help="Frame height (default: source)")
    parser.add_argument("--fps", type=float,
                        help="Override the frame rate reported by the container")
    parser.add_argument("--no-sampling", dest="use_sampling", action="store_false",
                        default=DEFAULT_SETTINGS["use_sampling"],
                        help="Process every frame instead of the memory-budgeted stride")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print per-batch details")
    return parser


def resolve_settings(args: argparse.Namespace) -> dict:
    """Merge parsed arguments, presets and defaults into one settings dict."""
    settings = dict(DEFAULT_SETTINGS)

    if args.pupil_distance is not None:
        settings["pupil_distance"] = args.pupil_distance
    elif args.device_preset:
        settings["pupil_distance"] = pupil_distance_for_device(args.device_preset)
    settings["convergence_distance"] = args.convergence_distance

    if args.brightness is not None:
        settings["brightness"] = args.brightness
    elif args.brightness_preset:
        settings["brightness"] = BRIGHTNESS_PRESETS[args.brightness_preset]
    if args.contrast is not None:
        settings["contrast"] = args.contrast
    elif args.contrast_preset:
        settings["contrast"] = CONTRAST_PRESETS[args.contrast_preset]
    settings["saturation"] = args.saturation

    settings["output_dir"] = args.output
    settings["use_sampling"] = args.use_sampling
    if args.fps:
        settings["fps"] = args.fps
    return settings


def write_sbs_frames(frames: list[Frame], indices: list[int], output_dir: Path) -> list[Path]:
    """Save RGBA stereo frames as PNG files named after their source index."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for frame_index, frame in zip(indices, frames):
        path = output_dir / generate_frame_filename(frame_index)
        bgra = cv2.cvtColor(frame.to_array().copy(), cv2.COLOR_RGBA2BGRA)
        if not cv2.imwrite(str(path), bgra):
            raise OSError(f"Could not write {path}")
        written.append(path)
    return written


async def run_conversion(args: argparse.Namespace) -> int:
    settings = resolve_settings(args)

    options = ConversionOptions(
        enabled=True,
        pupil_distance=settings["pupil_distance"],
        convergence_distance=settings["convergence_distance"],
    )
    report = validate_options(options)
    if not report.valid:
        for message in report.errors:
            print(error(message))
        return 1

    if not validate_video_file(args.input_video):
        print(error(f"Input video not found or unsupported: {args.input_video}"))
        return 1

    for label, value in (("start", args.start_time), ("end", args.end_time)):
        if value and parse_time_string(value) is None:
            print(error(f"Invalid {label} time: {value}"))
            return 1

    try:
        metadata = probe_video_metadata(args.input_video)
    except ExtractionError as e:
        print(error(str(e)))
        return 1

    fps = args.fps or metadata.fps
    plan = plan_sampling(metadata.size_bytes, metadata.duration_seconds, fps)
    start_frame, end_frame = calculate_frame_range(plan.total_frames, fps, args.start_time, args.end_time)
    stride = plan.sampling_rate if settings["use_sampling"] else 1
    indices = list(range(start_frame, end_frame, stride))

    request = FrameRequest(
        width=args.width or metadata.width,
        height=args.height or metadata.height,
        format=settings["frame_format"],
    )
    shift = compute_shift(options.pupil_distance, options.convergence_distance)
    stereo = StereoParameters(
        shift_percent=shift,
        adjustments=ColorAdjustments(
            brightness=settings["brightness"],
            contrast=settings["contrast"],
            saturation=settings["saturation"],
        ),
    )

    print(f"\n{title_bar('=== Stereo SBS 3D Conversion ===')}")
    print(f"Input: {args.input_video}")
    print(f"Output: {settings['output_dir']}")
    print(f"Source: {metadata.width}x{metadata.height} @ {fps:.2f}fps, {plan.total_frames} frames")
    print(f"Shift: {shift:.2f}% (pupil {options.pupil_distance:g}mm, convergence {options.convergence_distance:g}mm)")
    if stride > 1:
        print(warning(
            f"Sampling every {stride} frames to stay near {plan.estimated_memory_mib:.0f} MiB"
        ))

    source = OpenCVFrameSource(fps=fps)
    controller = BatchConversionController(source, verbose=args.verbose)
    tracker = ProgressTracker(len(indices))

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, controller.cancel)
    except (NotImplementedError, RuntimeError):
        pass

    started = time.time()
    try:
        frames = await controller.process_batch(
            args.input_video, start_frame, end_frame, request,
            on_progress=tracker, stereo=stereo, stride=stride,
        )
    finally:
        source.close()
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass
    tracker.finish("Conversion finished")

    output_dir = Path(settings["output_dir"])
    written = write_sbs_frames(frames, indices, output_dir)
    print(step_complete(f"Wrote {len(written):04d} SBS frames in {format_processing_time(time.time() - started)}"))
    print(saved_to(f"Saved to: {output_dir}"))

    stats = controller.buffer_stats()
    print(saved_to(f"Frame cache: {stats.cached_frames} frames (~{format_file_size(stats.estimated_memory_bytes)})"))

    status = controller.state.status
    if status is ProcessorStatus.COMPLETED:
        print(success("Conversion complete!"))
        return 0
    print(error(str(controller.state.error)))
    return 130 if status is ProcessorStatus.CANCELLED else 1


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    return asyncio.run(run_conversion(args))


if __name__ == "__main__":
    sys.exit(main())
