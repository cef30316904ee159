"""
Command-line interface for ffbatch.

This is the main entry point for the application.
"""

import argparse
import subprocess
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ffbatch import __author__, __license__, __url__, __version__
from ffbatch.batch import SUPPORTED_EXTENSIONS, run_batch
from ffbatch.config import (
    DEFAULT_DST_DIR,
    DEFAULT_FFMPEG_ARGS,
    DEFAULT_FILE_EXT,
    DEFAULT_SRC_DIR,
    TOML_AVAILABLE,
    Config,
    apply_config_to_args,
    get_app_dirs,
    load_config_file,
)
from ffbatch.encoder import REQUIRED_PROGRAMS, check_dependencies, have_hwaccel
from ffbatch.errors import EXIT_ERROR, EXIT_INTERRUPTED, EXIT_OK, FFBatchError
from ffbatch.ui import RICH_AVAILABLE
from ffbatch.ui.legacy_ui import LegacyProgressUI

if RICH_AVAILABLE:
    from ffbatch.ui.simple_rich import SimpleRichUI

TITLE = "FFMPEG Batch Video Processing Script"


# -------------------- ARGUMENT PARSING --------------------


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on bad usage."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(EXIT_ERROR, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="ffbatch",
        description="Batch convert video files with ffmpeg, showing a live progress bar.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
        epilog="""
Examples:
  %(prog)s -src videos -dst out                      # Prompt for the remaining values
  %(prog)s -src in -dst out -ext mkv --no-prompt     # Use defaults for everything else
  %(prog)s --ffmpeg-args="-c:v libx265 -crf 24 -r 30"
  %(prog)s -src in -dst out --dryrun                 # Print ffmpeg commands only
  %(prog)s --check-requirements                      # Check ffmpeg/ffprobe availability
        """,
    )

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}\nAuthor: {__author__}\nLicense: {__license__}\nURL: {__url__}",
    )

    io_group = parser.add_argument_group("Input/output")
    io_group.add_argument("-src", "--src-dir", dest="src_dir", metavar="DIR", help="Source directory")
    io_group.add_argument("-dst", "--dst-dir", dest="dst_dir", metavar="DIR", help="Destination directory")

    enc_group = parser.add_argument_group("Encoding")
    enc_group.add_argument("-args", "--ffmpeg-args", dest="ffmpeg_args", metavar="ARGS", help="FFmpeg arguments")
    enc_group.add_argument(
        "-ext",
        "--ffmpeg-file-ext",
        dest="file_ext",
        metavar="EXT",
        help=f"Output file extension ({' '.join(SUPPORTED_EXTENSIONS)})",
    )
    enc_group.add_argument("--no-hwaccel", action="store_false", dest="hwaccel", help="Never pass -hwaccel")

    ui_group = parser.add_argument_group("UI settings")
    ui_group.add_argument("--no-progress", action="store_false", dest="progress", help="Hide the progress bar")
    ui_group.add_argument("--no-prompt", action="store_false", dest="prompt", help="Use defaults instead of asking")

    debug_group = parser.add_argument_group("Debug/test")
    debug_group.add_argument("-d", "--debug", action="store_true", help="Show ffmpeg command lines")
    debug_group.add_argument("-n", "--dryrun", action="store_true", help="Print commands without running them")

    util_group = parser.add_argument_group("Utility commands")
    util_group.add_argument("--show-dirs", action="store_true")
    util_group.add_argument("--check-requirements", action="store_true")

    return parser


_VALUE_FLAGS = {
    "-args": "--ffmpeg-args",
    "--ffmpeg-args": "--ffmpeg-args",
    "-ext": "--ffmpeg-file-ext",
    "--ffmpeg-file-ext": "--ffmpeg-file-ext",
}


def join_flag_values(argv: List[str]) -> List[str]:
    """
    Attach the value following -args/-ext to its flag.

    ffmpeg arguments usually start with a dash ("-an", "-sn"), which
    argparse would otherwise read as another option.
    """
    result: List[str] = []
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg in _VALUE_FLAGS and i + 1 < len(argv):
            result.append(f"{_VALUE_FLAGS[arg]}={argv[i + 1]}")
            i += 2
            continue
        result.append(arg)
        i += 1
    return result


def parse_args(args: Optional[List[str]] = None) -> Tuple[Config, argparse.Namespace]:
    """Parse command-line arguments and return config + raw namespace."""
    if args is None:
        args = sys.argv[1:]
    parsed_args = build_parser().parse_args(join_flag_values(list(args)))

    cfg = Config(
        src_dir=parsed_args.src_dir,
        dst_dir=parsed_args.dst_dir,
        ffmpeg_args=parsed_args.ffmpeg_args,
        file_ext=parsed_args.file_ext.lstrip(".") if parsed_args.file_ext else None,
        hwaccel=parsed_args.hwaccel,
        progress=parsed_args.progress,
        prompt=parsed_args.prompt,
        debug=parsed_args.debug,
        dryrun=parsed_args.dryrun,
    )
    return cfg, parsed_args


# -------------------- PROMPTS --------------------


def prompt_missing(cfg: Config, ui) -> None:
    """Ask for every value not given on the command line or in a config file."""
    questions = [
        ("src_dir", "Enter source directory", DEFAULT_SRC_DIR),
        ("dst_dir", "Enter destination directory", DEFAULT_DST_DIR),
        ("ffmpeg_args", "Enter FFmpeg arguments", DEFAULT_FFMPEG_ARGS),
        ("file_ext", f"Enter output file extension: {' '.join(SUPPORTED_EXTENSIONS)}", DEFAULT_FILE_EXT),
    ]
    for attr, message, default in questions:
        if not getattr(cfg, attr):
            setattr(cfg, attr, ui.prompt(message, default))


# -------------------- UTILITY COMMANDS --------------------


def check_requirements() -> int:
    """Check system requirements."""
    print(f"ffbatch v{__version__} - Requirements Check")
    print("=" * 50)
    print()

    all_ok = True

    print("System requirements (mandatory):")
    print("-" * 40)

    for program in REQUIRED_PROGRAMS:
        try:
            result = subprocess.run([program, "-version"], capture_output=True, text=True, timeout=5)
            if result.returncode == 0:
                version_line = result.stdout.split("\n")[0] if result.stdout else "unknown"
                print(f"  ✓ {program}: {version_line}")
            else:
                print(f"  ✗ {program}: installed but returned error")
                all_ok = False
        except FileNotFoundError:
            print(f"  ✗ {program}: NOT FOUND")
            all_ok = False
        except Exception as e:
            print(f"  ✗ {program}: error - {e}")
            all_ok = False

    print()
    print("Optional dependencies:")
    print("-" * 40)
    print(f"  {'✓' if RICH_AVAILABLE else '○'} rich: {'installed' if RICH_AVAILABLE else 'NOT INSTALLED'}")
    print(f"  {'✓' if TOML_AVAILABLE else '○'} TOML support: {'available' if TOML_AVAILABLE else 'not available'}")

    print()
    print("Hardware acceleration:")
    print("-" * 40)
    if have_hwaccel("cuda"):
        print("  ✓ cuda: available")
    else:
        print("  ○ cuda: not available")

    print()
    if all_ok:
        print("✓ All requirements satisfied")
        return EXIT_OK
    print("✗ Some requirements missing")
    return EXIT_ERROR


def show_dirs(app_dirs: Dict[str, Path], cfg: Config) -> int:
    print("ffbatch directories:")
    print()
    print("User directories (XDG):")
    print(f"  Config:    {app_dirs['config']}")
    print(f"  State:     {app_dirs['state']}")
    print(f"  Logs:      {app_dirs['logs']}")
    print(f"  Progress:  {cfg.progress_dir}")
    return EXIT_OK


# -------------------- MAIN --------------------


def make_ui(cfg: Config):
    """Pick the Rich UI when available, plain text otherwise."""
    if RICH_AVAILABLE and cfg.progress and cfg.color:
        return SimpleRichUI(cfg.progress, cfg.color, cfg.bar_width)
    return LegacyProgressUI(cfg.progress, cfg.color, cfg.bar_width)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    cfg, args = parse_args(argv)

    if args.check_requirements:
        return check_requirements()

    app_dirs = get_app_dirs()

    file_config = load_config_file(app_dirs["config"])
    if file_config:
        apply_config_to_args(file_config, cfg)

    if args.show_dirs:
        return show_dirs(app_dirs, cfg)

    cfg.apply_script_mode()
    if not sys.stdin.isatty():
        cfg.prompt = False

    ui = make_ui(cfg)
    ui.banner(TITLE)

    try:
        check_dependencies()

        if cfg.prompt:
            prompt_missing(cfg, ui)
        cfg.apply_defaults()

        run_batch(cfg, ui, logs_dir=app_dirs["logs"])
    except FFBatchError as e:
        ui.error("\nError occurred in script.")
        if e.message:
            ui.error(f"Error Details: {e.message}")
        if cfg.debug and e.details:
            ui.error(e.details)
        ui.restore()
        return e.exit_code
    except KeyboardInterrupt:
        # Interrupted while prompting, before any job started
        ui.restore()
        return EXIT_INTERRUPTED

    ui.restore()
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
