#!/usr/bin/env python3
"""
CLI tool to curate a highlight cut from an annotation JSON file.

Usage:
    python scripts/curate_cli.py curate <analysis.json> --duration <seconds> [--output <file>]
    python scripts/curate_cli.py remap <result.json> [--output <file>]

Example:
    python scripts/curate_cli.py curate ./walk_analysis.json --duration 1800 -o ./walk_curated.json
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from petday.models.annotations import AnnotationSet
from petday.pipeline import curate_highlights, remap_result
from petday.pipeline.config import CurationConfig


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
)
logger = logging.getLogger(__name__)


def load_analysis(path: Path) -> dict:
    """Read a JSON file holding either a bare annotation set or {"analysis": ...}."""
    if not path.exists():
        raise FileNotFoundError(f"Annotation file not found: {path}")

    with open(path) as f:
        data = json.load(f)
    return data


def write_output(data: dict, output: Path = None):
    text = json.dumps(data, indent=2)
    if output is None:
        print(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, 'w') as f:
        f.write(text)
    logger.info(f"Output written to: {output}")


def run_curate(args):
    data = load_analysis(args.input)
    analysis = AnnotationSet.model_validate(data.get("analysis", data))

    duration = args.duration
    if duration is None:
        duration = data.get("duration", analysis.duration)
    if duration is None:
        raise ValueError("Video duration missing: pass --duration or set a \"duration\" field")

    config = CurationConfig(write_debug_json=args.debug_dir is not None)

    result = curate_highlights(analysis, float(duration), config=config, debug_dir=args.debug_dir)
    write_output(result.to_dict(), args.output)

    logger.info(f"Curated {len(result.segments)} clips, {result.total_duration:.1f}s total")
    for i, seg in enumerate(result.segments):
        logger.info(f"  {i+1}. {seg.start:.1f}s - {seg.end:.1f}s ({seg.source.value})")
    if result.fallback_to_original:
        logger.warning("Empty cut: play the original video instead")


def run_remap(args):
    data = load_analysis(args.input)
    analysis = AnnotationSet.model_validate(data.get("analysis", data))

    remapped, count = remap_result(analysis)
    output = dict(data)
    if "analysis" in data:
        output["analysis"] = remapped.model_dump(by_alias=True, exclude_none=True)
    else:
        output = remapped.model_dump(by_alias=True, exclude_none=True)
    write_output(output, args.output)

    logger.info(f"Remapped {count} timestamps")


def main():
    parser = argparse.ArgumentParser(
        description="Curate pet POV highlight cuts and remap annotation timelines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Curate a highlight cut, print the result
    python scripts/curate_cli.py curate analysis.json --duration 1800

    # Curate and write stage decisions next to the output
    python scripts/curate_cli.py curate analysis.json -d 1800 -o out.json --debug-dir ./debug

    # Bring a previously processed result up to date
    python scripts/curate_cli.py remap old_result.json -o migrated.json
        """
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    curate_parser = subparsers.add_parser("curate", help="Curate a highlight cut")
    curate_parser.add_argument("input", type=Path, help="Annotation JSON file")
    curate_parser.add_argument(
        "--duration", "-d",
        type=float,
        default=None,
        help="Source video duration in seconds (default: top-level \"duration\" field)"
    )
    curate_parser.add_argument("--output", "-o", type=Path, default=None, help="Output file (default: stdout)")
    curate_parser.add_argument("--debug-dir", type=Path, default=None, help="Write curation_debug.json here")
    curate_parser.set_defaults(func=run_curate)

    remap_parser = subparsers.add_parser("remap", help="Remap a previously processed result")
    remap_parser.add_argument("input", type=Path, help="Result JSON file")
    remap_parser.add_argument("--output", "-o", type=Path, default=None, help="Output file (default: stdout)")
    remap_parser.set_defaults(func=run_remap)

    args = parser.parse_args()

    try:
        args.func(args)
    except (FileNotFoundError, ValidationError, ValueError, json.JSONDecodeError) as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(130)
    except Exception as e:
        logger.exception(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
