"""Command line interface for lowpoly."""
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from lowpoly.pipeline import LowPolyPipeline
from lowpoly.types import LowPolyConfig, LowPolyError


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    defaults = LowPolyConfig()

    parser = argparse.ArgumentParser(
        prog='lowpoly',
        description='Render raster images as flat-shaded low-poly triangle meshes',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  lowpoly photo.jpg
  lowpoly photo.jpg -o photo_lowpoly.png --svg
  lowpoly a.jpg b.jpg -o out/ --max-points 2000 --seed 7
        """,
    )

    parser.add_argument(
        'inputs',
        nargs='+',
        help='Input image path(s), processed in order'
    )

    parser.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output PNG path, or a directory when several inputs are given '
             '(default: <input>_lowpoly.png)'
    )

    parser.add_argument(
        '--svg',
        action='store_true',
        help='Also write an SVG of the triangles next to the PNG'
    )

    parser.add_argument(
        '--edge-threshold',
        type=int,
        default=defaults.edge_threshold,
        help=f'Edge brightness threshold 0-255; higher means fewer points '
             f'(default: {defaults.edge_threshold})'
    )

    parser.add_argument(
        '--point-rate',
        type=float,
        default=defaults.point_rate,
        help=f'Fraction of edge points kept (default: {defaults.point_rate})'
    )

    parser.add_argument(
        '--max-points',
        type=int,
        default=defaults.max_points,
        help=f'Upper bound on sampled points (default: {defaults.max_points})'
    )

    parser.add_argument(
        '--blur-size',
        type=int,
        default=defaults.blur_size,
        help=f'Blur kernel half-width (default: {defaults.blur_size})'
    )

    parser.add_argument(
        '--edge-size',
        type=int,
        default=defaults.edge_size,
        help=f'Edge kernel half-width (default: {defaults.edge_size})'
    )

    parser.add_argument(
        '--pixel-limit',
        type=int,
        default=defaults.pixel_limit,
        help=f'Downscale sources above this many pixels (default: {defaults.pixel_limit})'
    )

    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed for reproducible point sampling'
    )

    parser.add_argument(
        '--save-stages',
        type=str,
        default=None,
        help='Directory to save pipeline stage debug images'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Log pipeline progress (-vv for debug output)'
    )

    return parser


def resolve_output(input_path: Path, output: Optional[str], multiple: bool) -> Path:
    """Output PNG path for an input, honoring -o as a file or directory."""
    if output is None:
        return input_path.with_name(f"{input_path.stem}_lowpoly.png")

    output_path = Path(output)
    if multiple or output_path.is_dir():
        return output_path / f"{input_path.stem}_lowpoly.png"
    return output_path


def main(args=None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.verbose:
        logging.basicConfig(
            level=logging.DEBUG if parsed.verbose > 1 else logging.INFO,
            format='%(levelname)s %(name)s: %(message)s'
        )

    try:
        config = LowPolyConfig(
            edge_threshold=parsed.edge_threshold,
            point_rate=parsed.point_rate,
            max_points=parsed.max_points,
            blur_size=parsed.blur_size,
            edge_size=parsed.edge_size,
            pixel_limit=parsed.pixel_limit,
            seed=parsed.seed,
        )
    except LowPolyError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    stages_dir = Path(parsed.save_stages) if parsed.save_stages else None
    if stages_dir:
        print(f"Debug stages will be saved to: {stages_dir}")

    multiple = len(parsed.inputs) > 1
    if multiple and parsed.output:
        Path(parsed.output).mkdir(parents=True, exist_ok=True)

    exit_code = 0
    for name in parsed.inputs:
        input_path = Path(name)
        if not input_path.exists():
            print(f"Error: Input file not found: {input_path}", file=sys.stderr)
            exit_code = 1
            continue

        output_path = resolve_output(input_path, parsed.output, multiple)
        svg_path = output_path.with_suffix('.svg') if parsed.svg else None

        pipeline = LowPolyPipeline(
            config,
            save_stages=stages_dir is not None,
            stages_dir=(stages_dir / input_path.stem) if (stages_dir and multiple) else stages_dir,
        )

        print(f"Processing: {input_path}")
        try:
            result = pipeline.process(input_path, output_path, svg_path=svg_path)
        except (LowPolyError, OSError) as e:
            print(f"Error processing {input_path}: {e}", file=sys.stderr)
            exit_code = 1
            continue

        stats = result.stats
        print(f"  Edge points: {stats.edge_points:,}")
        print(f"  Sampled points: {stats.sampled_points:,} ({stats.sample_ratio * 100:.2f}%)")
        if stats.skipped_points:
            print(f"  Skipped points: {stats.skipped_points:,}")
        print(f"  Triangles: {stats.triangles:,}")
        print(f"  Output saved: {output_path}")
        if svg_path:
            print(f"  SVG saved: {svg_path}")
        print(f"  Completed in {stats.elapsed_seconds:.2f}s")

    return exit_code


if __name__ == '__main__':
    sys.exit(main())
