"""Command line interface for pixelcloud."""
import argparse
import json
import logging
import sys
from pathlib import Path

import numpy as np

from pixelcloud.palette import extract_colors_from_image
from pixelcloud.point_sampler import process_image_to_points
from pixelcloud.types import PALETTE_ROLES, SamplerConfig


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog='pixelcloud',
        description='Turn images into particle point clouds and color palettes'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    points = subparsers.add_parser('points', help='Sample a point cloud from an image')
    points.add_argument('input', type=str, help='Input image path, data URI or URL')
    points.add_argument(
        '--count',
        type=int,
        default=20000,
        help='Number of points (default: 20000)'
    )
    points.add_argument(
        '--scale',
        type=float,
        default=1.0,
        help='Output coordinate scale (default: 1.0)'
    )
    points.add_argument(
        '--width',
        type=int,
        default=600,
        help='Working width in pixels (default: 600)'
    )
    points.add_argument('--seed', type=int, default=None, help='Random seed')
    points.add_argument(
        '-o', '--output',
        type=str,
        help='Save geometry arrays to this .npz file'
    )

    palette = subparsers.add_parser('palette', help='Extract a six-color palette')
    palette.add_argument('input', type=str, help='Input image path, data URI or URL')
    palette.add_argument('--seed', type=int, default=None, help='Random seed')
    palette.add_argument(
        '--runs',
        type=int,
        default=1,
        help='Number of palettes to draw (default: 1)'
    )
    palette.add_argument(
        '--json',
        action='store_true',
        help='Print palettes as JSON lists'
    )

    return parser


def _is_local(source: str) -> bool:
    return '://' not in source and not source.startswith('data:')


def _run_points(parsed_args) -> int:
    if parsed_args.count <= 0:
        print(f"Error: --count must be positive, got {parsed_args.count}", file=sys.stderr)
        return 1
    if parsed_args.width <= 0:
        print(f"Error: --width must be positive, got {parsed_args.width}", file=sys.stderr)
        return 1

    config = SamplerConfig(working_width=parsed_args.width)
    rng = np.random.default_rng(parsed_args.seed)
    result = process_image_to_points(
        parsed_args.input, parsed_args.count, parsed_args.scale, rng=rng, config=config
    )

    positions = result.positions.reshape(-1, 3)
    print(f"Points: {result.count}")
    print(f"  Bounds min: {np.round(positions.min(axis=0), 3).tolist()}")
    print(f"  Bounds max: {np.round(positions.max(axis=0), 3).tolist()}")
    if result.has_attributes:
        print(f"  Background points: {int(result.is_background.sum())}")
        print(f"  Mean edge strength: {float(result.edge_strength.mean()):.3f}")
    else:
        print("  Image could not be sampled, sphere fallback used")

    if parsed_args.output:
        arrays = {'positions': result.positions}
        if result.has_attributes:
            arrays.update(
                brightness=result.brightness,
                edge_strength=result.edge_strength,
                is_background=result.is_background,
            )
        np.savez(parsed_args.output, **arrays)
        print(f"Saved geometry to {parsed_args.output}")

    return 0


def _run_palette(parsed_args) -> int:
    rng = np.random.default_rng(parsed_args.seed)
    palettes = []
    for _ in range(max(1, parsed_args.runs)):
        colors = extract_colors_from_image(parsed_args.input, rng=rng)
        if not colors:
            print("Error: Could not extract colors from image", file=sys.stderr)
            return 1
        palettes.append(colors)

    if parsed_args.json:
        print(json.dumps(palettes if len(palettes) > 1 else palettes[0]))
        return 0

    for i, colors in enumerate(palettes):
        if len(palettes) > 1:
            print(f"Palette {i + 1}:")
        for role, color in zip(PALETTE_ROLES, colors):
            print(f"  {role:<11} {color}")

    return 0


def main(args=None):
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s'
    )

    if _is_local(parsed_args.input) and not Path(parsed_args.input).exists():
        print(f"Error: Input file not found: {parsed_args.input}", file=sys.stderr)
        return 1

    if parsed_args.command == 'points':
        return _run_points(parsed_args)
    return _run_palette(parsed_args)


if __name__ == '__main__':
    sys.exit(main())
