"""
Command line interface for rendering scenes.
"""

from __future__ import annotations
import argparse
import logging
import sys
import time
from fractions import Fraction
from typing import List, Optional

from .renderer import Renderer, RenderSettings, RenderCancelled
from .scene_parser import SceneParseError, load_scene
from .scenes import SCENES, build_scene
from .image import check_output_format, save_image
from .sampling import make_rng

logger = logging.getLogger('lumenpath')


def _aspect_ratio(value: str) -> float:
    """Parse an aspect ratio given as ``16/9`` or ``1.5``."""
    try:
        ratio = float(Fraction(value))
    except (ValueError, ZeroDivisionError):
        raise argparse.ArgumentTypeError(f"invalid aspect ratio: {value}")
    if ratio <= 0:
        raise argparse.ArgumentTypeError(f"aspect ratio must be positive: {value}")
    return ratio


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='lumenpath',
        description='lumenpath - A Monte Carlo path tracer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py --scene spheres > spheres.ppm
  python main.py --scene random --width 1200 --aspect-ratio 3/2 --samples 500 --output final.png
  python main.py --scene-file scene.yaml --seed 42 --output render.ppm
        '''
    )

    parser.add_argument('--width', type=int, default=None, help='Image width (default: 400)')
    parser.add_argument('--height', type=int, default=None,
                        help='Image height (default: width / aspect ratio)')
    parser.add_argument('--aspect-ratio', type=_aspect_ratio, default=None,
                        help='Aspect ratio such as 16/9 (default: 16/9, 3/2 for the random scene)')
    parser.add_argument('--samples', type=int, default=None, help='Samples per pixel (default: 100)')
    parser.add_argument('--depth', type=int, default=None, help='Max bounce depth (default: 50)')
    parser.add_argument('--threads', type=int, default=None, help='Number of threads (0=auto, default: 1)')
    parser.add_argument('--seed', type=int, default=None, help='Seed for a reproducible render')
    parser.add_argument('--scene', type=str, default='spheres', choices=sorted(SCENES),
                        help='Built-in scene to render (default: spheres)')
    parser.add_argument('--scene-file', type=str, default=None,
                        help='YAML or JSON scene description (overrides --scene); '
                             'size, samples, depth, threads and seed flags override the file')
    parser.add_argument('--output', type=str, default='-',
                        help='Output filename, .ppm or any format Pillow writes (default: PPM to stdout)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    parser.add_argument('-q', '--quiet', action='store_true', help='Only log warnings and errors')

    return parser


def _render_overrides(args: argparse.Namespace) -> dict:
    """Collect the render flags given on the command line, keyed as in scene files."""
    flags = {
        'width': args.width,
        'height': args.height,
        'samples': args.samples,
        'max_depth': args.depth,
        'threads': args.threads,
        'seed': args.seed,
    }
    return {key: value for key, value in flags.items() if value is not None}


def _progress_bar():
    last_progress = [-1]

    def progress_callback(progress: float):
        pct = int(progress * 100)
        if pct > last_progress[0]:
            last_progress[0] = pct
            bar_len = 40
            filled = int(bar_len * progress)
            bar = '█' * filled + '░' * (bar_len - filled)
            print(f'\rRendering: [{bar}] {pct}%', end='', file=sys.stderr, flush=True)

    return progress_callback


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s', stream=sys.stderr)

    try:
        check_output_format(args.output)
    except ValueError as e:
        parser.exit(2, f"{parser.prog}: error: {e}\n")

    try:
        if args.scene_file:
            overrides = _render_overrides(args)
            if args.aspect_ratio is not None:
                logger.warning("--aspect-ratio is ignored with --scene-file")
            if overrides:
                logger.info("Overriding scene file settings: %s", ", ".join(sorted(overrides)))
            world, camera, settings = load_scene(args.scene_file, overrides)
        else:
            default_ratio = 3.0 / 2.0 if args.scene == 'random' else 16.0 / 9.0
            aspect_ratio = args.aspect_ratio or default_ratio
            width = args.width if args.width is not None else 400
            options = dict(
                samples_per_pixel=args.samples if args.samples is not None else 100,
                max_depth=args.depth if args.depth is not None else 50,
                num_threads=args.threads if args.threads is not None else 1,
                seed=args.seed
            )
            if args.height is not None:
                settings = RenderSettings(width=width, height=args.height, **options)
            else:
                settings = RenderSettings.from_aspect_ratio(width, aspect_ratio, **options)
            world, camera = build_scene(args.scene, settings.aspect_ratio, make_rng(args.seed))
    except (SceneParseError, ValueError) as e:
        parser.exit(2, f"{parser.prog}: error: {e}\n")

    logger.info("Resolution: %dx%d", settings.width, settings.height)
    logger.info("Samples: %d, max depth: %d, threads: %d",
                settings.samples_per_pixel, settings.max_depth, settings.num_threads)
    logger.info("Objects in scene: %d", len(world))

    renderer = Renderer(settings)
    if not args.quiet:
        renderer.set_progress_callback(_progress_bar())

    start_time = time.time()
    try:
        image = renderer.render(world, camera)
    except (KeyboardInterrupt, RenderCancelled):
        renderer.cancel()
        print(file=sys.stderr)
        logger.warning("Render cancelled")
        return 130

    elapsed = time.time() - start_time
    if not args.quiet:
        print(file=sys.stderr)
    logger.info("Render completed in %.2f seconds", elapsed)

    try:
        save_image(image, args.output)
    except (OSError, ValueError) as e:
        parser.exit(1, f"{parser.prog}: error: cannot write {args.output}: {e}\n")

    return 0
