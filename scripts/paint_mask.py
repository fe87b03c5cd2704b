#!/usr/bin/env python3
"""Headless mask painter: replay recorded pointer events over an image.

CLI front end for spen_mask.pipeline.paint_mask_main().

Usage:
    python scripts/paint_mask.py --image photo.jpg --events strokes.yaml --output_dir out/

    # Custom config and canvas size, raw (non-flattened) mask
    python scripts/paint_mask.py --image photo.jpg --events strokes.yaml \\
        --output_dir out/ --config configs/mask_tool.v1.yaml \\
        --canvas_size 800,600 --raw_mask

    # Also store the pair in the local inpainting backend
    python scripts/paint_mask.py --image photo.jpg --events strokes.yaml \\
        --output_dir out/ --submit --prompt "a red brick wall"

Outputs:
    - mask.png: painted mask (flattened over black unless --raw_mask)
    - original.png: letterboxed base image at canvas size
    - session.yaml: run metadata (event counts, painted pixels, submission)

Exit codes:
    0 success, 1 invalid input (missing file, bad config, undecodable image),
    2 submission failure
"""

import argparse
import logging
import sys

from spen_mask.errors import SpenMaskError
from spen_mask.pipeline import paint_mask_main
from spen_mask.utils import logging_config, validators


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Paint an inpainting mask from recorded pointer events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--image', type=str, required=True, help='Base image file')
    parser.add_argument('--events', type=str, required=True, help='pointer_script.v1 YAML file')
    parser.add_argument('--output_dir', type=str, required=True, help='Output directory')
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='mask_tool.v1 YAML config (defaults built in)'
    )
    parser.add_argument(
        '--canvas_size',
        type=str,
        default=None,
        help='Canvas size as W,H (overrides config)'
    )
    parser.add_argument(
        '--raw_mask',
        action='store_true',
        help='Export the raw semi-transparent mask instead of flattening over black'
    )
    parser.add_argument('--submit', action='store_true', help='Submit to the local inpainting backend')
    parser.add_argument('--prompt', type=str, default='', help='Inpainting prompt')
    parser.add_argument('--negative_prompt', type=str, default='', help='Negative prompt')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable DEBUG logging')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        cfg = validators.load_mask_tool_config(args.config)
    except (FileNotFoundError, SpenMaskError) as e:
        logging_config.setup_logging(log_level="INFO")
        logging.getLogger(__name__).error(str(e))
        return 1

    log_level = "DEBUG" if args.verbose else cfg.logging.level
    logging_config.setup_logging(
        log_level=log_level,
        log_file=cfg.logging.file,
        json=cfg.logging.json_format,
        context={'app': 'paint_mask'}
    )
    logging_config.install_excepthook()
    logger = logging.getLogger(__name__)

    canvas_size = None
    if args.canvas_size:
        try:
            w, h = (int(v) for v in args.canvas_size.split(','))
        except ValueError:
            logger.error(f"--canvas_size must be W,H integers, got '{args.canvas_size}'")
            return 1
        canvas_size = (w, h)

    try:
        result = paint_mask_main(
            args.image,
            args.events,
            args.output_dir,
            config_path=args.config,
            canvas_size=canvas_size,
            submit=args.submit,
            prompt=args.prompt,
            negative_prompt=args.negative_prompt,
            flatten=False if args.raw_mask else None,
        )
    except (FileNotFoundError, SpenMaskError) as e:
        logger.error(str(e))
        return 1

    logger.info(f"Mask: {result['mask_path']}")
    logger.info(f"Original: {result['original_path']}")

    submission = result['submission']
    if submission is not None:
        if not submission['success']:
            logger.error(f"Submission failed: {submission['message']}")
            return 2
        logger.info(f"Submitted: {submission['original_path']}, {submission['mask_path']}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
