#!/usr/bin/env python3
"""
OGG Cover Art

Reads an image and wraps it in a FLAC METADATA_BLOCK_PICTURE structure so it
can be used as cover art in FLAC and OGG files. ffmpeg does not support
`-disposition:v attached_pic` for ogg containers, but it does read this tag.

Output formats:
- ffmpeg metadata ini file (default)
- raw binary block
- base64 encoded block (the value of a METADATA_BLOCK_PICTURE Vorbis comment)

An ffmetadata file can be merged with other metadata on the ffmpeg command line:
    ffmpeg -i input -i <(ogg_coverart.py -f cover.png) -map_metadata 1 -metadata title=Foo output.ogg

Defaults for the format, picture type, description and logging can be set in
config.json:
{
  "format": "ffmetadata",
  "picture_type": 3,
  "description": "",
  "log_dir": "logs",
  "log_level": "INFO"
}

See:
https://wiki.xiph.org/VorbisComment#METADATA_BLOCK_PICTURE
https://xiph.org/flac/format.html#metadata_block_picture
"""

import argparse
import logging
import sys

import requests
from rich.console import Console
from rich.markup import escape

from coverart import error_handler
from coverart.config import load_config
from coverart.error_handler import log_error, log_info, log_warning
from coverart.output import OutputMode, render, write_output
from coverart.picture import (
    CoverArtError,
    InvalidFieldValue,
    PictureType,
    coerce_picture_type,
    picture_type_label,
)
from coverart.vorbis import make_picture_block

VERSION = "1.0.0"

console = Console(stderr=True)


def picture_type_arg(value: str) -> int:
    try:
        code = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid picture type: {value!r}") from None
    try:
        return coerce_picture_type(code)
    except InvalidFieldValue as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        prog="ogg_coverart",
        description="Generate FLAC/OGG METADATA_BLOCK_PICTURE tag data from an image",
        epilog="Picture types: " + ", ".join(f"{t.value}={picture_type_label(t)}" for t in PictureType),
    )
    parser.add_argument("input", help="Input image file or http(s) URL")
    parser.add_argument("-o", "--output", help="Output file, omit or use - for stdout")

    formats = parser.add_mutually_exclusive_group()
    formats.add_argument("-f", "--ffmetadata", dest="format", action="store_const",
                         const=OutputMode.FFMETADATA.value,
                         help="Output in FFMETADATA1 INI format (default)")
    formats.add_argument("-b", "--binary", dest="format", action="store_const",
                         const=OutputMode.RAW.value,
                         help="Output in raw binary format")
    formats.add_argument("-B", "--base64", dest="format", action="store_const",
                         const=OutputMode.BASE64.value,
                         help="Output in raw base64 format")

    parser.add_argument("-t", "--type", type=picture_type_arg, dest="picture_type",
                        help="Picture type code (default: 3, Cover (front))")
    parser.add_argument("-d", "--description", help="Picture description (default: empty)")
    parser.add_argument("--config", default="config.json",
                        help="Path to configuration JSON file (default: config.json)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser.parse_args(argv)


def report_error(e: Exception, context: dict) -> int:
    log_error(e, context=context)
    console.print(f"[red]Error:[/] {escape(str(e))}")
    return 1


def main(argv=None) -> int:
    args = parse_arguments(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        return report_error(e, {"config_file": args.config})

    level = logging.getLevelName(config["log_level"].upper())
    error_handler.configure(
        log_dir=config["log_dir"],
        log_level=level if isinstance(level, int) else logging.INFO,
    )
    if not isinstance(level, int):
        log_warning(f"Unknown log level {config['log_level']!r}, using INFO")

    picture_type = args.picture_type if args.picture_type is not None else config["picture_type"]
    description = args.description if args.description is not None else config["description"]
    context = {
        "input": args.input,
        "output": args.output or "-",
        "format": args.format or config["format"],
        "picture_type": picture_type,
    }

    log_info(f"Starting OGG Cover Art v{VERSION}", context=context)

    try:
        mode = OutputMode(args.format or config["format"])
        block = make_picture_block(args.input, picture_type=picture_type, description=description)
        # render fully before opening the destination, errors leave no partial output
        rendered = render(block, mode)
        write_output(rendered, args.output)
    except (CoverArtError, OSError, ValueError, requests.RequestException) as e:
        return report_error(e, context)

    log_info(f"Wrote {mode.value} picture block", context={
        "mime_type": block.mime_type,
        "size": f"{block.width}x{block.height}",
        "color_depth": block.color_depth,
        "block_length": len(block),
    })
    return 0


if __name__ == "__main__":
    sys.exit(main())
