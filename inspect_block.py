#!/usr/bin/env python3
"""
Picture Block Inspector

Decodes a METADATA_BLOCK_PICTURE produced by ogg_coverart.py (raw binary,
base64, or an ffmetadata ini file) and prints the fields it contains. Useful
to check what ffmpeg or a tagger will see before embedding the block.
"""

import argparse
import base64
import binascii
import sys
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from coverart.output import FFMETADATA_HEADER, extract_ffmetadata_value
from coverart.picture import MalformedPictureBlock, PictureBlock, decode

console = Console()


def load_block_bytes(data: bytes) -> bytes:
    """Work out which output format data is in and return the raw block."""
    if data.startswith(FFMETADATA_HEADER.encode("ascii")):
        value = extract_ffmetadata_value(data.decode("utf-8"))
        if value is None:
            raise MalformedPictureBlock("ffmetadata file has no metadata= entry")
        return base64.b64decode(value, validate=True)

    # a raw block starts with a big-endian picture type, which is never printable base64
    try:
        return base64.b64decode(data.strip(), validate=True)
    except binascii.Error:
        return data


def block_table(block: PictureBlock) -> Table:
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("Picture type", f"{block.picture_type} ({block.type_label})")
    table.add_row("MIME type", block.mime_type)
    table.add_row("Description", escape(block.description) if block.description else "[dim](empty)[/]")
    table.add_row("Dimensions", f"{block.width}x{block.height}")
    table.add_row("Color depth", f"{block.color_depth} bits")
    table.add_row("Colors", str(block.num_colors))
    table.add_row("Picture data", f"{len(block.picture_data)} bytes")
    table.add_row("Block length", f"{len(block)} bytes")
    return table


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Inspect a METADATA_BLOCK_PICTURE")
    parser.add_argument("input", help="Block file (binary, base64 or ffmetadata), - for stdin")
    args = parser.parse_args(argv)

    try:
        if args.input == "-":
            data = sys.stdin.buffer.read()
        else:
            with open(args.input, "rb") as f:
                data = f.read()
        block = decode(load_block_bytes(data))
    except (OSError, UnicodeDecodeError, binascii.Error, MalformedPictureBlock) as e:
        console.print(f"[red]Error reading picture block:[/] {escape(str(e))}")
        return 1

    console.print(Panel(block_table(block), title="METADATA_BLOCK_PICTURE", border_style="green"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
