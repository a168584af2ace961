import base64
import sys
from enum import Enum

from coverart.picture import PictureBlock

FFMETADATA_HEADER = ";FFMETADATA1"


class OutputMode(Enum):
    RAW = "binary"
    BASE64 = "base64"
    FFMETADATA = "ffmetadata"


def _escape_ffmetadata(value: str) -> str:
    # ffmetadata treats these as syntax, a backslash makes them literal
    for char in ("\\", "=", ";", "#", "\n"):
        value = value.replace(char, "\\" + char)
    return value


def to_base64(block: PictureBlock) -> str:
    return base64.b64encode(block.data).decode("ascii")


def to_ffmetadata(block: PictureBlock) -> str:
    """
    Render an ffmetadata ini document with the block attached to a [STREAM]
    section, so ffmpeg gives that stream the attached_pic disposition.
    """
    label = _escape_ffmetadata(block.description or block.type_label)
    lines = [
        FFMETADATA_HEADER,
        "[STREAM]",
        f"title={label}",
        f"comment={label}",
        # base64 padding is left unescaped so the value matches base64 mode
        f"metadata={to_base64(block)}",
    ]
    return "\n".join(lines) + "\n"


def render(block: PictureBlock, mode: OutputMode) -> bytes | str:
    if mode is OutputMode.RAW:
        return block.data
    if mode is OutputMode.BASE64:
        return to_base64(block)
    if mode is OutputMode.FFMETADATA:
        return to_ffmetadata(block)
    raise ValueError(f"Unknown output mode: {mode}")


def write_output(rendered: bytes | str, destination: str | None = None) -> None:
    """Write rendered output to a file, or stdout when destination is None or "-"."""
    data = rendered.encode("utf-8") if isinstance(rendered, str) else rendered

    if destination in (None, "-"):
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return

    with open(destination, "wb") as f:
        f.write(data)


def extract_ffmetadata_value(document: str, key: str = "metadata") -> str | None:
    """Return the first value stored under key in an ffmetadata document."""
    prefix = f"{key}="
    for line in document.splitlines():
        if line.startswith(prefix):
            return line[len(prefix):]
    return None
