import io
import struct

from PIL import Image, UnidentifiedImageError

from coverart.picture import CoverArtError, ImageDescriptor, PixelFormat, UnsupportedPixelFormat

# PIL image mode -> pixel format, used for everything but PNG
PIL_MODE_FORMATS = {
    "1": PixelFormat.GRAY1,
    "L": PixelFormat.GRAY8,
    "I;16": PixelFormat.GRAY16,
    "I;16B": PixelFormat.GRAY16,
    "LA": PixelFormat.GRAYA8,
    "RGB": PixelFormat.RGB8,
    "RGBA": PixelFormat.RGBA8,
    "P": PixelFormat.INDEXED8,
    "CMYK": PixelFormat.CMYK8,
}

# PIL widens PNG samples to its own modes, so the depth comes from the IHDR
# chunk instead: (colour type, bit depth) -> pixel format
PNG_FORMATS = {
    (0, 1): PixelFormat.GRAY1,
    (0, 2): PixelFormat.GRAY2,
    (0, 4): PixelFormat.GRAY4,
    (0, 8): PixelFormat.GRAY8,
    (0, 16): PixelFormat.GRAY16,
    (2, 8): PixelFormat.RGB8,
    (2, 16): PixelFormat.RGB16,
    (3, 1): PixelFormat.INDEXED8,
    (3, 2): PixelFormat.INDEXED8,
    (3, 4): PixelFormat.INDEXED8,
    (3, 8): PixelFormat.INDEXED8,
    (4, 8): PixelFormat.GRAYA8,
    (4, 16): PixelFormat.GRAYA16,
    (6, 8): PixelFormat.RGBA8,
    (6, 16): PixelFormat.RGBA16,
}

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class ImageDecodeError(CoverArtError):
    pass


def pixel_format_for_mode(mode: str) -> PixelFormat:
    try:
        return PIL_MODE_FORMATS[mode]
    except KeyError:
        raise UnsupportedPixelFormat(mode) from None


def png_pixel_format(img_bytes: bytes) -> tuple[PixelFormat, int]:
    """
    Read the pixel format and colour depth from the IHDR chunk of a PNG.

    The IHDR is always the first chunk: signature, length, "IHDR", width,
    height, then one byte each of bit depth and colour type.
    """
    if img_bytes[:8] != PNG_SIGNATURE or img_bytes[12:16] != b"IHDR" or len(img_bytes) < 26:
        raise ImageDecodeError("PNG data does not start with an IHDR chunk")

    bit_depth, color_type = struct.unpack(">BB", img_bytes[24:26])
    try:
        pixel_format = PNG_FORMATS[(color_type, bit_depth)]
    except KeyError:
        raise UnsupportedPixelFormat(f"PNG colour type {color_type}, bit depth {bit_depth}") from None

    # indexed images count as one channel of bit_depth bits
    return pixel_format, pixel_format.channels * bit_depth


def describe_image(img_bytes: bytes) -> ImageDescriptor:
    """
    Decode the image header and collect the fields of a picture block.

    Args:
        img_bytes: Full contents of an image file

    Returns:
        ImageDescriptor with the MIME type, size and pixel format of the image

    Raises:
        ImageDecodeError: PIL can't identify the data as an image, or refuses it
            as a decompression bomb
        UnsupportedPixelFormat: the image mode has no matching pixel format
    """
    try:
        with Image.open(io.BytesIO(img_bytes)) as img:
            mime_type = img.get_format_mimetype()
            image_format = img.format
            width, height = img.size
            mode = img.mode
    except UnidentifiedImageError as e:
        raise ImageDecodeError("Data is not an image supported by PIL") from e
    except Image.DecompressionBombError as e:
        raise ImageDecodeError(f"Image is too large to decode safely: {e}") from e

    if not mime_type:
        raise ImageDecodeError(f"Could not determine image MIME type for mode {mode}")

    if image_format == "PNG":
        pixel_format, color_depth = png_pixel_format(img_bytes)
    else:
        pixel_format = pixel_format_for_mode(mode)
        color_depth = pixel_format.bits_per_pixel

    return ImageDescriptor(
        mime_type=mime_type,
        width=width,
        height=height,
        pixel_format=pixel_format,
        color_depth=color_depth,
    )
