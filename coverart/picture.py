import struct
from dataclasses import dataclass, field
from enum import Enum, IntEnum

UINT32_MAX = 0xFFFFFFFF

# pictureType, mimeLength, descLength, width, height, depth, colors, dataLength
HEADER_SIZE = 8 * 4


class CoverArtError(Exception):
    """Base class for every error raised while building a picture block."""


class UnsupportedPixelFormat(CoverArtError):
    def __init__(self, pixel_format):
        self.pixel_format = pixel_format
        name = getattr(pixel_format, "name", pixel_format)
        super().__init__(f"Unsupported pixel format: {name}")


class InvalidMimeType(CoverArtError):
    def __init__(self, mime_type):
        self.mime_type = mime_type
        super().__init__(f"Invalid MIME type: {mime_type!r} (must be non-empty printable ASCII)")


class ImageTooLarge(CoverArtError):
    def __init__(self, field_name: str, size: int):
        self.field_name = field_name
        self.size = size
        super().__init__(f"{field_name} is {size} bytes, which does not fit in a 32-bit length field")


class InvalidFieldValue(CoverArtError, ValueError):
    pass


class MalformedPictureBlock(CoverArtError):
    pass


class PixelFormat(Enum):
    GRAY1 = "gray1"
    GRAY2 = "gray2"
    GRAY4 = "gray4"
    GRAY8 = "gray8"
    GRAY16 = "gray16"
    GRAYA8 = "graya8"
    GRAYA16 = "graya16"
    RGB8 = "rgb8"
    RGB16 = "rgb16"
    RGBA8 = "rgba8"
    RGBA16 = "rgba16"
    INDEXED8 = "indexed8"
    CMYK8 = "cmyk8"

    @property
    def channels(self) -> int:
        return _PIXEL_LAYOUTS[self][0]

    @property
    def bits_per_channel(self) -> int:
        return _PIXEL_LAYOUTS[self][1]

    @property
    def bits_per_pixel(self) -> int:
        return self.channels * self.bits_per_channel


# (channels, bits per channel); indexed images count as a single channel
_PIXEL_LAYOUTS = {
    PixelFormat.GRAY1: (1, 1),
    PixelFormat.GRAY2: (1, 2),
    PixelFormat.GRAY4: (1, 4),
    PixelFormat.GRAY8: (1, 8),
    PixelFormat.GRAY16: (1, 16),
    PixelFormat.GRAYA8: (2, 8),
    PixelFormat.GRAYA16: (2, 16),
    PixelFormat.RGB8: (3, 8),
    PixelFormat.RGB16: (3, 16),
    PixelFormat.RGBA8: (4, 8),
    PixelFormat.RGBA16: (4, 16),
    PixelFormat.INDEXED8: (1, 8),
    PixelFormat.CMYK8: (4, 8),
}


SUPPORTED_PIXEL_FORMATS = frozenset(set(PixelFormat) - {PixelFormat.CMYK8})


class PictureType(IntEnum):
    OTHER = 0
    FILE_ICON = 1
    OTHER_FILE_ICON = 2
    COVER_FRONT = 3
    COVER_BACK = 4
    LEAFLET_PAGE = 5
    MEDIA = 6
    LEAD_ARTIST = 7
    ARTIST = 8
    CONDUCTOR = 9
    BAND = 10
    COMPOSER = 11
    LYRICIST = 12
    RECORDING_LOCATION = 13
    DURING_RECORDING = 14
    DURING_PERFORMANCE = 15
    SCREEN_CAPTURE = 16
    BRIGHT_COLOURED_FISH = 17
    ILLUSTRATION = 18
    BAND_LOGOTYPE = 19
    PUBLISHER_LOGOTYPE = 20


PICTURE_TYPE_LABELS = {
    PictureType.OTHER: "Other",
    PictureType.FILE_ICON: "32x32 pixels 'file icon' (PNG only)",
    PictureType.OTHER_FILE_ICON: "Other file icon",
    PictureType.COVER_FRONT: "Cover (front)",
    PictureType.COVER_BACK: "Cover (back)",
    PictureType.LEAFLET_PAGE: "Leaflet page",
    PictureType.MEDIA: "Media (e.g. label side of CD)",
    PictureType.LEAD_ARTIST: "Lead artist/lead performer/soloist",
    PictureType.ARTIST: "Artist/performer",
    PictureType.CONDUCTOR: "Conductor",
    PictureType.BAND: "Band/Orchestra",
    PictureType.COMPOSER: "Composer",
    PictureType.LYRICIST: "Lyricist/text writer",
    PictureType.RECORDING_LOCATION: "Recording Location",
    PictureType.DURING_RECORDING: "During recording",
    PictureType.DURING_PERFORMANCE: "During performance",
    PictureType.SCREEN_CAPTURE: "Movie/video screen capture",
    PictureType.BRIGHT_COLOURED_FISH: "A bright coloured fish",
    PictureType.ILLUSTRATION: "Illustration",
    PictureType.BAND_LOGOTYPE: "Band/artist logotype",
    PictureType.PUBLISHER_LOGOTYPE: "Publisher/Studio logotype",
}


def picture_type_label(picture_type: int) -> str:
    try:
        return PICTURE_TYPE_LABELS[PictureType(picture_type)]
    except ValueError:
        return "Unknown"


def coerce_picture_type(value) -> int:
    """Check that value is one of the defined picture type codes and return it as an int."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFieldValue(f"picture type must be an integer, got {value!r}")
    try:
        return PictureType(value).value
    except ValueError:
        raise InvalidFieldValue(
            f"picture type must be between {min(PictureType).value} and {max(PictureType).value}, got {value}"
        ) from None


@dataclass(frozen=True)
class ImageDescriptor:
    """
    What the encoder needs to know about a decoded image.

    color_depth defaults to the pixel format's bits per pixel when left as None.
    """
    mime_type: str
    width: int
    height: int
    pixel_format: PixelFormat
    color_depth: int | None = None

    def __post_init__(self):
        if self.color_depth is None:
            object.__setattr__(self, "color_depth", self.pixel_format.bits_per_pixel)


@dataclass(frozen=True)
class PictureBlock:
    picture_type: int
    mime_type: str
    description: str
    width: int
    height: int
    color_depth: int
    num_colors: int
    picture_data: bytes = field(repr=False)
    data: bytes = field(repr=False)

    def __bytes__(self) -> bytes:
        return self.data

    def __len__(self) -> int:
        return len(self.data)

    @property
    def type_label(self) -> str:
        return picture_type_label(self.picture_type)


def _check_uint32(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFieldValue(f"{name} must be an integer, got {value!r}")
    if not 0 <= value <= UINT32_MAX:
        raise InvalidFieldValue(f"{name} must be between 0 and {UINT32_MAX}, got {value}")


def _check_length(name: str, payload: bytes) -> None:
    if len(payload) > UINT32_MAX:
        raise ImageTooLarge(name, len(payload))


def _is_valid_mime(mime_type: str) -> bool:
    # FLAC restricts the MIME type to printable ASCII, 0x20-0x7E
    return isinstance(mime_type, str) and bool(mime_type) and all(0x20 <= ord(c) <= 0x7E for c in mime_type)


def encode(
    descriptor: ImageDescriptor,
    image_bytes: bytes,
    picture_type: int = PictureType.COVER_FRONT,
    description: str = "",
) -> PictureBlock:
    """
    Serialize a METADATA_BLOCK_PICTURE structure.

    Args:
        descriptor: Metadata of the decoded image
        image_bytes: The image file contents, stored verbatim
        picture_type: FLAC/ID3v2 picture type code (default: 3, front cover)
        description: Free text description, stored as UTF-8

    Returns:
        PictureBlock whose data is the serialized block

    Raises:
        UnsupportedPixelFormat: pixel format is not one we can describe
        InvalidMimeType: MIME type is empty or not printable ASCII
        ImageTooLarge: a length-prefixed field does not fit in 32 bits
        InvalidFieldValue: an integer field is not an int or does not fit in 32 bits,
            or the description is not a string
    """
    if descriptor.pixel_format not in SUPPORTED_PIXEL_FORMATS:
        raise UnsupportedPixelFormat(descriptor.pixel_format)
    if not _is_valid_mime(descriptor.mime_type):
        raise InvalidMimeType(descriptor.mime_type)

    _check_uint32("picture type", picture_type)
    _check_uint32("width", descriptor.width)
    _check_uint32("height", descriptor.height)
    _check_uint32("color depth", descriptor.color_depth)
    if not isinstance(description, str):
        raise InvalidFieldValue(f"description must be a string, got {description!r}")

    mime = descriptor.mime_type.encode("ascii")
    desc = description.encode("utf-8")
    img_bytes = bytes(image_bytes)
    _check_length("MIME type", mime)
    _check_length("description", desc)
    _check_length("picture data", img_bytes)

    # no palette support, the colour count is always left at zero
    colors = 0

    parts = []
    pack = struct.pack
    parts.append(pack(">I", picture_type))
    parts.append(pack(">I", len(mime)) + mime)
    parts.append(pack(">I", len(desc)) + desc)
    parts.append(pack(">I", descriptor.width) + pack(">I", descriptor.height))
    parts.append(pack(">I", descriptor.color_depth) + pack(">I", colors))
    parts.append(pack(">I", len(img_bytes)) + img_bytes)

    return PictureBlock(
        picture_type=int(picture_type),
        mime_type=descriptor.mime_type,
        description=description,
        width=descriptor.width,
        height=descriptor.height,
        color_depth=descriptor.color_depth,
        num_colors=colors,
        picture_data=img_bytes,
        data=b"".join(parts),
    )


def decode(data: bytes) -> PictureBlock:
    """Parse a serialized METADATA_BLOCK_PICTURE back into a PictureBlock."""
    data = bytes(data)
    offset = 0

    def take(size, what):
        nonlocal offset
        if offset + size > len(data):
            raise MalformedPictureBlock(
                f"Truncated picture block: {what} needs {size} bytes at offset {offset}, "
                f"only {len(data) - offset} left"
            )
        chunk = data[offset:offset + size]
        offset += size
        return chunk

    def take_u32(what):
        return struct.unpack(">I", take(4, what))[0]

    picture_type = take_u32("picture type")
    mime = take(take_u32("MIME type length"), "MIME type")
    desc = take(take_u32("description length"), "description")
    width = take_u32("width")
    height = take_u32("height")
    depth = take_u32("color depth")
    colors = take_u32("color count")
    img_bytes = take(take_u32("picture data length"), "picture data")

    if offset != len(data):
        raise MalformedPictureBlock(f"{len(data) - offset} trailing bytes after picture data")

    try:
        mime_type = mime.decode("ascii")
        description = desc.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedPictureBlock(f"Invalid text field: {e}") from e

    return PictureBlock(
        picture_type=picture_type,
        mime_type=mime_type,
        description=description,
        width=width,
        height=height,
        color_depth=depth,
        num_colors=colors,
        picture_data=img_bytes,
        data=data,
    )

