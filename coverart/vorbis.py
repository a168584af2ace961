import requests

from coverart.image import describe_image
from coverart.picture import PictureBlock, PictureType, encode

REQUEST_TIMEOUT = 30


def make_picture_block_from_url(url: str, **kwargs) -> PictureBlock:
    # fetch the artwork in memory
    resp = requests.get(url, timeout=REQUEST_TIMEOUT)
    resp.raise_for_status()
    return make_picture_block_from_bytes(resp.content, **kwargs)


def make_picture_block_from_path(path: str, **kwargs) -> PictureBlock:
    with open(path, "rb") as f:
        img_data = f.read()

    return make_picture_block_from_bytes(img_data, **kwargs)


def make_picture_block(source: str, **kwargs) -> PictureBlock:
    """Build a picture block from a local path or an http(s) URL."""
    if source.startswith(("http://", "https://")):
        return make_picture_block_from_url(source, **kwargs)
    return make_picture_block_from_path(source, **kwargs)


def make_picture_block_from_bytes(
    img_bytes: bytes,
    picture_type: int = PictureType.COVER_FRONT,
    description: str = "",
) -> PictureBlock:
    descriptor = describe_image(img_bytes)
    return encode(descriptor, img_bytes, picture_type=picture_type, description=description)

