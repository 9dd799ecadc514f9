"""Image resizing with Pillow."""

import io
from dataclasses import dataclass
from pathlib import Path

import structlog
from PIL import Image, ImageOps

from podarchive.errors import FilesystemError, MediaError

logger = structlog.get_logger(__name__)

# Pillow format name -> (file extension, mime type)
SUPPORTED_FORMATS = {
    "JPEG": ("jpg", "image/jpeg"),
    "PNG": ("png", "image/png"),
    "GIF": ("gif", "image/gif"),
    "WEBP": ("webp", "image/webp"),
}

COVER_SIZE = (720, 720)
BANNER_SIZE = (960, 540)


@dataclass(frozen=True)
class Picture:
    """Encoded image ready to embed in a tag."""

    data: bytes
    mime_type: str


class ImageResizer:
    """Decodes an image once and encodes resized copies in the same format."""

    def __init__(self, path: Path) -> None:
        """Open and decode an image.

        Raises:
            MediaError: If the file is not a decodable image of a supported format.
        """
        try:
            with Image.open(path) as image:
                image.load()
                self.format = image.format
                self.image = image.copy()
        except FileNotFoundError as e:
            raise FilesystemError(path, str(e)) from e
        except (OSError, Image.DecompressionBombError) as e:
            raise MediaError(f"Unable to decode image: {path}") from e
        if self.format not in SUPPORTED_FORMATS:
            raise MediaError(f"Unable to encode image format {self.format}: {path}")

    @property
    def extension(self) -> str:
        return SUPPORTED_FORMATS[self.format][0]

    @property
    def mime_type(self) -> str:
        return SUPPORTED_FORMATS[self.format][1]

    def to_bytes(self, width: int, height: int) -> bytes:
        """Crop to the target aspect ratio and resize."""
        resized = ImageOps.fit(self.image, (width, height), Image.Resampling.LANCZOS)
        if self.format == "JPEG" and resized.mode not in ("RGB", "L"):
            resized = resized.convert("RGB")
        elif resized.mode == "CMYK":
            resized = resized.convert("RGB")
        buffer = io.BytesIO()
        try:
            resized.save(buffer, format=self.format)
        except (OSError, ValueError) as e:
            raise MediaError(f"Unable to encode {self.format} image") from e
        return buffer.getvalue()

    def to_picture(self, width: int, height: int) -> Picture:
        return Picture(data=self.to_bytes(width, height), mime_type=self.mime_type)

    def to_file(self, path: Path, width: int, height: int) -> Path:
        """Write a resized copy, choosing the extension from the image format.

        Returns:
            The written path.
        """
        target = path.with_suffix(f".{self.extension}")
        data = self.to_bytes(width, height)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise FilesystemError(target, str(e)) from e
        logger.debug("Wrote image", path=str(target), width=width, height=height)
        return target
