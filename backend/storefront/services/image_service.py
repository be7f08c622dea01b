"""
Storefront Backend — Image Pipeline
=====================================

What:  Derives the display and thumbnail images from an upload, stores both in
       the remote asset store, and removes previously stored pairs.
Why:   Products always carry exactly one matched image pair. This module is
       the only place that produces or destroys one.
How:   Pillow does the resizing in a worker thread; the Cloudinary SDK (which
       is synchronous) is driven through `asyncio.to_thread` so uploads do
       not block the event loop.
Who:   ProductService on create, update and delete.

Derivatives:
    display:   fit inside 1024x1024, aspect ratio preserved, never upscaled, JPEG q80
    thumbnail: cover-fit to exactly 200x200 (center crop), JPEG q70
    source:    at most MAX_SOURCE_PIXELS, checked from the header before decoding

Failure semantics:
    Both uploads are started together. If either fails the whole operation
    fails with AssetUploadFailedError; a derivative that did upload is
    destroyed best-effort so no mismatched pair is ever persisted.
    Deleting old images is best-effort: failures are logged, never raised.
    Nothing here retries.
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple
from urllib.parse import urlparse

import cloudinary
import cloudinary.uploader
from fastapi import Request
from PIL import Image, ImageOps, UnidentifiedImageError

from storefront.config import Settings
from storefront.exceptions import AssetUploadFailedError, UnsupportedImageFormatError
from storefront.services.upload_service import UploadedImage

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png"}

DISPLAY_MAX_SIZE = (1024, 1024)
DISPLAY_QUALITY = 80
THUMBNAIL_SIZE = (200, 200)
THUMBNAIL_QUALITY = 70

# Transparent PNG areas are flattened onto this before JPEG encoding
FLATTEN_BACKGROUND = (255, 255, 255)

# Source images larger than this are refused before decoding (8000x5000).
# A 2 MB PNG can declare hundreds of millions of pixels.
MAX_SOURCE_PIXELS = 40_000_000


class AssetUrlError(ValueError):
    """A URL does not have the shape the asset store issues."""


@dataclass(frozen=True)
class StoredAsset:
    url: str
    public_id: str


@dataclass(frozen=True)
class ImagePair:
    """Display + thumbnail URLs produced by one upload operation."""

    image_url: str
    thumbnail_url: str

    @property
    def urls(self) -> Tuple[str, str]:
        return self.image_url, self.thumbnail_url


# ══════════════════════════════════════════════════════════════════════════
# Pure helpers
# ══════════════════════════════════════════════════════════════════════════

def public_id_from_url(url: str) -> str:
    """
    Recover the asset store identifier from a delivery URL.

    The identifier is the last two path segments (folder + file name) with the
    file extension removed:

        https://res.cloudinary.com/demo/image/upload/v1712345/CloudinaryDemo/abc123.jpg
        → "CloudinaryDemo/abc123"

    Raises:
        AssetUrlError: fewer than two path segments, or an empty file name
    """
    segments = [segment for segment in urlparse(url).path.split("/") if segment]
    if len(segments) < 2:
        raise AssetUrlError(f"Cannot derive asset id from URL: {url!r}")

    folder, filename = segments[-2], segments[-1]
    stem = filename.split(".", 1)[0]
    if not stem:
        raise AssetUrlError(f"Cannot derive asset id from URL: {url!r}")
    return f"{folder}/{stem}"


def _to_rgb(image: Image.Image) -> Image.Image:
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, FLATTEN_BACKGROUND)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def _encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def build_derivatives(content: bytes) -> Tuple[bytes, bytes]:
    """
    Produce (display_jpeg, thumbnail_jpeg) from raw image bytes.

    CPU-bound; callers run it in a worker thread.

    Raises:
        UnsupportedImageFormatError: Pillow cannot decode the bytes, or the
            declared dimensions exceed MAX_SOURCE_PIXELS
    """
    try:
        with Image.open(io.BytesIO(content)) as source:
            # open() only reads the header; refuse before pixels are decoded
            pixels = source.width * source.height
            if pixels > MAX_SOURCE_PIXELS:
                raise UnsupportedImageFormatError(
                    context={"pixels": pixels, "max_pixels": MAX_SOURCE_PIXELS}
                )
            source.load()
            rgb = _to_rgb(source)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise UnsupportedImageFormatError(context={"decode_error": str(e)})

    # thumbnail() only ever shrinks and keeps the aspect ratio
    display = rgb.copy()
    display.thumbnail(DISPLAY_MAX_SIZE, Image.Resampling.LANCZOS)

    thumbnail = ImageOps.fit(rgb, THUMBNAIL_SIZE, Image.Resampling.LANCZOS)

    return _encode_jpeg(display, DISPLAY_QUALITY), _encode_jpeg(thumbnail, THUMBNAIL_QUALITY)


# ══════════════════════════════════════════════════════════════════════════
# Remote asset store
# ══════════════════════════════════════════════════════════════════════════

class AssetStore:
    """
    Process-wide handle on the Cloudinary account.

    Created once in the application lifespan and stored on `app.state`.
    """

    def __init__(self, cloud_name: str, api_key: str, api_secret: str, folder: str):
        self.folder = folder
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )
        logger.info("AssetStore configured for cloud=%s folder=%s", cloud_name, folder)

    @classmethod
    def from_settings(cls, config: Settings) -> "AssetStore":
        return cls(
            cloud_name=config.cloudinary_cloud_name,
            api_key=config.cloudinary_api_key,
            api_secret=config.cloudinary_api_secret,
            folder=config.cloudinary_folder,
        )

    async def upload(self, data: bytes) -> StoredAsset:
        result = await asyncio.to_thread(
            cloudinary.uploader.upload,
            io.BytesIO(data),
            folder=self.folder,
            format="jpg",
            resource_type="image",
        )
        return StoredAsset(url=result["secure_url"], public_id=result["public_id"])

    async def destroy(self, public_id: str) -> str:
        result = await asyncio.to_thread(
            cloudinary.uploader.destroy,
            public_id,
            resource_type="image",
        )
        return result.get("result", "")


# ══════════════════════════════════════════════════════════════════════════
# Pipeline
# ══════════════════════════════════════════════════════════════════════════

class ImagePipeline:
    """Format check → derivatives → paired upload; and best-effort discard."""

    def __init__(self, store: AssetStore):
        self.store = store

    def ensure_supported(self, upload: UploadedImage) -> None:
        """Reject anything whose declared MIME type is not JPEG or PNG."""
        if upload.content_type not in ALLOWED_IMAGE_TYPES:
            raise UnsupportedImageFormatError(
                context={"content_type": upload.content_type, "filename": upload.filename}
            )

    async def process(self, upload: UploadedImage) -> ImagePair:
        """
        Build and upload both derivatives.

        Returns:
            ImagePair whose two URLs come from this single call.

        Raises:
            UnsupportedImageFormatError: bad declared type or undecodable bytes
            AssetUploadFailedError: at least one upload failed
        """
        self.ensure_supported(upload)
        display, thumbnail = await asyncio.to_thread(build_derivatives, upload.content)

        results = await asyncio.gather(
            self.store.upload(display),
            self.store.upload(thumbnail),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, Exception)]
        if failures:
            for error in failures:
                logger.error("Asset upload failed: %s", str(error))
            stray = [r for r in results if isinstance(r, StoredAsset)]
            for asset in stray:
                await self._destroy_quietly(asset.public_id)
            raise AssetUploadFailedError(
                context={"failed": len(failures), "error_type": type(failures[0]).__name__}
            )

        image_asset, thumbnail_asset = results
        logger.info(
            "Uploaded image pair: %s, %s", image_asset.public_id, thumbnail_asset.public_id
        )
        return ImagePair(image_url=image_asset.url, thumbnail_url=thumbnail_asset.url)

    async def discard(self, urls: Iterable[Optional[str]]) -> None:
        """Delete previously issued assets. Never raises."""
        await asyncio.gather(*(self._discard_url(url) for url in urls if url))

    async def _discard_url(self, url: str) -> None:
        try:
            public_id = public_id_from_url(url)
        except AssetUrlError as e:
            logger.warning("Skipping asset cleanup: %s", str(e))
            return
        await self._destroy_quietly(public_id)

    async def _destroy_quietly(self, public_id: str) -> None:
        try:
            outcome = await self.store.destroy(public_id)
            logger.info("Destroyed asset %s (%s)", public_id, outcome)
        except Exception as e:
            # Cleanup is best-effort; an orphaned remote asset is acceptable
            logger.warning("Failed to destroy asset %s: %s", public_id, str(e))


def get_image_pipeline(request: Request) -> ImagePipeline:
    """FastAPI dependency returning the pipeline built at startup."""
    return request.app.state.image_pipeline
