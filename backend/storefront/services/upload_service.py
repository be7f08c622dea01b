"""
Storefront Backend — Upload Intake
====================================

What:  Turns the optional `image` multipart part into bytes + declared MIME type.
Why:   Size and transport failures must surface as their own errors, distinct
       from business validation.
How:   Reads at most `max_upload_size + 1` bytes so an oversized upload is
       detected without buffering all of it.
Who:   Called by the product routes before validation runs.

What this layer does NOT decide:
    Whether an image is mandatory. Create requires one, update does not;
    an absent file is returned as None and the caller chooses.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import UploadFile

from storefront.config import settings
from storefront.exceptions import PayloadTooLargeError, UploadFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedImage:
    """Raw upload handed to the image pipeline."""

    content: bytes
    content_type: str
    filename: str

    @property
    def size(self) -> int:
        return len(self.content)


class UploadService:
    """Reads the single image part of a multipart request with a byte ceiling."""

    def __init__(self, max_size: Optional[int] = None):
        self.max_size = max_size or settings.max_upload_size

    def validate_size(self, declared_size: Optional[int], actual_size: int) -> None:
        """
        Validate upload size against the ceiling.

        Checks the size the multipart parser reported first, then the number
        of bytes actually read (the declared size may be missing or wrong).

        Raises:
            PayloadTooLargeError
        """
        if declared_size and declared_size > self.max_size:
            raise PayloadTooLargeError(
                max_size=self.max_size, context={"reported_size": declared_size}
            )
        if actual_size > self.max_size:
            raise PayloadTooLargeError(
                max_size=self.max_size, context={"actual_size": actual_size}
            )

    async def read_image(self, upload: Optional[UploadFile]) -> Optional[UploadedImage]:
        """
        Read the uploaded image, if any.

        Returns:
            UploadedImage, or None when no file was sent. Browsers submit an
            empty part with no filename when the file input is left blank;
            that counts as no file.

        Raises:
            PayloadTooLargeError: file exceeds the ceiling
            UploadFailedError: the part could not be read
        """
        if upload is None:
            return None

        try:
            content = await upload.read(self.max_size + 1)
        except Exception as e:
            logger.error("Failed to read uploaded file %s: %s", upload.filename, str(e))
            raise UploadFailedError(context={"error_type": type(e).__name__})
        finally:
            await upload.close()

        if not upload.filename and not content:
            return None

        self.validate_size(upload.size, len(content))

        logger.info(
            "Received upload: filename=%s, type=%s, size=%d bytes",
            upload.filename or "unknown",
            upload.content_type,
            len(content),
        )
        return UploadedImage(
            content=content,
            content_type=(upload.content_type or "application/octet-stream").lower(),
            filename=upload.filename or "upload",
        )


upload_service = UploadService()
