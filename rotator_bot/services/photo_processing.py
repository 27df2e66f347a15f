# rotator_bot/services/photo_processing.py
import io

import structlog
from aiogram import Bot
from PIL import Image, UnidentifiedImageError

from rotator_bot.dto.rotation import SourceImage
from rotator_bot.services.errors import InputImageError

logger = structlog.get_logger(__name__)


def guess_mime(data: bytes) -> str:
    """Sniffs the image format with Pillow; raises InputImageError for non-images."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError) as e:
        raise InputImageError() from e
    mime = Image.MIME.get(fmt or "")
    if not mime:
        raise InputImageError()
    return mime


def to_source_image(data: bytes, declared_mime: str | None = None) -> SourceImage:
    """
    Builds the run's SourceImage. A declared image/* type wins; anything else
    is resolved by sniffing the bytes.
    """
    if not data:
        raise InputImageError()
    if declared_mime and declared_mime.lower().startswith("image/"):
        mime_type = declared_mime.lower()
    else:
        mime_type = guess_mime(data)
    return SourceImage.from_bytes(data, mime_type)


async def download_source_image(bot: Bot, file_id: str, declared_mime: str | None = None) -> SourceImage:
    """Downloads a Telegram file fully into memory using get_file -> download_file."""
    try:
        file_info = await bot.get_file(file_id)
        if not file_info.file_path:
            raise InputImageError()
        file_io = await bot.download_file(file_info.file_path)
        if not file_io:
            raise InputImageError()
        data = file_io.read()
    except InputImageError:
        logger.warning("Telegram returned no file for upload", file_id=file_id)
        raise
    except Exception as e:
        logger.warning("Failed to download uploaded image", file_id=file_id, error=str(e))
        raise InputImageError() from e

    return to_source_image(data, declared_mime)
