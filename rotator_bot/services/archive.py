# rotator_bot/services/archive.py
import io
import zipfile

import structlog

from rotator_bot.dto.rotation import EncodedImage, WorkflowState
from rotator_bot.services.errors import ArchiveError

logger = structlog.get_logger(__name__)


def archive_entries(state: WorkflowState) -> list[tuple[str, EncodedImage]]:
    """
    Returns (name, image) pairs in archive order: the original first, then the
    generated views in generation order.
    """
    if not state.is_finished or state.original_image is None:
        raise ArchiveError()

    original = state.original_image
    entries = [(f"original.{original.extension}", original)]
    for i, generated in enumerate(state.generated_images, start=1):
        entries.append((f"generated_{i}.{generated.image.extension}", generated.image))
    return entries


def build_archive(state: WorkflowState) -> bytes:
    """Packs the original and the three generated views into a ZIP."""
    entries = archive_entries(state)
    buffer = io.BytesIO()
    try:
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, image in entries:
                zf.writestr(name, image.raw_bytes)
    except (zipfile.BadZipFile, ValueError, OSError) as e:
        logger.exception("Failed to create ZIP", entries=[name for name, _ in entries])
        raise ArchiveError() from e

    logger.info("ZIP created", entries=len(entries), size=buffer.tell())
    return buffer.getvalue()
