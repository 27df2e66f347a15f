import io
import zipfile

import pytest

from rotator_bot.dto.rotation import EncodedImage, GeneratedImage, SourceImage, WorkflowState
from rotator_bot.services.archive import archive_entries, build_archive
from rotator_bot.services.errors import ArchiveError


def finished_state(original_mime="image/png", generated_mime="image/png") -> WorkflowState:
    state = WorkflowState(original_image=SourceImage.from_bytes(b"original", original_mime))
    for i in range(1, 4):
        state.append_generated(
            GeneratedImage(image=EncodedImage.from_bytes(f"view {i}".encode(), generated_mime), prompt=f"p{i}")
        )
    return state


def test_entries_are_ordered_original_first():
    names = [name for name, _ in archive_entries(finished_state())]
    assert names == ["original.png", "generated_1.png", "generated_2.png", "generated_3.png"]


def test_extensions_follow_each_image_type():
    names = [name for name, _ in archive_entries(finished_state("image/jpeg", "image/webp"))]
    assert names == ["original.jpg", "generated_1.webp", "generated_2.webp", "generated_3.webp"]


def test_zip_contains_exactly_the_four_images():
    data = build_archive(finished_state())

    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert zf.namelist() == ["original.png", "generated_1.png", "generated_2.png", "generated_3.png"]
        assert zf.read("original.png") == b"original"
        assert zf.read("generated_2.png") == b"view 2"
        assert zf.getinfo("generated_3.png").compress_type == zipfile.ZIP_DEFLATED


def test_unfinished_run_cannot_be_archived():
    state = finished_state()
    state.generated_images.pop()
    with pytest.raises(ArchiveError):
        build_archive(state)


def test_failed_run_cannot_be_archived():
    state = finished_state()
    state.error_message = "Failed"
    with pytest.raises(ArchiveError):
        build_archive(state)


def test_run_still_loading_cannot_be_archived():
    state = finished_state()
    state.is_loading = True
    with pytest.raises(ArchiveError) as exc_info:
        build_archive(state)
    assert exc_info.value.user_message == "Failed to create ZIP file."
