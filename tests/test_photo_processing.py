import asyncio
import io
from types import SimpleNamespace

import pytest

from tests.conftest import make_png
from rotator_bot.services.errors import InputImageError
from rotator_bot.services.photo_processing import download_source_image, guess_mime, to_source_image


class FakeBot:
    def __init__(self, payload=b"", file_path="photos/file_1.jpg", fail=False):
        self.payload = payload
        self.file_path = file_path
        self.fail = fail

    async def get_file(self, file_id):
        if self.fail:
            raise ConnectionError("telegram unreachable")
        return SimpleNamespace(file_id=file_id, file_path=self.file_path)

    async def download_file(self, file_path):
        return io.BytesIO(self.payload)


def test_png_is_sniffed():
    assert guess_mime(make_png()) == "image/png"


def test_non_image_bytes_are_rejected():
    with pytest.raises(InputImageError):
        guess_mime(b"definitely not an image")


def test_declared_image_type_is_kept():
    image = to_source_image(b"\xff\xd8 whatever", "image/jpeg")
    assert image.mime_type == "image/jpeg"
    assert image.raw_bytes == b"\xff\xd8 whatever"


def test_generic_declared_type_falls_back_to_sniffing():
    assert to_source_image(make_png(), "application/octet-stream").mime_type == "image/png"


def test_empty_upload_is_rejected():
    with pytest.raises(InputImageError):
        to_source_image(b"", "image/png")


def test_download_builds_source_image():
    bot = FakeBot(payload=make_png())
    image = asyncio.run(download_source_image(bot, "file-id", None))
    assert image.mime_type == "image/png"


def test_download_failure_is_an_input_error():
    with pytest.raises(InputImageError) as exc_info:
        asyncio.run(download_source_image(FakeBot(fail=True), "file-id", "image/jpeg"))
    assert exc_info.value.user_message == "Failed to read the image file."


def test_missing_file_path_is_an_input_error():
    with pytest.raises(InputImageError):
        asyncio.run(download_source_image(FakeBot(file_path=None), "file-id", "image/jpeg"))
