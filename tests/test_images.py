import io

import pytest
from PIL import Image

from recipe_blog.errors import UploadFailure
from recipe_blog.images import allowed_file, compress_image, remove_upload, save_upload


def encode(img, fmt="PNG"):
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def test_compress_bounds_size_and_edge():
    big = Image.effect_noise((2400, 1600), 64).convert("RGB")
    out = compress_image(encode(big), max_size_mb=0.3, max_edge=800)

    assert len(out) <= 0.3 * 1024 * 1024
    result = Image.open(io.BytesIO(out))
    assert result.format == "JPEG"
    assert max(result.size) == 800
    assert result.size == (800, 533)


def test_compress_keeps_small_images_small():
    small = Image.new("RGBA", (120, 90), (10, 20, 30, 255))
    result = Image.open(io.BytesIO(compress_image(encode(small))))
    assert result.size == (120, 90)
    assert result.mode == "RGB"


def test_compress_rejects_garbage():
    with pytest.raises(UploadFailure):
        compress_image(b"definitely not an image")


def test_allowed_file():
    assert allowed_file("cover.JPG")
    assert allowed_file("a.b.webp")
    assert not allowed_file("notes.txt")
    assert not allowed_file("noext")


def test_save_and_remove(tmp_path):
    url = save_upload(b"jpeg-bytes", "cover.jpg", tmp_path)
    assert url.startswith("/static/uploads/") and url.endswith(".jpg")
    stored = tmp_path / url.rsplit("/", 1)[1]
    assert stored.read_bytes() == b"jpeg-bytes"

    assert remove_upload(url, tmp_path) is True
    assert not stored.exists()
    assert remove_upload(url, tmp_path) is False


def test_remove_ignores_foreign_urls(tmp_path):
    (tmp_path / "keep.jpg").write_bytes(b"x")
    assert remove_upload("https://cdn.example.com/keep.jpg", tmp_path) is False
    assert remove_upload(None, tmp_path) is False
    assert (tmp_path / "keep.jpg").exists()


def test_save_rejects_type(tmp_path):
    with pytest.raises(UploadFailure):
        save_upload(b"x", "script.sh", tmp_path)


def test_compress_rejects_oversized_pixels(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    with pytest.raises(UploadFailure):
        compress_image(encode(Image.new("RGB", (100, 100))))
