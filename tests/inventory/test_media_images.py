"""Tests for companion image storage."""

import base64

import pytest

from zirkel_inventory.inventory.media_images import extension_for, save_data_uri_image, save_media_image


def test_extension_for():
    assert extension_for("image/jpeg") == "jpeg"
    assert extension_for("image/png") == "png"
    assert extension_for("") == "jpg"


def test_save_media_image(tmp_path):
    path = save_media_image(tmp_path / "media", "ZMIMU101", b"\xff\xd8\xff")
    assert path == tmp_path / "media" / "ZMIMU101.jpeg"
    assert path.read_bytes() == b"\xff\xd8\xff"


def test_save_overwrites_existing(tmp_path):
    save_media_image(tmp_path, "ZMIMU101", b"old")
    save_media_image(tmp_path, "ZMIMU101", b"new")
    assert (tmp_path / "ZMIMU101.jpeg").read_bytes() == b"new"


def test_unsafe_key_rejected(tmp_path):
    with pytest.raises(ValueError):
        save_media_image(tmp_path, "../escape", b"x")


def test_save_data_uri_image(tmp_path):
    uri = "data:image/png;base64," + base64.b64encode(b"png-bytes").decode()
    path = save_data_uri_image(tmp_path, "ZMGEX-3", uri)
    assert path.name == "ZMGEX-3.png"
    assert path.read_bytes() == b"png-bytes"


def test_save_data_uri_rejects_garbage(tmp_path):
    with pytest.raises(ValueError, match="data URI"):
        save_data_uri_image(tmp_path, "ZMIMU101", "https://example.com/a.jpg")
    with pytest.raises(ValueError, match="base64"):
        save_data_uri_image(tmp_path, "ZMIMU101", "data:image/jpeg;base64,@@@")
