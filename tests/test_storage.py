import io
import os

import pytest
from fastapi import UploadFile

from errors import BadRequestError
from storage import IMAGE, VIDEO, LocalAssetHost, stage_upload, validate_format


@pytest.fixture
def host(tmp_path):
    return LocalAssetHost(str(tmp_path / "uploads"), "/static", temp_dir=str(tmp_path / "temp"))


def _upload(filename, content=b"binary"):
    return UploadFile(file=io.BytesIO(content), filename=filename)


def test_validate_format():
    assert validate_format("clip.MP4", VIDEO) == "mp4"
    with pytest.raises(BadRequestError):
        validate_format("clip.mp4", IMAGE)
    with pytest.raises(BadRequestError):
        validate_format("noext", IMAGE)


def test_store_moves_file_and_cleans_temp(host, tmp_path):
    asset = host.store(_upload("avatar.png", b"png-bytes"), IMAGE)

    assert asset.public_id.startswith("images/")
    assert asset.public_id.endswith(".png")
    assert asset.url == f"/static/{asset.public_id}"
    stored = tmp_path / "uploads" / asset.public_id
    assert stored.read_bytes() == b"png-bytes"
    assert os.listdir(tmp_path / "temp") == []


def test_stage_upload_removes_temp_file_on_error(tmp_path):
    temp_dir = str(tmp_path / "temp")
    with pytest.raises(RuntimeError):
        with stage_upload(_upload("clip.mp4"), VIDEO, temp_dir) as temp_path:
            assert os.path.exists(temp_path)
            raise RuntimeError("upload failed")
    assert os.listdir(temp_dir) == []


def test_stage_upload_rejects_format_before_writing(tmp_path):
    temp_dir = tmp_path / "temp"
    with pytest.raises(BadRequestError):
        with stage_upload(_upload("script.exe"), IMAGE, str(temp_dir)):
            pass
    assert not temp_dir.exists()


def test_delete(host):
    asset = host.store(_upload("thumb.jpg"), IMAGE)
    assert host.delete(asset.public_id, IMAGE) is True
    assert host.delete(asset.public_id, IMAGE) is False
    assert host.delete(None) is False


def test_delete_refuses_paths_outside_upload_dir(host):
    with pytest.raises(BadRequestError):
        host.delete("../../etc/passwd")


def test_discard_removes_every_asset(host):
    first = host.store(_upload("a.png"), IMAGE)
    second = host.store(_upload("b.mp4"), VIDEO)
    host.discard([(first, IMAGE), (second, VIDEO)])
    assert host.delete(first.public_id) is False
    assert host.delete(second.public_id, VIDEO) is False
