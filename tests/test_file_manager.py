import os
from unittest.mock import patch

import pytest

from app.utils.file_manager import delete_scratch_file, new_request_id, scratch_document


@pytest.mark.asyncio
async def test_scratch_document_paths_and_cleanup(scratch_dir):
    async with scratch_document(str(scratch_dir), "abc123") as scratch:
        assert scratch.input_path == os.path.join(str(scratch_dir), "input-abc123.pdf")
        assert scratch.output_path == os.path.join(str(scratch_dir), "output-abc123.pdf")
        for path in (scratch.input_path, scratch.output_path):
            with open(path, "wb") as f:
                f.write(b"%PDF")

    assert os.listdir(scratch_dir) == []


@pytest.mark.asyncio
async def test_scratch_document_cleans_up_on_error(scratch_dir):
    with pytest.raises(RuntimeError):
        async with scratch_document(str(scratch_dir)) as scratch:
            with open(scratch.input_path, "wb") as f:
                f.write(b"%PDF")
            raise RuntimeError("tool crashed")

    assert os.listdir(scratch_dir) == []


@pytest.mark.asyncio
async def test_scratch_document_creates_missing_directory(tmp_path):
    target = tmp_path / "nested" / "scratch"

    async with scratch_document(str(target)) as scratch:
        assert os.path.dirname(scratch.input_path) == str(target)

    assert target.is_dir()


def test_request_ids_are_unique():
    ids = {new_request_id() for _ in range(1000)}
    assert len(ids) == 1000


def test_delete_scratch_file_ignores_missing_file(tmp_path):
    delete_scratch_file(str(tmp_path / "never-created.pdf"))


def test_delete_scratch_file_swallows_os_errors(tmp_path):
    path = tmp_path / "locked.pdf"
    path.write_bytes(b"%PDF")

    with patch("app.utils.file_manager.os.remove", side_effect=PermissionError("denied")), \
            patch("app.utils.file_manager.logger") as mock_logger:
        delete_scratch_file(str(path))

    mock_logger.warning.assert_called_once()
    assert path.exists()
