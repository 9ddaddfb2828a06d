import os
import uuid
import pathlib
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScratchDocument:
    request_id: str
    input_path: str
    output_path: str


def new_request_id() -> str:
    """Returns a collision-proof identifier for one request's scratch files."""
    return uuid.uuid4().hex


def delete_scratch_file(path: str) -> None:
    """
    Removes a scratch file if it exists. Failures are logged, never raised.
    """
    if not path or not os.path.exists(path):
        return
    try:
        os.remove(path)
        logger.debug(f"Deleted scratch file: {path}")
    except OSError as e:
        logger.warning(f"Failed to delete scratch file {path}: {e}")


def prepare_scratch_dir(scratch_dir: str) -> None:
    """Creates scratch_dir if needed. Raises OSError when it cannot be used as a directory."""
    pathlib.Path(scratch_dir).mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def scratch_document(scratch_dir: str, request_id: Optional[str] = None) -> AsyncIterator[ScratchDocument]:
    """
    Yields a unique (input, output) PDF path pair inside scratch_dir and removes
    both files on exit, whether the block succeeded, raised or was cancelled.
    """
    prepare_scratch_dir(scratch_dir)

    request_id = request_id or new_request_id()
    document = ScratchDocument(
        request_id=request_id,
        input_path=os.path.join(scratch_dir, f"input-{request_id}.pdf"),
        output_path=os.path.join(scratch_dir, f"output-{request_id}.pdf"),
    )
    try:
        yield document
    finally:
        logger.info(f"[{request_id}] Cleaning up scratch files")
        delete_scratch_file(document.input_path)
        delete_scratch_file(document.output_path)
