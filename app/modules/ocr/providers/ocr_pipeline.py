import asyncio
import logging
import os
import signal
from typing import List, Optional

from starlette.concurrency import run_in_threadpool

from app.modules.ocr.exceptions import PipelineError, PipelineTimeoutError
from app.utils.file_manager import prepare_scratch_dir, scratch_document

logger = logging.getLogger(__name__)

STDERR_TAIL_CHARS = 1000


def _write_bytes(path: str, data: bytes) -> None:
    with open(path, "wb") as f:
        f.write(data)


def _kill_process_group(process: asyncio.subprocess.Process) -> None:
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        try:
            process.kill()
        except ProcessLookupError:
            pass


async def run_command(args: List[str], timeout_seconds: float, tool_name: str) -> bytes:
    """
    Runs a command without a shell and returns its stdout.

    The process is killed and reaped if the deadline passes or the calling
    task is cancelled.
    """
    try:
        # Own session so the whole process group (tesseract workers included) can be killed
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=True,
        )
    except FileNotFoundError:
        raise PipelineError(f"{tool_name} executable not found: {args[0]}")
    except OSError as exc:
        raise PipelineError(f"Could not start {tool_name}: {exc}")

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        raise PipelineTimeoutError(f"{tool_name} did not finish within {timeout_seconds:g}s")
    finally:
        if process.returncode is None:
            logger.warning(f"Killing {tool_name} (pid {process.pid})")
            _kill_process_group(process)
            await process.wait()

    if process.returncode != 0:
        diagnostic = stderr.decode("utf-8", errors="replace").strip()[-STDERR_TAIL_CHARS:]
        raise PipelineError(
            f"{tool_name} failed with exit code {process.returncode}: {diagnostic or 'no diagnostic output'}"
        )
    return stdout


class OcrPipelineRunner:
    """
    Adds a text layer with ocrmypdf, then pulls plain text out with pdftotext.
    """

    def __init__(
        self,
        scratch_dir: str,
        ocrmypdf_bin: str = "ocrmypdf",
        pdftotext_bin: str = "pdftotext",
        language: str = "pol",
        optimize_level: int = 1,
        ocr_timeout_seconds: float = 120.0,
        extract_timeout_seconds: float = 60.0,
    ):
        self.scratch_dir = scratch_dir
        self.ocrmypdf_bin = ocrmypdf_bin
        self.pdftotext_bin = pdftotext_bin
        self.language = language
        self.optimize_level = optimize_level
        self.ocr_timeout_seconds = ocr_timeout_seconds
        self.extract_timeout_seconds = extract_timeout_seconds

    def ocr_command(self, input_path: str, output_path: str) -> List[str]:
        return [
            self.ocrmypdf_bin,
            "-l", self.language,
            "--skip-text",
            "--optimize", str(self.optimize_level),
            input_path,
            output_path,
        ]

    def extract_command(self, pdf_path: str) -> List[str]:
        return [self.pdftotext_bin, pdf_path, "-"]

    async def run(self, pdf_bytes: bytes, request_id: Optional[str] = None) -> str:
        try:
            await run_in_threadpool(prepare_scratch_dir, self.scratch_dir)
        except OSError as exc:
            raise PipelineError(f"Could not prepare scratch files: {exc}")

        async with scratch_document(self.scratch_dir, request_id) as scratch:
            rid = scratch.request_id
            logger.info(f"[{rid}] Writing PDF ({len(pdf_bytes)} bytes) to scratch")
            try:
                await run_in_threadpool(_write_bytes, scratch.input_path, pdf_bytes)
            except OSError as exc:
                raise PipelineError(f"Could not write scratch file: {exc}")

            logger.info(f"[{rid}] Running OCR")
            await run_command(
                self.ocr_command(scratch.input_path, scratch.output_path),
                self.ocr_timeout_seconds,
                "ocrmypdf",
            )

            logger.info(f"[{rid}] Extracting text")
            stdout = await run_command(
                self.extract_command(scratch.output_path),
                self.extract_timeout_seconds,
                "pdftotext",
            )

        return stdout.decode("utf-8", errors="replace").strip()
