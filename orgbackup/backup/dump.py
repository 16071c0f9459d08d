"""
Dump executor - runs the external snapshot tool and streams its stdout to disk.

The dump can be arbitrarily large, so stdout is copied to the output file
by a worker thread while the process runs. The thread is always joined
before run() returns; a dump is only reported successful once the copy has
reached EOF and the file has been closed.
"""

import os
import logging
import signal
import tempfile
import threading
import subprocess
from typing import BinaryIO, Optional

from .errors import DumpError, DumpTimeoutError
from .settings import DumpSettings

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024  # 1MB
STDERR_TAIL_BYTES = 2048


class _PipeCopier(threading.Thread):
    """Drain a pipe into a file until EOF, remembering any I/O error."""

    def __init__(self, source: BinaryIO, destination: BinaryIO):
        super().__init__(name='dump-pipe-copier', daemon=True)
        self.source = source
        self.destination = destination
        self.bytes_copied = 0
        self.error: Optional[BaseException] = None

    def run(self):
        try:
            while True:
                chunk = self.source.read(COPY_CHUNK_SIZE)
                if not chunk:
                    break
                self.destination.write(chunk)
                self.bytes_copied += len(chunk)
        except (OSError, ValueError) as e:
            self.error = e
        finally:
            # Closing our end makes a still-writing process fail with EPIPE
            # instead of blocking forever on a full pipe.
            self.source.close()


class DumpExecutor:
    """
    Invokes the dump tool for one backup run.
    """

    def __init__(self, settings: DumpSettings):
        """
        Initialize dump executor.

        Args:
            settings: Dump tool invocation settings
        """
        self.settings = settings

    def run(self, target_dir: str) -> str:
        """
        Produce a raw dump inside target_dir.

        Args:
            target_dir: Directory to create (if needed) and dump into

        Returns:
            Path to the dump file

        Raises:
            DumpTimeoutError: If the tool exceeds the configured timeout
            DumpError: If the directory, process, or copy fails
        """
        try:
            os.makedirs(target_dir, mode=0o700, exist_ok=True)
        except OSError as e:
            raise DumpError(f"Failed to create backup directory {target_dir}: {e}")

        output_path = os.path.join(target_dir, self.settings.output_filename)
        command = self.settings.command()
        logger.info(f"Running dump: {' '.join(command)} -> {output_path}")

        try:
            outfile = open(output_path, 'wb')
        except OSError as e:
            raise DumpError(f"Failed to open dump file {output_path}: {e}")

        # stderr goes to an unnamed temp file so it never fills a pipe
        with outfile, tempfile.TemporaryFile() as stderr_file:
            try:
                process = subprocess.Popen(
                    command,
                    cwd=target_dir,
                    stdout=subprocess.PIPE,
                    stderr=stderr_file,
                    start_new_session=True,
                )
            except OSError as e:
                raise DumpError(f"Failed to start dump process '{command[0]}': {e}")

            copier = _PipeCopier(process.stdout, outfile)
            copier.start()

            try:
                returncode = process.wait(timeout=self.settings.timeout)
            except subprocess.TimeoutExpired:
                logger.error(
                    f"Dump process {process.pid} exceeded {self.settings.timeout}s, killing it"
                )
                self._kill_process_group(process)
                process.wait()
                copier.join()
                raise DumpTimeoutError(
                    f"Dump process timed out after {self.settings.timeout} seconds"
                )

            copier.join()

            if copier.error is not None:
                raise DumpError(f"Failed to copy dump output to {output_path}: {copier.error}")

            if returncode != 0:
                message = self._read_stderr_tail(stderr_file)
                raise DumpError(f"Dump process exited with status {returncode}: {message}")

        logger.info(f"Dump complete: {output_path} ({copier.bytes_copied} bytes)")
        return output_path

    @staticmethod
    def _read_stderr_tail(stderr_file) -> str:
        stderr_file.seek(0, os.SEEK_END)
        size = stderr_file.tell()
        stderr_file.seek(max(0, size - STDERR_TAIL_BYTES))
        return stderr_file.read().decode('utf-8', errors='replace').strip() or 'no error output'

    @staticmethod
    def _kill_process_group(process):
        """Kill the tool and anything it forked that may still hold stdout."""
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            process.kill()
