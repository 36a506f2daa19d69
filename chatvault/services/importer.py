"""Importer collaborator contract and import orchestration."""

from __future__ import annotations

import json
import logging
import shlex
import subprocess
from collections import deque
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from threading import Lock
from time import perf_counter
from typing import Protocol

from chatvault.errors import ImporterCancelled, ImporterFailure, ValidationError
from chatvault.live.channel import Channel, Subscription
from chatvault.live.invalidation import InvalidationToken
from chatvault.schemas.importer import ImportStateRead

logger = logging.getLogger(__name__)


class ImportStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    CANCELLED = "cancelled"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ImportProgress:
    processed: int
    total: int


class Importer(Protocol):
    """External process that parses archives and writes rows into the store."""

    def run(
        self,
        file_paths: Sequence[str],
        database_path: str,
        on_progress: Callable[[ImportProgress], None],
    ) -> str:
        """Import ``file_paths`` into ``database_path``; returns ``"success"`` or ``"cancelled"``."""

    def cancel(self) -> None:
        """Ask a running import to stop; best effort."""


class ImportService:
    """Runs one import at a time and resynchronizes live queries when it settles.

    Progress below the current ``processed`` value is ignored. Cancellation is a
    neutral outcome. Every terminal outcome bumps the invalidation token because
    the importer writes outside the tracked session path.
    """

    def __init__(
        self,
        importer: Importer | None,
        invalidation: InvalidationToken,
        database_path: Path | str,
    ):
        self.importer = importer
        self.invalidation = invalidation
        self.database_path = str(database_path)
        self.progress: Channel[ImportStateRead] = Channel("import_progress")
        self._lock = Lock()
        self._state = ImportStateRead(status=ImportStatus.IDLE.value)
        self._executor: ThreadPoolExecutor | None = None

    def state(self) -> ImportStateRead:
        with self._lock:
            return self._state

    def subscribe(self, listener: Callable[[ImportStateRead], None]) -> Subscription:
        return self.progress.subscribe(listener)

    def start(self, file_paths: Sequence[str]) -> Future[ImportStateRead]:
        """Validate and begin an import in the background."""

        paths = self._begin(file_paths)
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="importer")
            executor = self._executor
        return executor.submit(self._run_import, paths)

    def run(self, file_paths: Sequence[str]) -> ImportStateRead:
        """Validate and run an import on the calling thread."""

        return self._run_import(self._begin(file_paths))

    def cancel(self) -> bool:
        with self._lock:
            running = self._state.status == ImportStatus.RUNNING.value
        if not running or self.importer is None:
            return False
        logger.info("import.cancel_requested")
        self.importer.cancel()
        return True

    def shutdown(self) -> None:
        self.cancel()
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def _begin(self, file_paths: Sequence[str]) -> list[str]:
        if self.importer is None:
            raise ImporterFailure("No importer is configured.")
        paths = validate_import_paths(file_paths, self.database_path)
        with self._lock:
            if self._state.status == ImportStatus.RUNNING.value:
                raise ValidationError("An import is already running.")
            self._state = ImportStateRead(status=ImportStatus.RUNNING.value)
            state = self._state
        self.progress.publish(state)
        return paths

    def _run_import(self, file_paths: list[str]) -> ImportStateRead:
        started = perf_counter()
        status = ImportStatus.ERROR
        message: str | None = None
        try:
            outcome = self.importer.run(file_paths, self.database_path, self._on_progress)
            if outcome == ImportStatus.SUCCESS.value:
                status = ImportStatus.SUCCESS
            elif outcome == ImportStatus.CANCELLED.value:
                status = ImportStatus.CANCELLED
            else:
                raise ImporterFailure(f"Importer returned unexpected status {outcome!r}.")
        except ImporterCancelled:
            status = ImportStatus.CANCELLED
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            logger.exception("import.failed files=%d", len(file_paths))
        finally:
            self.invalidation.bump("import")

        with self._lock:
            self._state = self._state.model_copy(update={"status": status.value, "message": message})
            state = self._state
        logger.info(
            "import.finished status=%s files=%d processed=%d elapsed_ms=%.2f",
            status.value,
            len(file_paths),
            state.processed,
            (perf_counter() - started) * 1000.0,
        )
        self.progress.publish(state)
        return state

    def _on_progress(self, progress: ImportProgress) -> None:
        with self._lock:
            if self._state.status != ImportStatus.RUNNING.value or progress.processed < self._state.processed:
                return
            self._state = self._state.model_copy(
                update={"processed": progress.processed, "total": max(progress.total, progress.processed)}
            )
            state = self._state
        self.progress.publish(state)


def validate_import_paths(file_paths: Sequence[str], database_path: str) -> list[str]:
    """Return the cleaned file list or raise ``ValidationError``."""

    if not database_path or not Path(database_path).is_absolute():
        raise ValidationError("The database path must be a non-empty absolute path.")
    paths = [str(path).strip() for path in file_paths]
    if not paths:
        raise ValidationError("Select at least one archive to import.")
    invalid = [path for path in paths if not path or not Path(path).is_absolute()]
    if invalid:
        raise ValidationError(f"Archive paths must be absolute: {invalid}.")
    return paths


class SubprocessImporter:
    """Runs an importer executable that reports progress as JSON lines.

    The command receives ``--database <path>`` followed by the archive paths and
    writes lines such as ``{"processed": 3, "total": 10}`` and a final
    ``{"status": "success"}`` to stdout.
    """

    def __init__(self, command: str, *, tail_lines: int = 20):
        self.command = shlex.split(command)
        self.tail_lines = tail_lines
        self._lock = Lock()
        self._process: subprocess.Popen[str] | None = None
        self._cancelled = False

    def run(
        self,
        file_paths: Sequence[str],
        database_path: str,
        on_progress: Callable[[ImportProgress], None],
    ) -> str:
        cmd = [*self.command, "--database", database_path, *file_paths]
        tail: deque[str] = deque(maxlen=self.tail_lines)
        status: str | None = None
        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except OSError as exc:
            raise ImporterFailure(f"Could not start importer: {exc}") from exc
        with self._lock:
            self._process = process
            self._cancelled = False

        try:
            if process.stdout is None:
                raise ImporterFailure("Importer output is not readable.")
            for line in process.stdout:
                event = _parse_event(line)
                if event is None:
                    if line.strip():
                        tail.append(line.rstrip())
                        logger.debug("import.output line=%s", line.rstrip())
                    continue
                if "status" in event:
                    status = str(event["status"])
                elif "processed" in event:
                    on_progress(_progress_from_event(event))
            returncode = process.wait()
        except BaseException:
            process.kill()
            process.wait()
            logger.warning("import.process_killed pid=%s", process.pid)
            raise
        finally:
            if process.stdout is not None:
                process.stdout.close()
            with self._lock:
                cancelled = self._cancelled
                self._process = None

        if cancelled:
            raise ImporterCancelled("Import cancelled.")
        if returncode != 0:
            raise ImporterFailure(f"Importer exited with code {returncode}: {' | '.join(tail)}")
        return status or ImportStatus.SUCCESS.value

    def cancel(self) -> None:
        with self._lock:
            process = self._process
            if process is None:
                return
            self._cancelled = True
        process.terminate()


def _parse_event(line: str) -> dict | None:
    try:
        event = json.loads(line)
    except json.JSONDecodeError:
        return None
    return event if isinstance(event, dict) else None


def _progress_from_event(event: dict) -> ImportProgress:
    try:
        return ImportProgress(int(event["processed"]), int(event.get("total", 0)))
    except (TypeError, ValueError) as exc:
        raise ImporterFailure(f"Malformed progress event: {event}") from exc
