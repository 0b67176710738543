"""
Upload progress reporting.
"""

import queue
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Protocol, Union, runtime_checkable

from ..model import ImportId


@dataclass(frozen=True)
class ProgressUpdate:
    """Progress of one file after one of its parts finished uploading."""
    part_number: int
    is_multipart: bool
    import_id: ImportId
    file_path: Path
    bytes_sent: int  # cumulative for the file
    size: int

    @property
    def percent_done(self) -> float:
        """Upload percentage completed. An empty file is 100% done."""
        if self.size <= 0:
            return 100.0
        return (self.bytes_sent / self.size) * 100.0

    @property
    def completed(self) -> bool:
        return self.percent_done >= 100.0


@runtime_checkable
class ProgressCallback(Protocol):
    """Called every time a file part finishes uploading."""

    def on_update(self, update: ProgressUpdate) -> None:
        ...


class NoProgress:
    """A progress callback that does nothing."""

    def on_update(self, update: ProgressUpdate) -> None:
        pass


Callback = Union[ProgressCallback, Callable[[ProgressUpdate], None]]


def as_callback(callback: Union[Callback, None]) -> ProgressCallback:
    """Accept a ``ProgressCallback``, a plain function, or ``None``."""
    if callback is None:
        return NoProgress()
    if isinstance(callback, ProgressCallback):
        return callback
    if callable(callback):
        return _FunctionCallback(callback)
    raise TypeError(f"Not a progress callback: {callback!r}")


class _FunctionCallback:
    def __init__(self, func: Callable[[ProgressUpdate], None]):
        self.func = func

    def on_update(self, update: ProgressUpdate) -> None:
        self.func(update)


class UploadProgress:
    """
    Tracks the progress of every file being uploaded to S3.

    Updates are pushed onto a queue by upload threads and only folded into
    the per-file statistics when ``update`` (or iteration) is called, so
    polling never blocks.
    """

    def __init__(self, updates: "queue.Queue[ProgressUpdate]"):
        self._updates = updates
        self.file_stats: dict[Path, ProgressUpdate] = {}

    def update(self) -> None:
        while True:
            try:
                update = self._updates.get_nowait()
            except queue.Empty:
                return
            self.file_stats[update.file_path] = update

    def iter(self) -> Iterator[tuple[Path, ProgressUpdate]]:
        self.update()
        return iter(list(self.file_stats.items()))

    def __iter__(self) -> Iterator[tuple[Path, ProgressUpdate]]:
        return self.iter()

    @property
    def bytes_sent(self) -> int:
        self.update()
        return sum(u.bytes_sent for u in self.file_stats.values())

    @property
    def completed(self) -> bool:
        self.update()
        return bool(self.file_stats) and all(u.completed for u in self.file_stats.values())
