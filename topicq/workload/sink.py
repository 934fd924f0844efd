"""Result sink shared by the consumers of one pipeline."""

import threading
from pathlib import Path
from typing import Iterable, Optional, TextIO, Union


class ResultWriter:
    """Serializes writes of several consumer threads into one text stream.

    Every call to :py:meth:`write_block` is written as a unit, so the lines of
    two results never interleave. Write errors are not handled here, they reach
    the consumer that tried to write.
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._lock = threading.Lock()
        self.blocks_written = 0

    @classmethod
    def open(cls, path: Union[str, Path]) -> "ResultWriter":
        """Create the parent directory and open path for writing."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        return cls(path.open("w", encoding="utf-8"))

    def write_block(self, lines: Iterable[str], separator: Optional[str] = "") -> None:
        """Write lines followed by an optional separator line."""
        text = "".join(f"{line}\n" for line in lines)
        if separator is not None:
            text += f"{separator}\n"
        with self._lock:
            self._stream.write(text)
            self.blocks_written += 1

    def close(self) -> None:
        """Flush and close the stream."""
        with self._lock:
            if not self._stream.closed:
                self._stream.flush()
                self._stream.close()

    def __enter__(self) -> "ResultWriter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
