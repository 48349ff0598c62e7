# src/thermod/diagnostics.py
"""Diagnostic flux records and the sinks that receive them.

The flux balance appends one record per evaluation (Runge-Kutta stages
included) to a sink injected by the caller. Sinks only receive records; the
flux balance never reads them back. Each run must own its sink.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Final, Protocol, TextIO, runtime_checkable

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType

# Column order of a thermal diagnostic record.
THERMAL_COLUMNS: Final[tuple[str, ...]] = (
    "qin",
    "qout",
    "mix_e",
    "mix_h",
    "sw",
    "lw",
    "water_lw",
    "conv",
    "evap",
    "rh",
    "e",
    "ri",
    "t",
    "ice_param",
)

# Column order of an oxygen diagnostic record (thermal columns first).
OXYGEN_COLUMNS: Final[tuple[str, ...]] = (
    *THERMAL_COLUMNS,
    "atm",
    "nep",
    "sed",
    "oflux_epi",
    "oflux_hypo",
)

_CLOSED_SINK_MSG: Final[str] = "FileSink is closed"
_RECORD_WIDTH_MSG: Final[str] = (
    "MemorySink holds {width}-value records; cannot label them with {labels}"
)
_UNKNOWN_LAYOUT_MSG: Final[str] = "No diagnostic layout has {width} columns"

# Record layouts keyed by record width.
_LAYOUTS_BY_WIDTH: Final[dict[int, tuple[str, ...]]] = {
    len(THERMAL_COLUMNS): THERMAL_COLUMNS,
    len(OXYGEN_COLUMNS): OXYGEN_COLUMNS,
}


@runtime_checkable
class DiagnosticsSink(Protocol):
    """Append-only receiver of diagnostic records."""

    def append(self, values: Sequence[float]) -> None:
        """Append one record (values in the column order of the model)."""
        ...


class NullSink:
    """Sink that discards every record."""

    def append(self, values: Sequence[float]) -> None:
        """Discard values."""


class MemorySink:
    """Sink keeping records in memory, in evaluation order."""

    def __init__(self, columns: Sequence[str] | None = None) -> None:
        """Create an empty in-memory sink.

        Args:
            columns: Column names used by to_frame. If None, the thermal or
                oxygen layout is chosen from the width of the records.
        """
        self.columns = None if columns is None else tuple(columns)
        self.records: list[tuple[float, ...]] = []

    def __len__(self) -> int:
        """Number of appended records."""
        return len(self.records)

    def append(self, values: Sequence[float]) -> None:
        """Append one record."""
        self.records.append(tuple(float(v) for v in values))

    def to_array(self) -> np.ndarray:
        """Return the records as a (n_records, n_columns) float64 array."""
        if not self.records:
            return np.zeros((0, len(self.labels())), dtype=np.float64)
        return np.asarray(self.records, dtype=np.float64)

    def labels(self) -> tuple[str, ...]:
        """Column names for the stored records.

        Raises:
            ValueError: If no columns were given and the record width matches
                neither the thermal nor the oxygen layout.
        """
        if self.columns is not None:
            return self.columns
        width = len(self.records[0]) if self.records else len(THERMAL_COLUMNS)
        if width not in _LAYOUTS_BY_WIDTH:
            raise ValueError(_UNKNOWN_LAYOUT_MSG.format(width=width))
        return _LAYOUTS_BY_WIDTH[width]

    def to_frame(self) -> pd.DataFrame:
        """Return the records as a DataFrame with named columns.

        Raises:
            ValueError: If the record width does not match the column names.
        """
        labels = self.labels()
        arr = self.to_array()
        if arr.shape[1] != len(labels):
            raise ValueError(
                _RECORD_WIDTH_MSG.format(width=arr.shape[1], labels=list(labels))
            )
        return pd.DataFrame(arr, columns=list(labels))


class FileSink:
    """Sink writing one headerless delimited line per record.

    The file is created empty (or truncated) when the sink is opened, so each
    run starts from a clean log.
    """

    def __init__(self, path: str | Path, *, delimiter: str = " ") -> None:
        """Open path for writing.

        Args:
            path: Destination file.
            delimiter: Field delimiter.
        """
        self.path = Path(path)
        self.delimiter = delimiter
        self._handle: TextIO | None = self.path.open("w", encoding="utf-8")

    def append(self, values: Sequence[float]) -> None:
        """Write one record as a delimited line.

        Raises:
            ValueError: If the sink has been closed.
        """
        if self._handle is None:
            raise ValueError(_CLOSED_SINK_MSG)
        np.savetxt(
            self._handle,
            np.atleast_2d(np.asarray(values, dtype=np.float64)),
            fmt="%.15g",
            delimiter=self.delimiter,
        )

    def close(self) -> None:
        """Flush and close the underlying file."""
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> FileSink:
        """Return self for use as a context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close the file."""
        self.close()


def read_diagnostics(
    path: str | Path,
    columns: Sequence[str] = THERMAL_COLUMNS,
    *,
    delimiter: str = " ",
) -> pd.DataFrame:
    """Load a file written by FileSink into a DataFrame with named columns."""
    return pd.read_csv(path, sep=delimiter, header=None, names=list(columns))
