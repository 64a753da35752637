# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Buffered, indentation-aware output of generated compilation units.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, List, Protocol, Union

import svd2swift

from .errors import SvdOutputError


class Output(Protocol):
    """Destination of complete compilation units."""

    def write(self, unit_name: str, text: str) -> None:
        ...


class InMemoryOutput:
    """Output that keeps the compilation units in memory, in the order they were written."""

    def __init__(self) -> None:
        self.units: Dict[str, str] = {}

    def write(self, unit_name: str, text: str) -> None:
        self.units[unit_name] = text

    def __getitem__(self, unit_name: str) -> str:
        return self.units[unit_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.units)

    def __len__(self) -> int:
        return len(self.units)


class DirectoryOutput:
    """Output that writes each compilation unit to a file in a directory."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def write(self, unit_name: str, text: str) -> None:
        self.path.mkdir(parents=True, exist_ok=True)
        (self.path / unit_name).write_text(text, encoding="utf-8")


class OutputWriter:
    """
    Accumulates the text of one compilation unit at a time.

    Text is indented by the current depth at the start of every non-empty line. The unit is
    handed to the output by ``flush``, which requires every ``indent`` to have been matched by
    an ``outdent``.
    """

    def __init__(self, output: Output, indentation: str = "  ") -> None:
        """
        :param output: Destination of the flushed units.
        :param indentation: Text of one indentation level.
        """
        self._output = output
        self._indentation = indentation
        self._buffer: List[str] = []
        self._depth = 0
        self._at_line_start = True

    def append(self, text: str) -> None:
        for line in text.splitlines(keepends=True):
            if self._at_line_start and line.strip():
                self._buffer.append(self._indentation * self._depth)
            self._buffer.append(line)
            self._at_line_start = line.endswith("\n")

    def indent(self) -> None:
        self._depth += 1

    def outdent(self) -> None:
        if self._depth == 0:
            raise SvdOutputError("outdent() without a matching indent()")
        self._depth -= 1

    def flush(self, unit_name: str) -> None:
        """
        Write the buffered text as a compilation unit and start a new one.

        :raises SvdOutputError: If the indentation is not balanced.
        """
        if self._depth != 0:
            raise SvdOutputError(
                f"Unbalanced indentation (depth {self._depth}) when flushing {unit_name}"
            )

        text = "".join(self._buffer)
        self._buffer.clear()
        self._at_line_start = True

        self._output.write(unit_name, text)
        svd2swift.log.debug(f"Wrote {unit_name} ({len(text)} characters)")
