from __future__ import annotations

import math
from typing import IO, Iterable, Iterator, NamedTuple

from .errors import DxfStreamError
from .revision import Revision


class Tag(NamedTuple):
    code: int
    value: str


def format_code(code: int) -> str:
    return f"{code:>3}"


def format_tag(code: int, value: str) -> str:
    return f"{format_code(code)}\n{value}\n"


def as_int(raw: str) -> int:
    return int(raw.strip())


def as_hex(raw: str) -> int:
    value = int(raw.strip(), 16)
    if value < 0:
        raise ValueError(f"negative handle: {raw!r}")
    return value


def as_float(raw: str) -> float:
    value = float(raw.strip())
    if not math.isfinite(value):
        raise ValueError(f"non-finite value: {raw!r}")
    return value


def as_str(raw: str) -> str:
    # The reader already drops the line terminator; padding is part of the value.
    return raw


def format_int(value: int) -> str:
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"not an integer: {value!r}")
    return str(int(value))


def format_hex(value: int) -> str:
    value = int(value)
    if value < 0:
        raise ValueError(f"negative handle: {value!r}")
    return f"{value:x}"


def format_float(value: float) -> str:
    return f"{float(value):f}"


def format_str(value: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    if "\n" in value or "\r" in value:
        raise ValueError(f"string value spans lines: {value!r}")
    return value


class TagReader:
    """Pulls (group code, raw value) pairs off a line-oriented text stream."""

    def __init__(
        self,
        stream: IO[str] | Iterable[str] | None,
        *,
        name: str = "<stream>",
        revision: Revision | None = None,
    ) -> None:
        if stream is None:
            raise DxfStreamError("no input stream", source=name, line_number=0)
        self.name = name
        self.revision = revision
        self._lines = iter(stream)
        self._lines_read = 0
        self._line_number = 0
        self._pending: tuple[Tag, int] | None = None

    @classmethod
    def from_text(cls, text: str, *, name: str = "<text>", revision: Revision | None = None) -> "TagReader":
        return cls(text.splitlines(), name=name, revision=revision)

    @property
    def line_number(self) -> int:
        return self._line_number

    def read(self) -> Tag:
        tag = self.read_or_none()
        if tag is None:
            raise DxfStreamError("unexpected end of stream", source=self.name, line_number=self._lines_read)
        return tag

    def read_or_none(self) -> Tag | None:
        if self._pending is not None:
            tag, line_number = self._pending
            self._pending = None
            self._line_number = line_number
            return tag

        code_line = self._next_line()
        if code_line is None:
            return None
        try:
            code = int(code_line.strip())
        except ValueError:
            raise DxfStreamError(
                f"invalid group code {code_line.strip()!r}",
                source=self.name,
                line_number=self._lines_read,
            ) from None
        value_line = self._next_line()
        if value_line is None:
            raise DxfStreamError(
                f"missing value for group code {code}",
                source=self.name,
                line_number=self._lines_read,
            )
        self._line_number = self._lines_read
        return Tag(code, value_line.rstrip("\r\n"))

    def unread(self, tag: Tag) -> None:
        if self._pending is not None:
            raise DxfStreamError("only one tag can be pushed back", source=self.name, line_number=self._line_number)
        self._pending = (tag, self._line_number)

    def peek(self) -> Tag | None:
        tag = self.read_or_none()
        if tag is not None:
            self.unread(tag)
        return tag

    def __iter__(self) -> Iterator[Tag]:
        while True:
            tag = self.read_or_none()
            if tag is None:
                return
            yield tag

    def _next_line(self) -> str | None:
        try:
            line = next(self._lines)
        except StopIteration:
            return None
        except (OSError, ValueError) as exc:
            raise DxfStreamError(
                f"read failed: {exc}",
                source=self.name,
                line_number=self._lines_read,
            ) from exc
        self._lines_read += 1
        return line


class TagWriter:
    def __init__(
        self,
        stream: IO[str] | None,
        *,
        name: str = "<stream>",
        revision: Revision = Revision.R2010,
    ) -> None:
        if stream is None:
            raise DxfStreamError("no output stream", source=name, line_number=0)
        self.name = name
        self.revision = revision
        self._stream = stream
        self._lines_written = 0

    @property
    def line_number(self) -> int:
        return self._lines_written

    def write(self, code: int, value: str) -> int:
        return self.write_text(format_tag(code, value))

    def write_tags(self, tags: Iterable[Tag]) -> int:
        return self.write_text("".join(format_tag(code, value) for code, value in tags))

    def write_text(self, text: str) -> int:
        try:
            self._stream.write(text)
        except (OSError, ValueError) as exc:
            raise DxfStreamError(
                f"write failed: {exc}",
                source=self.name,
                line_number=self._lines_written,
            ) from exc
        self._lines_written += text.count("\n")
        return len(text)
