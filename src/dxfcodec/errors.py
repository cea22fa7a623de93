from __future__ import annotations

from typing import Any


class DxfError(Exception):
    pass


class DxfStreamError(DxfError):
    def __init__(self, message: str, *, source: str | None = None, line_number: int | None = None) -> None:
        self.reason = message
        self.source = source
        self.line_number = line_number
        if source is not None and line_number is not None:
            message = f"{message} ({source}, line {line_number})"
        super().__init__(message)


class DecodeError(DxfStreamError):
    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        line_number: int | None = None,
        entity: Any = None,
    ) -> None:
        super().__init__(message, source=source, line_number=line_number)
        self.entity = entity


class EncodeError(DxfError, ValueError):
    def __init__(self, message: str, *, check: str, dxftype: str, handle: int | None) -> None:
        self.check = check
        self.dxftype = dxftype
        self.handle = handle
        handle_label = "?" if handle is None else f"{handle:x}"
        super().__init__(f"{dxftype} entity with handle {handle_label}: {message} [{check}]")


class ChainError(DxfError):
    pass


class GeometryError(DxfError, ValueError):
    pass
