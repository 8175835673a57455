"""Decode uploaded import files into text and lines."""

from __future__ import annotations

import codecs
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional, Union

from ..logging_config import get_logger
from .errors import DecodeError, SourceTooLargeError

logger = get_logger(__name__)

SourceFormat = Literal["csv", "json"]
SUPPORTED_FORMATS: tuple[str, ...] = ("csv", "json")

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class RawSource:
    """Decoded file content; ``lines`` is populated for delimited sources only."""

    format: SourceFormat
    text: str
    lines: tuple[str, ...] = ()


def decode_bytes(data: Union[bytes, str], encoding: str = "utf-8") -> str:
    """Return ``data`` as text, decoding bytes strictly with ``encoding``."""

    if isinstance(data, str):
        return data.lstrip("\ufeff")

    try:
        codec = codecs.lookup(encoding)
    except LookupError as exc:
        raise DecodeError(f"Unknown encoding: {encoding}", encoding=encoding) from exc

    try:
        text = bytes(data).decode(codec.name, errors="strict")
    except UnicodeDecodeError as exc:
        raise DecodeError(
            f"File cannot be decoded as {encoding}: {exc.reason} at byte {exc.start}",
            encoding=encoding,
        ) from exc
    return text.lstrip("\ufeff")


def split_lines(text: str) -> tuple[str, ...]:
    """Split text into lines, silently dropping blank ones."""

    return tuple(line for line in _LINE_BREAK.split(text) if line.strip())


def read_source(
    data: Union[bytes, str],
    *,
    format: str = "csv",
    encoding: str = "utf-8",
    max_bytes: Optional[int] = None,
) -> RawSource:
    """Decode an uploaded payload into a :class:`RawSource`.

    Raises:
        ValueError: ``format`` is not csv or json.
        SourceTooLargeError: the payload is larger than ``max_bytes``.
        DecodeError: the bytes are not valid under ``encoding``.
    """

    fmt = format.lower()
    if fmt not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported import format: {format!r}")

    size = len(data.encode("utf-8")) if isinstance(data, str) else len(data)
    if max_bytes is not None and size > max_bytes:
        logger.warning("Rejected oversized import", extra={"size": size, "limit": max_bytes})
        raise SourceTooLargeError(size, max_bytes)

    try:
        text = decode_bytes(data, encoding)
    except DecodeError:
        logger.error("Failed to decode import payload", extra={"encoding": encoding})
        raise

    if fmt == "json":
        return RawSource(format="json", text=text)

    lines = split_lines(text)
    logger.debug("Read delimited source", extra={"lines": len(lines), "encoding": encoding})
    return RawSource(format="csv", text=text, lines=lines)


def read_source_file(
    path: Path,
    *,
    format: Optional[str] = None,
    encoding: str = "utf-8",
    max_bytes: Optional[int] = None,
) -> RawSource:
    """Read ``path`` and decode it; format defaults from the file suffix."""

    fmt = format or ("json" if path.suffix.lower() == ".json" else "csv")
    if max_bytes is not None:
        size = path.stat().st_size
        if size > max_bytes:
            raise SourceTooLargeError(size, max_bytes)
    return read_source(path.read_bytes(), format=fmt, encoding=encoding, max_bytes=max_bytes)
