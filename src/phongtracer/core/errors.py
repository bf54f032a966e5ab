"""Exception hierarchy for scene loading, validation and image output.

All errors raised by the tracer derive from RayTracerError so callers can
catch everything the renderer reports with a single except clause. Each
concrete error also derives from the closest builtin (ValueError or
OSError) so generic handlers keep working.
"""

from __future__ import annotations


class RayTracerError(Exception):
    """Base class for all errors reported by the ray tracer."""


class SceneFormatError(RayTracerError, ValueError):
    """A scene description line could not be parsed.

    Attributes:
        source: Name of the scene file (or "<string>").
        line: 1-based line number of the offending line, or None when the
            problem concerns the whole file (e.g. a missing camera).
    """

    def __init__(self, message: str, source: str = "<string>", line: int | None = None) -> None:
        self.source = source
        self.line = line
        location = source if line is None else f"{source}:{line}"
        super().__init__(f"{location}: {message}")


class SceneFileError(RayTracerError, OSError):
    """The scene file could not be read."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot read scene file '{path}': {reason}")


class SceneReferenceError(RayTracerError, ValueError):
    """A surface refers to a material index that does not exist."""


class DegenerateGeometryError(RayTracerError, ValueError):
    """A scene element would require normalizing a zero-length vector."""


class ImageWriteError(RayTracerError, OSError):
    """The rendered image could not be written."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot write image '{path}': {reason}")
