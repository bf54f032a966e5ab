"""Scene description loader.

Scene files are line oriented. Blank lines and lines starting with ``#``
are ignored; every other line starts with a three-letter directive
(case insensitive) followed by whitespace-separated numbers:

    cam  px py pz  lx ly lz  ux uy uz  screen_distance screen_width
    set  bgr bgg bgb  shadow_rays max_recursion [super_sampling]
    mtl  dr dg db  sr sg sb  rr rg rb  shininess transparency
    sph  cx cy cz  radius  material
    pln  nx ny nz  offset  material
    trg  p0x p0y p0z  p1x p1y p1z  p2x p2y p2z  material
    lgt  px py pz  r g b  specular shadow width

Materials are numbered from 1 in the order they appear. Surfaces may
refer to materials defined later in the file; references are checked
once the whole file has been read.

Parsing does not print anything. Each processed line is recorded as a
Diagnostic in the returned SceneDescription and the caller decides what
to show.

Example:
    >>> from src.phongtracer.scene.loader import load_scene_file
    >>> description = load_scene_file("examples/scenes/spheres.txt")
    >>> description.scene.settings.shadow_ray_count
    5
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Union

from src.phongtracer.camera.pinhole import ScreenCamera, check_camera
from src.phongtracer.core.errors import (
    DegenerateGeometryError,
    RayTracerError,
    SceneFileError,
    SceneFormatError,
)
from src.phongtracer.scene.manager import Scene, SceneBuilder

INFO = "info"
WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """A message produced while parsing a scene description.

    Attributes:
        line: 1-based line number, or None for messages about the whole file.
        level: INFO or WARNING.
        message: Human readable text.
    """

    line: int | None
    level: str
    message: str

    def __str__(self) -> str:
        prefix = "" if self.line is None else f"line {self.line}: "
        return f"{self.level.upper()}: {prefix}{self.message}"


@dataclass(frozen=True)
class SceneDescription:
    """Result of parsing a scene description.

    Attributes:
        scene: The validated, immutable scene.
        camera: The camera configuration.
        diagnostics: Messages recorded while parsing, in line order.
    """

    scene: Scene
    camera: ScreenCamera
    diagnostics: tuple[Diagnostic, ...]

    @property
    def warnings(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.level == WARNING)


class _Params:
    """Sequential reader over the numeric parameters of one line."""

    def __init__(self, tokens: list[str], source: str, line: int) -> None:
        self.tokens = tokens
        self.source = source
        self.line = line
        self.index = 0

    def _next(self) -> str:
        if self.index >= len(self.tokens):
            raise SceneFormatError(
                f"Expected more parameters (got {len(self.tokens)})", self.source, self.line
            )
        token = self.tokens[self.index]
        self.index += 1
        return token

    def real(self) -> float:
        token = self._next()
        try:
            return float(token)
        except ValueError:
            raise SceneFormatError(f"Not a number: '{token}'", self.source, self.line) from None

    def integer(self) -> int:
        token = self._next()
        try:
            return int(token)
        except ValueError:
            raise SceneFormatError(f"Not an integer: '{token}'", self.source, self.line) from None

    def vec3(self) -> tuple[float, float, float]:
        return (self.real(), self.real(), self.real())

    def remaining(self) -> int:
        return len(self.tokens) - self.index

    def finish(self) -> None:
        if self.remaining():
            raise SceneFormatError(
                f"Unexpected extra parameters: {' '.join(self.tokens[self.index:])}",
                self.source,
                self.line,
            )


class _SceneParser:
    """Collects scene elements line by line into a SceneBuilder."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.builder = SceneBuilder()
        self.camera: ScreenCamera | None = None
        self.has_settings = False
        self.diagnostics: list[Diagnostic] = []
        self.handlers: dict[str, Callable[[_Params], str]] = {
            "cam": self._camera,
            "set": self._settings,
            "mtl": self._material,
            "sph": self._sphere,
            "pln": self._plane,
            "trg": self._triangle,
            "lgt": self._light,
        }

    def _camera(self, p: _Params) -> str:
        self.camera = ScreenCamera(
            position=p.vec3(),
            look_at=p.vec3(),
            up=p.vec3(),
            screen_distance=p.real(),
            screen_width=p.real(),
        )
        check_camera(self.camera)
        return "Parsed camera parameters"

    def _settings(self, p: _Params) -> str:
        background = p.vec3()
        shadow_rays = p.integer()
        max_recursion = p.integer()
        super_sampling = p.integer() if p.remaining() else 1
        self.builder.set_settings(
            background=background,
            shadow_ray_count=shadow_rays,
            maximum_recursion_count=max_recursion,
            super_sampling_level=super_sampling,
        )
        self.has_settings = True
        return "Parsed general settings"

    def _material(self, p: _Params) -> str:
        index = self.builder.add_material(
            diffuse=p.vec3(),
            specular=p.vec3(),
            reflection=p.vec3(),
            shininess=p.real(),
            transparency=p.real(),
        )
        return f"Parsed material {index}"

    def _sphere(self, p: _Params) -> str:
        self.builder.add_sphere(center=p.vec3(), radius=p.real(), material_index=p.integer())
        return "Parsed sphere"

    def _plane(self, p: _Params) -> str:
        self.builder.add_plane(normal=p.vec3(), offset=p.real(), material_index=p.integer())
        return "Parsed plane"

    def _triangle(self, p: _Params) -> str:
        self.builder.add_triangle(p.vec3(), p.vec3(), p.vec3(), material_index=p.integer())
        return "Parsed triangle"

    def _light(self, p: _Params) -> str:
        self.builder.add_light(
            position=p.vec3(),
            color=p.vec3(),
            specular_intensity=p.real(),
            shadow_intensity=p.real(),
            width=p.real(),
        )
        return "Parsed light"

    def feed(self, line_number: int, raw_line: str) -> None:
        line = raw_line.strip()
        if not line or line.startswith("#"):
            return

        code = line[:3].lower()
        handler = self.handlers.get(code)
        if handler is None:
            self.diagnostics.append(
                Diagnostic(line_number, WARNING, f"Did not recognize directive '{code}', line skipped")
            )
            return

        params = _Params(line[3:].split(), self.source, line_number)
        try:
            message = handler(params)
        except DegenerateGeometryError as exc:
            raise DegenerateGeometryError(f"{self.source}:{line_number}: {exc}") from exc
        except RayTracerError:
            raise
        except ValueError as exc:
            raise SceneFormatError(str(exc), self.source, line_number) from exc
        params.finish()
        self.diagnostics.append(Diagnostic(line_number, INFO, message))

    def finish(self) -> SceneDescription:
        if self.camera is None:
            raise SceneFormatError("Scene has no camera ('cam') line", self.source)
        if not self.has_settings:
            self.diagnostics.append(
                Diagnostic(None, WARNING, "Scene has no settings ('set') line, using defaults")
            )

        scene = self.builder.build()
        self.diagnostics.append(
            Diagnostic(
                None,
                INFO,
                f"Finished parsing: {len(scene.materials)} materials, "
                f"{len(scene.surfaces)} surfaces, {len(scene.lights)} lights",
            )
        )
        return SceneDescription(scene=scene, camera=self.camera, diagnostics=tuple(self.diagnostics))


def parse_scene(lines: Union[str, Iterable[str]], source: str = "<string>") -> SceneDescription:
    """Parse a scene description.

    Args:
        lines: The scene text, or an iterable of its lines.
        source: Name used in error messages.

    Returns:
        The parsed SceneDescription.

    Raises:
        SceneFormatError: On a malformed line or a missing camera.
        SceneReferenceError: If a surface refers to an undefined material.
        DegenerateGeometryError: If a surface or the camera is degenerate.
    """
    if isinstance(lines, str):
        lines = lines.splitlines()

    parser = _SceneParser(source)
    for line_number, line in enumerate(lines, start=1):
        parser.feed(line_number, line)
    return parser.finish()


def load_scene_file(path: Union[str, Path]) -> SceneDescription:
    """Read and parse a scene file.

    Raises:
        SceneFileError: If the file cannot be read.
        SceneFormatError: On a malformed line or a missing camera.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SceneFileError(str(path), getattr(exc, "strerror", None) or str(exc)) from exc
    return parse_scene(text, source=str(path))
