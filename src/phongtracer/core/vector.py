"""Vector math shared by the host-side scene model and the render kernels.

Inside Taichi kernels vectors are ``vec3`` values (three float64
components). On the host, scene elements keep plain ``(x, y, z)`` tuples
and use NumPy for the little arithmetic needed while validating and
setting up the scene.

Example:
    >>> from src.phongtracer.core.vector import normalized
    >>> normalized((0.0, 3.0, 4.0), "direction")
    array([0. , 0.6, 0.8])
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.phongtracer.core.errors import DegenerateGeometryError

# Scalar and vector types used by every kernel
real = ti.f64
vec3 = ti.types.vector(3, real)

# Host-side vector representation
Vec3Tuple = tuple[float, float, float]

# Minimum ray parameter accepted by every surface; keeps shadow rays from
# re-hitting the surface they start on
T_MIN = 1e-4

# Vectors shorter than this cannot be normalized
DEGENERATE_LENGTH = 1e-12


@ti.dataclass
class Ray:
    """A ray with an origin point and a unit direction vector.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction of the ray (unit length).
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: real) -> vec3:
    """Compute the point ``origin + t * direction``."""
    return ray.origin + t * ray.direction


# =============================================================================
# Kernel-side vector utilities
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> real:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def length(v: vec3) -> real:
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> real:
    """Squared length of a vector, used to compare distances without sqrt."""
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    A zero-length vector yields NaN components; the renderer catches them
    per pixel (see ``core.integrator``).
    """
    return tm.normalize(v)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a unit normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def build_onb_from_normal(normal: vec3):
    """Build an orthonormal basis around a unit vector.

    Args:
        normal: The axis of the basis (should be normalized).

    Returns:
        A tuple (tangent, bitangent, normal) forming an orthonormal basis.
    """
    # Choose a helper vector that is not parallel to normal
    a = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = tm.normalize(tm.cross(a, normal))
    bitangent = tm.cross(normal, tangent)
    return tangent, bitangent, normal


# =============================================================================
# Host-side helpers
# =============================================================================


def as_vector(values: Sequence[float]) -> npt.NDArray[np.float64]:
    """Convert a 3-component sequence to a float64 NumPy vector.

    Raises:
        ValueError: If the sequence does not have exactly three components
            or contains non-finite values.
    """
    vector = np.asarray(values, dtype=np.float64)
    if vector.shape != (3,):
        raise ValueError(f"Expected 3 components, got {len(vector.ravel())}")
    if not np.all(np.isfinite(vector)):
        raise ValueError(f"Vector components must be finite: {tuple(vector)}")
    return vector


def normalized(values: Sequence[float], what: str = "vector") -> npt.NDArray[np.float64]:
    """Return a unit-length copy of a vector.

    Args:
        values: The vector to normalize.
        what: Description of the vector, used in the error message.

    Raises:
        DegenerateGeometryError: If the vector is (nearly) zero length.
    """
    vector = as_vector(values)
    norm = float(np.linalg.norm(vector))
    if norm < DEGENERATE_LENGTH:
        raise DegenerateGeometryError(f"Cannot normalize zero-length {what}: {tuple(values)}")
    return vector / norm


def to_tuple(vector: npt.NDArray[np.float64]) -> Vec3Tuple:
    return (float(vector[0]), float(vector[1]), float(vector[2]))
