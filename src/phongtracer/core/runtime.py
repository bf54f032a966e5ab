"""Taichi runtime initialization.

The tracer computes in double precision, so Taichi is always initialized
with ``default_fp=ti.f64``. Modules that declare Taichi fields must be
imported after :func:`init_taichi` has run.
"""

from __future__ import annotations

import taichi as ti

ARCHES = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
}


def init_taichi(arch: str = "cpu", random_seed: int = 0, debug: bool = False) -> str:
    """Initialize Taichi for rendering.

    Args:
        arch: Backend name, one of "cpu", "gpu" or "cuda". Accelerated
            backends fall back to the CPU when they cannot be started.
        random_seed: Seed for ``ti.random`` (used by soft shadow sampling).
        debug: Enable Taichi's bounds checking.

    Returns:
        The name of the backend actually in use.

    Raises:
        ValueError: If the backend name is unknown.
    """
    if arch not in ARCHES:
        raise ValueError(f"Unknown Taichi backend '{arch}' (expected one of {sorted(ARCHES)})")

    if arch == "cpu":
        ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=random_seed, debug=debug)
        return "cpu"

    try:
        ti.init(arch=ARCHES[arch], default_fp=ti.f64, random_seed=random_seed, debug=debug)
        return arch
    except Exception:
        # Backend unavailable on this machine
        ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=random_seed, debug=debug)
        return "cpu"
