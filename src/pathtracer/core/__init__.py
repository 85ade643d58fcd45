"""Core rendering module.

Components:
    values: Immutable host-side Vector3 and Colour types
    ray: Ray data structure and vector helpers for Taichi kernels
    integrator: Path tracing, the trace() API and the render target
    progressive: ProgressiveRenderer and render_frame()

Only the modules that declare no Taichi fields are imported here, so the
package can be imported before ``ti.init``. Import ``integrator`` and
``progressive`` directly once Taichi is initialized:
    from pathtracer.core.progressive import ProgressiveRenderer
"""

from .values import Colour, Vector3, average

__all__ = [
    "Vector3",
    "Colour",
    "average",
]
