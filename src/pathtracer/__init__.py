"""Monte-Carlo path tracer for sphere scenes, built on Taichi.

Every surface is a sphere with an emission, a per-channel reflectivity and a
roughness. Paths bounce specularly about a randomly perturbed normal, and a
pixel is the mean of many such paths.

Subpackages:
    core: Vector and colour values, ray helpers, the integrator and the
        frame driver
    geometry: The sphere primitive and ray-sphere intersection
    scene: Scene storage, the scene manager and the demo scene
    camera: Pinhole camera ray generation
    preview: Pixel sinks, display, PNG export and the interactive window

Taichi must be initialized (see ``pathtracer.config.init_taichi``) before
importing any module that declares Taichi fields.
"""

__version__ = "0.1.0"
