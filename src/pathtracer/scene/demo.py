"""The demo scene: a closed room of giant spheres with a light and a mirror.

Five spheres of radius 990 centred 1000 units away along +x, -x, +y, -y and
+z leave a 10-unit pocket around the camera and act as nearly flat walls:
red on +x, green on -x and white elsewhere. The -z side is open behind the
camera. A bright emissive sphere hangs at the -y side and a mirror sphere
sits in front of the camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.demo import DemoSceneParams, create_demo_scene
    >>> scene = create_demo_scene(DemoSceneParams(light_emission=2000.0))
    >>> scene.get_sphere_count()
    7
"""

import logging
from dataclasses import dataclass

from pathtracer.scene.manager import SceneManager, SphereInfo

logger = logging.getLogger(__name__)

WALL_DISTANCE = 1000.0
WALL_RADIUS = 990.0

LIGHT_POSITION = (0.0, -14.5, 7.0)
LIGHT_RADIUS = 5.0

MIRROR_POSITION = (3.0, 7.0, 7.0)
MIRROR_RADIUS = 3.0


@dataclass
class DemoSceneParams:
    """Adjustable parameters of the demo scene.

    Attributes:
        light_emission: Emission of the light sphere, equal on all channels.
        red_wall_roughness: Roughness of the red +x wall.
        wall_roughness: Roughness of the other walls and of the light.
        mirror_roughness: Roughness of the mirror sphere.
    """

    light_emission: float = 5550.0
    red_wall_roughness: float = 10.0
    wall_roughness: float = 3.0
    mirror_roughness: float = 0.0


def demo_spheres(params: DemoSceneParams | None = None) -> list[SphereInfo]:
    """Build the demo scene's spheres without uploading them.

    Raises:
        ValueError: If a parameter makes a sphere invalid.
    """
    if params is None:
        params = DemoSceneParams()

    white = (1.0, 1.0, 1.0)
    d = WALL_DISTANCE

    return [
        SphereInfo((d, 0.0, 0.0), WALL_RADIUS, reflectivity=(1.0, 0.0, 0.0),
                   roughness=params.red_wall_roughness),
        SphereInfo((-d, 0.0, 0.0), WALL_RADIUS, reflectivity=(0.0, 1.0, 0.0),
                   roughness=params.wall_roughness),
        SphereInfo((0.0, d, 0.0), WALL_RADIUS, reflectivity=white,
                   roughness=params.wall_roughness),
        SphereInfo((0.0, -d, 0.0), WALL_RADIUS, reflectivity=white,
                   roughness=params.wall_roughness),
        SphereInfo((0.0, 0.0, d), WALL_RADIUS, reflectivity=white,
                   roughness=params.wall_roughness),
        SphereInfo(
            LIGHT_POSITION,
            LIGHT_RADIUS,
            emission=(params.light_emission,) * 3,
            reflectivity=white,
            roughness=params.wall_roughness,
        ),
        SphereInfo(MIRROR_POSITION, MIRROR_RADIUS, reflectivity=white,
                   roughness=params.mirror_roughness),
    ]


def create_demo_scene(
    params: DemoSceneParams | None = None,
    scene: SceneManager | None = None,
) -> SceneManager:
    """Upload the demo scene.

    Args:
        params: Scene parameters. Defaults to DemoSceneParams().
        scene: Existing scene to clear and reuse. A new one is created
            when omitted.

    Returns:
        The populated SceneManager.
    """
    if scene is None:
        scene = SceneManager()
    else:
        scene.clear()

    scene.extend(demo_spheres(params))
    logger.debug("Created demo scene with %d spheres", scene.get_sphere_count())
    return scene
