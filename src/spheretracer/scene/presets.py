"""Ready-made sphere scenes.

Each function builds a scene into the active SceneManager storage and returns
it together with a matching ThinLensCamera:

- three_spheres_scene: ground, a diffuse center sphere, a glass sphere on the
  left and a fuzzy gold metal sphere on the right.
- hollow_glass_scene: the same layout seen from above with a strong depth of
  field; the glass sphere contains an inverted inner sphere, giving a hollow
  bubble.
- random_spheres_scene: a field of small random spheres around two large
  ones, reproducible from a seed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.scene.presets import three_spheres_scene
    >>> from spheretracer.camera.thin_lens import setup_camera
    >>> scene, camera = three_spheres_scene()
    >>> setup_camera(camera)
"""

import math

import numpy as np

from spheretracer.camera.thin_lens import ThinLensCamera
from spheretracer.scene.manager import SceneManager

# Default image aspect ratio for the presets (width / height)
DEFAULT_ASPECT_RATIO = 3.0 / 2.0

# Small spheres of the random scene keep this distance from the feature spot
_RANDOM_CLEARANCE_POINT = np.array([4.0, 0.2, 0.0])
_RANDOM_CLEARANCE = 0.9


def _distance(a: tuple[float, float, float], b: tuple[float, float, float]) -> float:
    return float(np.linalg.norm(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)))


def three_spheres_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the three-sphere scene.

    Four spheres sit in a row on a large ground sphere. The camera sits at the
    origin looking down -z with a 90 degree field of view and a small aperture
    focused on the center sphere.

    Args:
        aspect_ratio: Image width divided by height.

    Returns:
        Tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
    center = scene.add_lambertian_material(albedo=(0.1, 0.2, 0.5))
    left = scene.add_dielectric_material(ior=1.5)
    right = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=1.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, left)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, right)

    lookfrom = (0.0, 0.0, 0.0)
    lookat = (0.0, 0.0, -1.0)
    # Viewport height of 2 at unit distance
    vfov = math.degrees(2.0 * math.atan(2.0 / 2.0))

    camera = ThinLensCamera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=(0.0, 1.0, 0.0),
        vfov=vfov,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=_distance(lookfrom, lookat),
    )
    return scene, camera


def hollow_glass_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the hollow glass scene.

    The left glass sphere holds a second sphere with radius -0.45 and the same
    glass material. The negative radius flips its normals, so rays crossing it
    leave the glass instead of entering it.

    Args:
        aspect_ratio: Image width divided by height.

    Returns:
        Tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
    center = scene.add_lambertian_material(albedo=(0.1, 0.2, 0.5))
    glass = scene.add_dielectric_material(ior=1.5)
    right = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, right)

    lookfrom = (3.0, 3.0, 2.0)
    lookat = (0.0, 0.0, -1.0)

    camera = ThinLensCamera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=2.0,
        focus_dist=_distance(lookfrom, lookat),
    )
    return scene, camera


def random_spheres_scene(
    seed: int | None = None,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the random spheres scene.

    A 22x22 grid of cells each gets one small sphere of radius 0.2 at a random
    offset, unless it lands within 0.9 of (4, 0.2, 0). The material is chosen
    per sphere:
        - 80%: diffuse, albedo = random * random per channel
        - 15%: metal, albedo in [0.5, 1), fuzz in [0, 0.5)
        - 5%: glass with IOR 1.5

    Two large spheres (glass at (0, 1, 0) and brown diffuse at (-4, 1, 0))
    complete the scene.

    Args:
        seed: Seed for numpy's default_rng. None draws fresh entropy.
        aspect_ratio: Image width divided by height.

    Returns:
        Tuple of (SceneManager, ThinLensCamera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    scene.add_sphere((0.0, -1000.0, 0.0), 1000.0, ground)

    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random()])

            if np.linalg.norm(center - _RANDOM_CLEARANCE_POINT) <= _RANDOM_CLEARANCE:
                continue

            position = (float(center[0]), float(center[1]), float(center[2]))
            if choose_mat < 0.8:
                albedo = rng.random(3) * rng.random(3)
                scene.add_lambertian_sphere(position, 0.2, tuple(albedo.tolist()))
            elif choose_mat < 0.95:
                albedo = rng.random(3) * 0.5 + 0.5
                fuzz = float(rng.uniform(0.0, 0.5))
                scene.add_metal_sphere(position, 0.2, tuple(albedo.tolist()), fuzz)
            else:
                scene.add_dielectric_sphere(position, 0.2, ior=1.5)

    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, ior=1.5)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, albedo=(0.4, 0.2, 0.1))

    camera = ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )
    return scene, camera


PRESETS = {
    "three_spheres": three_spheres_scene,
    "hollow_glass": hollow_glass_scene,
    "random_spheres": random_spheres_scene,
}
