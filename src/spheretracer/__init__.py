"""Taichi path tracer for scenes built from spheres.

This package renders sphere scenes under global illumination approximated by
recursive path tracing, with support for:
- A thin-lens camera with depth of field
- Lambertian, metal and dielectric materials
- Per-pixel random streams for reproducible renders
- Row-by-row rendering with progress notification

Subpackages:
    core: Ray and vector utilities, random sampling, the integrator and render loop
    geometry: Sphere primitive and ray-sphere intersection
    materials: Scattering models (Lambertian, metal, dielectric)
    scene: Primitive storage, scene manager and preset scenes
    camera: Thin-lens camera with ray generation
    preview: Image export
"""

__version__ = "0.1.0"
