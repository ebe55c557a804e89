"""Python implementation of a Taichi-based Whitted-style ray tracer.

This package renders triangulated scenes lit by point lights, with support for:
- Moller-Trumbore ray-triangle intersection over a flat triangle list
- Hard shadows from point lights
- Ambient + attenuated diffuse/specular local shading
- Damped specular reflection up to a bounded trace depth

Subpackages:
    core: Ray utilities, the recursive tracer and the image driver
    geometry: Triangle primitive and intersection
    scene: Triangle/material/light storage, scene building and mesh loading
    shading: Local illumination model and its calibration constants
    camera: Pinhole camera producing one primary ray per pixel
    config: Plain-text render configuration files
    preview: Image encoding and export
"""

__version__ = "0.1.0"
