"""Shading module for local illumination.

Components:
    phong: Ambient + attenuated diffuse/specular model, the reflection weight
        and the named shading calibrations

Note: phong declares Taichi fields, so import it after ti.init().
"""
