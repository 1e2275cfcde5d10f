"""Scene module: what to draw and how rays interact with it.

Components:
    manager: Scene data model with a flat material table and the sky
    builder: Validation of the editor's text fields into scene edits
    evaluator: Taichi ray-scene intersection and material scattering

The evaluator allocates Taichi fields when constructed, so it is not
imported here; call ti.init() first, then
    from src.rtwtui.scene.evaluator import TaichiSceneEvaluator
"""

from .builder import MaterialFields, ObjectFields, SkyFields, save_material, save_object, save_sky
from .manager import (
    Material,
    MaterialKind,
    Plane,
    Scene,
    Sky,
    SkyKind,
    Sphere,
    create_demo_scene,
)

__all__ = [
    "Scene",
    "Material",
    "MaterialKind",
    "Sphere",
    "Plane",
    "Sky",
    "SkyKind",
    "create_demo_scene",
    "ObjectFields",
    "MaterialFields",
    "SkyFields",
    "save_object",
    "save_material",
    "save_sky",
]
