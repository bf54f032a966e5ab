"""Scene module for scene description, validation and storage.

Components:
    manager: Frozen Scene value, SceneBuilder and upload to the kernels
    loader: Parser for the line-oriented scene description format
    intersection: Primitive storage and nearest-hit / occlusion queries
    lights: Light storage read by the shader

A scene is built sequentially (parsing or SceneBuilder calls), frozen by
``SceneBuilder.build()`` and then uploaded once with ``upload_scene``.
Render kernels only read the uploaded fields.

Data is stored in Structure-of-Arrays Taichi fields:
    - one field per sphere/plane/triangle attribute
    - material indices are 1-based, 0 marks a miss
"""

# Note: the submodules declare Taichi fields and are NOT imported here, so
# importing this package does not require Taichi to be initialized.
# Import directly after ti.init(), e.g.:
#   from src.phongtracer.scene.loader import load_scene_file
#   from src.phongtracer.scene.manager import SceneBuilder, upload_scene
