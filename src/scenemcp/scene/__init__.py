"""
SceneMCP scene state
"""

from .models import GeometryKind, Scene, SceneEvent, SceneObject, DEFAULT_COLOR
from .store import SceneStore

__all__ = ['GeometryKind', 'Scene', 'SceneEvent', 'SceneObject', 'SceneStore', 'DEFAULT_COLOR']
