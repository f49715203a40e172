"""
Rastreabilidade de passadas (Manifest).
"""

from .manifest import AtlasManifest, create_manifest, load_manifest, save_manifest

__all__ = ["AtlasManifest", "create_manifest", "load_manifest", "save_manifest"]
