"""Manifest reading and formatting-preserving rewriting."""

from .editor import TextPatch, apply_patches, find_value, insert_keys, replace_value
from .toml import TomlManifest, TomlManifestTransformer

__all__ = [
    "TextPatch",
    "TomlManifest",
    "TomlManifestTransformer",
    "apply_patches",
    "find_value",
    "insert_keys",
    "replace_value",
]
