"""Sprite animation files, sample mixing and a sound-effect and music engine for retro 2D games."""

__version__ = "0.1.0"