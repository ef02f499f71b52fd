"""
Inference backends for gridbox_kit.

The core pipeline only talks to the `InferenceEngine` protocol. Concrete
bindings live in their own modules and import their runtime lazily, so
pre/post-processing works without any inference runtime installed.
"""

from __future__ import annotations

from .base import InferenceEngine, static_shape

__all__ = ["InferenceEngine", "static_shape"]
