"""Pydantic models."""

from viewkit.models.render_options import RenderOptions

__all__ = ["RenderOptions"]
