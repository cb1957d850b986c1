"""Controller layer wiring the view to the model."""

from .app_controller import WordLoopController

__all__ = ["WordLoopController"]
