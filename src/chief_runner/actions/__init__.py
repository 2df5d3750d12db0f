"""Side-effecting steps run after the task loop."""

from .run_publish import run_publish_action

__all__ = ["run_publish_action"]
