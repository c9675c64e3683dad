"""Extensions shipped with modcore."""

from modcore.plugins.builtins.autosubscribe import ModuleAutosubscribe
from modcore.plugins.builtins.lifecycle_logger import LifecycleLogger

__all__ = ["LifecycleLogger", "ModuleAutosubscribe"]
