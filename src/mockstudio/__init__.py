"""Mockup Studio - Product mockups rendered by a remote image model."""

__version__ = "0.1.0"

from mockstudio.core.config import MockStudioConfig, config
from mockstudio.core.orchestrator import GenerationOrchestrator, GenerationResult

__all__ = [
    "GenerationOrchestrator",
    "GenerationResult",
    "MockStudioConfig",
    "config",
]
