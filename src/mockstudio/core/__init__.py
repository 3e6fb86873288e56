"""Core functionality for mockup generation.

This module provides the core components of Mockup Studio:

- **GenerationOrchestrator**: Drives one request through the credential pool
- **CredentialPool**: Configured credentials, ordered per call
- **PreferenceStore**: The remembered ("sticky") credential
- **GenAIBackend**: Adapter for the remote generation service
- **MockStudioConfig**: Configuration management using Pydantic Settings
- **config**: Global configuration instance (loads from environment variables)

Architecture Overview
---------------------
The core module follows a layered architecture:

1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with MOCKSTUDIO_ in .env files
   - Automatic directory creation for durable state

2. **Geometry Layer** (geometry.py, profiles.py):
   - Ratio tags resolved to native API ratios and pixel sizes
   - Cover-fit pre-process for templates, centre-crop post-process

3. **Remote Layer** (backend.py, classifier.py, prompt_builder.py):
   - One request/response exchange per call, normalised failures
   - Failure categories that decide between next model and next credential

4. **Orchestration Layer** (orchestrator.py, credentials.py, preferences.py):
   - Attempt planning, sequential execution, sticky preference upkeep

5. **Support Utilities**:
   - diagnostics.py: Sequential health probe of every credential
   - catalog.py: Hosted background scenarios with a built-in fallback

Usage Example
-------------
    from mockstudio.core import GenAIBackend, GenerationOrchestrator, config
    from mockstudio.core import SqlitePreferenceStore

    store = SqlitePreferenceStore(config.preference_db_path)
    orchestrator = GenerationOrchestrator.from_config(config, GenAIBackend(), store)
    result = orchestrator.generate(photo_bytes, None, "1:1")

See Also
--------
- GenerationOrchestrator: Attempt loop and failure handling
- MockStudioConfig: Configuration options and environment variables
"""

from mockstudio.core.backend import GenAIBackend, GenerationBackend
from mockstudio.core.config import MockStudioConfig, config
from mockstudio.core.credentials import CredentialPool
from mockstudio.core.orchestrator import GenerationOrchestrator, GenerationResult
from mockstudio.core.preferences import (
    InMemoryPreferenceStore,
    PreferenceStore,
    SqlitePreferenceStore,
)

__all__ = [
    "CredentialPool",
    "GenAIBackend",
    "GenerationBackend",
    "GenerationOrchestrator",
    "GenerationResult",
    "InMemoryPreferenceStore",
    "MockStudioConfig",
    "PreferenceStore",
    "SqlitePreferenceStore",
    "config",
]
