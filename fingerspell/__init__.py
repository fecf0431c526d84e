"""
Fingerspell
===========

Real-time static fingerspelling (A-Z) recognition from 21 hand landmarks.

Modules:
    - core: shared types, event bus, per-frame classification pipeline
    - models: feature extraction and the optional learned letter model
    - modules.recognition: rules, template store, stability filter
    - modules.storage: per-profile template persistence
    - modules.utils: configuration and logging
    - training: letter model training from captured templates
"""

__version__ = "1.0.0"
