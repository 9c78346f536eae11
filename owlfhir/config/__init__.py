"""
owlfhir Configuration Module
============================
Validated transform settings with YAML persistence.

Components (re-exported):
    From settings:
        - ConceptSettings: Concept code / display / synonym sources
        - CodeSystemSettings: CodeSystem metadata and extraction flags
        - TransformSettings: Complete configuration of one run
        - build_settings: Validate a raw mapping
        - load_settings / save_settings: YAML files

Dependencies:
    - pydantic: Validation
    - yaml: Configuration files
    - Internal: owlfhir.config.settings
"""

from owlfhir.config.settings import (
    CONTACT_SYSTEM_VALUES,
    CONTENT_VALUES,
    HIERARCHY_MEANING_VALUES,
    STATUS_VALUES,
    CodeSystemSettings,
    ConceptSettings,
    TransformSettings,
    build_settings,
    load_settings,
    read_settings_file,
    save_settings,
)

__all__ = [
    "CONTACT_SYSTEM_VALUES",
    "CONTENT_VALUES",
    "HIERARCHY_MEANING_VALUES",
    "STATUS_VALUES",
    "CodeSystemSettings",
    "ConceptSettings",
    "TransformSettings",
    "build_settings",
    "load_settings",
    "read_settings_file",
    "save_settings",
]
