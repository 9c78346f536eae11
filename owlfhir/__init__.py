"""
owlfhir
=======
Transforms a classified OWL / OBO concept hierarchy into a FHIR R4
CodeSystem.

Usage:
    from owlfhir.config import load_settings
    from owlfhir.pipeline import TransformPipeline

    result = TransformPipeline(load_settings("transform.yaml")).run()
"""

__version__ = "1.0.0"
