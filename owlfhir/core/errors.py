"""
owlfhir Errors
==============
Exception taxonomy for the transform.

- Configuration errors are raised eagerly, before any ontology is touched.
- Structural graph errors abort the whole batch; there is no partial output.
- Per-entity annotation anomalies are not exceptions: they are logged and
  recorded as TransformWarning (see owlfhir.core.types).

Version: 1.0.0
"""
from __future__ import annotations

from typing import Iterable, Optional, Tuple


class TransformError(Exception):
    """Base class for all transform failures"""


class MissingIdentifierError(TransformError):
    """The ontology has no IRI and no CodeSystem URL was configured"""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message or "The ontology has no IRI and no code system URL was supplied"
        )


class InvalidConfigurationError(TransformError, ValueError):
    """A configuration value is malformed or outside its allowed set"""


class StructuralInvariantViolation(TransformError, RuntimeError):
    """The hierarchy is undefined: a cycle or a missing computed entry"""


class EquivalenceCycleError(StructuralInvariantViolation):
    """
    Two or more entities are mutual ancestors (an OWL equivalence)

    Raised by the reduction engine when the equivalence policy is FAIL.
    """

    def __init__(self, members: Iterable[str]):
        self.members: Tuple[str, ...] = tuple(sorted(str(m) for m in members))
        super().__init__(
            "Cycle found in hierarchy between: " + ", ".join(self.members)
        )


class OntologyLoadError(TransformError):
    """An ontology document could not be read"""

    def __init__(self, source: str, cause: Optional[BaseException] = None):
        self.source = source
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Could not load ontology from {source}{detail}")
