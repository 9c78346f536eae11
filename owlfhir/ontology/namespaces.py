"""
owlfhir Import Classification
=============================
Decides whether an entity belongs to the code system being produced (local)
or to an externally owned code system (imported).

Two mutually exclusive modes:
1. Explicit namespaces: local iff the IRI starts with a configured prefix
2. Closure difference: local iff declared in the root document and in no
   imported document (every entity is local when nothing is imported)

Version: 1.0.0
"""
from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from owlfhir.core.protocols import OntologyClosureProtocol
from owlfhir.core.types import ImportStatus

logger = logging.getLogger(__name__)


def compute_local_iris(ontology: OntologyClosureProtocol) -> FrozenSet[str]:
    """IRIs declared in the root document and not in any imported document"""
    return ontology.root_document_iris - ontology.imported_document_iris


class ImportClassifier:
    """
    Memoized local / imported verdicts

    Usage:
        classifier = ImportClassifier(ontology, main_namespaces=["http://example.org/"])
        classifier.classify("http://example.org/Foo")  # ImportStatus.LOCAL
    """

    def __init__(
        self,
        ontology: OntologyClosureProtocol,
        main_namespaces: Optional[Iterable[str]] = None,
    ):
        self._namespaces: Tuple[str, ...] = tuple(ns for ns in (main_namespaces or ()) if ns)
        self._has_imports = bool(ontology.imports)
        self._local_iris: FrozenSet[str] = frozenset()
        self._verdicts: Dict[str, ImportStatus] = {}

        if self._namespaces:
            logger.info(f"Classifying imports by namespace: {list(self._namespaces)}")
        elif self._has_imports:
            self._local_iris = compute_local_iris(ontology)
            logger.info(
                f"Classifying imports by closure difference: "
                f"{len(self._local_iris)} local IRIs, {len(ontology.imports)} imports"
            )
        else:
            logger.info("Ontology has no imports; every entity is local")

    @property
    def mode(self) -> str:
        if self._namespaces:
            return "namespace"
        return "closure"

    @property
    def namespaces(self) -> Tuple[str, ...]:
        return self._namespaces

    def classify(self, iri: str) -> ImportStatus:
        verdict = self._verdicts.get(iri)
        if verdict is None:
            verdict = self._compute(iri)
            self._verdicts[iri] = verdict
        return verdict

    def is_imported(self, iri: str) -> bool:
        return self.classify(iri) == ImportStatus.IMPORTED

    def _compute(self, iri: str) -> ImportStatus:
        if self._namespaces:
            if any(iri.startswith(ns) for ns in self._namespaces):
                return ImportStatus.LOCAL
            return ImportStatus.IMPORTED

        if not self._has_imports or iri in self._local_iris:
            return ImportStatus.LOCAL
        return ImportStatus.IMPORTED
