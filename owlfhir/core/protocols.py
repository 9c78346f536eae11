"""
owlfhir Protocol Definitions
============================
Interface contracts between the transform core and its collaborators.

Design principles:
1. The core never parses ontology files nor classifies them; it consumes an
   ontology closure and a reasoner through these protocols.
2. typing.Protocol gives structural subtyping, so test doubles need no base
   class.

Version: 1.0.0
"""
from __future__ import annotations

from typing import (
    Dict,
    FrozenSet,
    Optional,
    Protocol,
    Set,
    Tuple,
    runtime_checkable,
)

from owlfhir.core.types import AnnotationValue, Entity, EntityKind


# =============================================================================
# Reasoner Protocol
# =============================================================================
@runtime_checkable
class ReasonerProtocol(Protocol):
    """
    Reasoner oracle

    Implementation modules: owlfhir/ontology/reasoner.py

    Ancestor sets must be consistent (nothing logically subsuming an entity is
    left out) but are allowed to be redundant.
    """

    def ancestors_of(self, entity: Entity) -> Set[Entity]:
        """All (direct and indirect) named super-entities, excluding itself"""
        ...

    def equivalents_of(self, entity: Entity) -> Set[Entity]:
        """Named entities equivalent to `entity`, excluding itself"""
        ...


# =============================================================================
# Ontology Closure Protocol
# =============================================================================
@runtime_checkable
class OntologyClosureProtocol(Protocol):
    """
    Fully loaded, immutable ontology closure (root ontology plus imports)

    Implementation modules: owlfhir/ontology/closure.py
    """

    @property
    def ontology_iri(self) -> Optional[str]:
        """Primary IRI of the root ontology"""
        ...

    @property
    def version_iri(self) -> Optional[str]:
        """Version IRI of the root ontology"""
        ...

    @property
    def imports(self) -> FrozenSet[str]:
        """Import targets declared by the root ontology (possibly empty)"""
        ...

    @property
    def root_document_iris(self) -> FrozenSet[str]:
        """IRIs of entities declared in the root document"""
        ...

    @property
    def imported_document_iris(self) -> FrozenSet[str]:
        """IRIs of entities declared in any imported document"""
        ...

    @property
    def ontology_annotations(self) -> Dict[str, Tuple[AnnotationValue, ...]]:
        """Ontology-level annotations (property IRI -> values)"""
        ...

    def entities(self, kind: EntityKind) -> FrozenSet[Entity]:
        """All entities of one kind in the closure signature"""
        ...

    def annotations_of(self, iri: str) -> Dict[str, Tuple[AnnotationValue, ...]]:
        """All annotations on an entity (property IRI -> values)"""
        ...

    def annotation_values(self, iri: str, prop: str) -> Tuple[AnnotationValue, ...]:
        """Values of one annotation property on an entity"""
        ...

    def asserted_parents(self, entity: Entity) -> FrozenSet[Entity]:
        """Asserted named super-entities (sub-class / sub-property axioms)"""
        ...

    def asserted_equivalents(self, entity: Entity) -> FrozenSet[Entity]:
        """Asserted named equivalents"""
        ...
