"""
# ==============================================================================
# Module: owlfhir/ontology/closure.py
# ==============================================================================
# Purpose: In-memory ontology closure consumed by the transform core
#
# Dependencies:
#   - External: None (pure Python)
#   - Internal: owlfhir.core.types
#
# Input:
#   - Entities, annotations and asserted axioms, added by the loader or by
#     hand in tests
#
# Output:
#   - OntologyClosureProtocol implementation
#
# Design Notes:
#   - Annotations for the whole import closure live in one map; the document
#     an entity was declared in is tracked separately (root vs imported)
#   - Asserted parents/equivalents only feed the structural reasoner; the
#     transform itself reads the hierarchy through a reasoner
# ==============================================================================
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import (
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Set,
    Tuple,
    Union,
)

from owlfhir.core.types import (
    AnnotationValue,
    Entity,
    EntityKind,
    OWL_DEPRECATED,
    RDFS_LABEL,
)

logger = logging.getLogger(__name__)

LiteralLike = Union[str, AnnotationValue]


def _as_value(value: LiteralLike) -> AnnotationValue:
    if isinstance(value, AnnotationValue):
        return value
    return AnnotationValue(str(value))


# ==============================================================================
# In-Memory Ontology Closure
# ==============================================================================
class InMemoryOntology:
    """
    Immutable-after-loading ontology closure

    Usage:
        ont = InMemoryOntology("http://example.org/onto", imports=["http://example.org/imp"])
        ont.add_entity("http://example.org/onto#Foo", parents=["http://example.org/onto#Bar"])
        ont.annotate("http://example.org/onto#Foo", RDFS_LABEL, "Foo")
    """

    def __init__(
        self,
        ontology_iri: Optional[str] = None,
        version_iri: Optional[str] = None,
        imports: Iterable[str] = (),
        ontology_annotations: Optional[Mapping[str, Iterable[LiteralLike]]] = None,
    ):
        self._ontology_iri = ontology_iri
        self._version_iri = version_iri
        self._imports: FrozenSet[str] = frozenset(imports)

        self._ontology_annotations: Dict[str, Tuple[AnnotationValue, ...]] = {}
        for prop, values in (ontology_annotations or {}).items():
            self._ontology_annotations[prop] = tuple(_as_value(v) for v in values)

        # Entity storage: {kind: {iri: Entity}}
        self._entities: Dict[EntityKind, Dict[str, Entity]] = {k: {} for k in EntityKind}

        # Annotations: {iri: {property: [values]}}
        self._annotations: Dict[str, Dict[str, List[AnnotationValue]]] = defaultdict(
            lambda: defaultdict(list)
        )

        # Asserted axioms
        self._parents: Dict[Entity, Set[Entity]] = defaultdict(set)
        self._equivalents: Dict[Entity, Set[Entity]] = defaultdict(set)

        # Declaring documents
        self._root_iris: Set[str] = set()
        self._imported_iris: Set[str] = set()

    # =========================================================================
    # Properties
    # =========================================================================
    @property
    def ontology_iri(self) -> Optional[str]:
        return self._ontology_iri

    @property
    def version_iri(self) -> Optional[str]:
        return self._version_iri

    @property
    def imports(self) -> FrozenSet[str]:
        return self._imports

    @property
    def root_document_iris(self) -> FrozenSet[str]:
        return frozenset(self._root_iris)

    @property
    def imported_document_iris(self) -> FrozenSet[str]:
        return frozenset(self._imported_iris)

    @property
    def ontology_annotations(self) -> Dict[str, Tuple[AnnotationValue, ...]]:
        return dict(self._ontology_annotations)

    @property
    def num_entities(self) -> int:
        return sum(len(v) for v in self._entities.values())

    # =========================================================================
    # Entity Access
    # =========================================================================
    def entities(self, kind: EntityKind) -> FrozenSet[Entity]:
        return frozenset(self._entities[kind].values())

    def iter_entities(self) -> Iterator[Entity]:
        """Iterate every entity of every kind"""
        for kind in EntityKind:
            yield from self._entities[kind].values()

    def get_entity(self, iri: str, kind: EntityKind = EntityKind.CLASS) -> Optional[Entity]:
        return self._entities[kind].get(iri)

    def annotations_of(self, iri: str) -> Dict[str, Tuple[AnnotationValue, ...]]:
        if iri not in self._annotations:
            return {}
        return {prop: tuple(values) for prop, values in self._annotations[iri].items()}

    def annotation_values(self, iri: str, prop: str) -> Tuple[AnnotationValue, ...]:
        if iri not in self._annotations:
            return ()
        return tuple(self._annotations[iri].get(prop, ()))

    def asserted_parents(self, entity: Entity) -> FrozenSet[Entity]:
        return frozenset(self._parents.get(entity, ()))

    def asserted_equivalents(self, entity: Entity) -> FrozenSet[Entity]:
        return frozenset(self._equivalents.get(entity, ()))

    # =========================================================================
    # Building
    # =========================================================================
    def add_entity(
        self,
        iri: str,
        kind: EntityKind = EntityKind.CLASS,
        parents: Iterable[str] = (),
        equivalents: Iterable[str] = (),
        labels: Iterable[str] = (),
        in_root: bool = True,
        in_imports: bool = False,
    ) -> Entity:
        """
        Declare an entity (idempotent) and attach asserted axioms

        Args:
            iri: Entity IRI
            kind: Entity kind; parents and equivalents share it
            parents: IRIs of asserted super-entities
            equivalents: IRIs of asserted equivalents
            labels: rdfs:label values
            in_root: Declared in the root document
            in_imports: Declared in an imported document

        Returns:
            The Entity
        """
        entity = self._declare(iri, kind)
        if in_root:
            self._root_iris.add(iri)
        if in_imports:
            self._imported_iris.add(iri)

        for parent_iri in parents:
            self._parents[entity].add(self._declare(parent_iri, kind))

        for equiv_iri in equivalents:
            other = self._declare(equiv_iri, kind)
            self._equivalents[entity].add(other)
            self._equivalents[other].add(entity)

        labels = tuple(labels)
        if labels:
            self.annotate(iri, RDFS_LABEL, *labels)

        return entity

    def annotate(self, iri: str, prop: str, *values: LiteralLike) -> None:
        """Append literal values of an annotation property to an entity"""
        bucket = self._annotations[iri][prop]
        for value in values:
            bucket.append(_as_value(value))

    def set_deprecated(self, iri: str, deprecated: bool = True) -> None:
        """Attach an owl:deprecated boolean literal"""
        self.annotate(iri, OWL_DEPRECATED, AnnotationValue.boolean(deprecated))

    def _declare(self, iri: str, kind: EntityKind) -> Entity:
        existing = self._entities[kind].get(iri)
        if existing is not None:
            return existing
        entity = Entity(iri, kind)
        self._entities[kind][iri] = entity
        return entity

    def __len__(self) -> int:
        return self.num_entities

    def __contains__(self, iri: str) -> bool:
        return any(iri in by_iri for by_iri in self._entities.values())

    def __repr__(self) -> str:
        return f"InMemoryOntology(iri='{self._ontology_iri}', entities={self.num_entities})"
