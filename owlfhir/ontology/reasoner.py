"""
owlfhir Reasoner Oracles
========================
Pluggable implementations of ReasonerProtocol

The transform never classifies an ontology itself; it asks a reasoner for
ancestor and equivalence sets. Two oracles ship with the package:

- MappingReasoner: wraps hand-constructed ancestor / equivalence maps (tests,
  or ontologies classified by an external DL reasoner)
- StructuralReasoner: told subsumption over the asserted axioms of an
  ontology closure (no DL inference)

Further oracles can be registered by name with `register_reasoner`.

Version: 1.0.0
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set

import networkx as nx

from owlfhir.core.errors import InvalidConfigurationError
from owlfhir.core.protocols import OntologyClosureProtocol, ReasonerProtocol
from owlfhir.core.types import Entity, EntityKind

logger = logging.getLogger(__name__)


# =============================================================================
# Mapping Reasoner
# =============================================================================
class MappingReasoner:
    """
    Reasoner backed by explicit maps

    Mutual ancestors are reported as equivalents, in addition to any
    explicitly supplied equivalence.

    Usage:
        a, b, c = Entity("A"), Entity("B"), Entity("C")
        reasoner = MappingReasoner({a: {b, c}, b: {c}, c: set()})
        reasoner.ancestors_of(a)  # {b, c}
    """

    def __init__(
        self,
        ancestors: Mapping[Entity, Iterable[Entity]],
        equivalents: Optional[Mapping[Entity, Iterable[Entity]]] = None,
    ):
        self._ancestors: Dict[Entity, FrozenSet[Entity]] = {
            entity: frozenset(values) for entity, values in ancestors.items()
        }
        self._equivalents: Dict[Entity, Set[Entity]] = defaultdict(set)
        for entity, values in (equivalents or {}).items():
            for other in values:
                if other != entity:
                    self._equivalents[entity].add(other)
                    self._equivalents[other].add(entity)

    @classmethod
    def from_iris(
        cls,
        ancestors: Mapping[str, Iterable[str]],
        kind: EntityKind = EntityKind.CLASS,
        equivalents: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> "MappingReasoner":
        """Build from IRI-keyed maps, all entities sharing one kind"""
        anc = {
            Entity(iri, kind): {Entity(a, kind) for a in values}
            for iri, values in ancestors.items()
        }
        eqv = {
            Entity(iri, kind): {Entity(e, kind) for e in values}
            for iri, values in (equivalents or {}).items()
        }
        return cls(anc, eqv)

    def ancestors_of(self, entity: Entity) -> Set[Entity]:
        return set(self._ancestors.get(entity, frozenset())) - {entity}

    def equivalents_of(self, entity: Entity) -> Set[Entity]:
        result = set(self._equivalents.get(entity, ()))
        for ancestor in self._ancestors.get(entity, ()):
            if ancestor != entity and entity in self._ancestors.get(ancestor, ()):
                result.add(ancestor)
        return result

    def __repr__(self) -> str:
        return f"MappingReasoner(entities={len(self._ancestors)})"


# =============================================================================
# Structural Reasoner
# =============================================================================
class StructuralReasoner:
    """
    Told-subsumption reasoner over an ontology closure

    Ancestors are everything reachable through asserted sub-entity and
    equivalence axioms, plus the universal top entity of the kind. An entity
    that reaches the bottom entity is unsatisfiable and reported as equivalent
    to it.
    """

    def __init__(self, ontology: OntologyClosureProtocol):
        self._ontology = ontology
        self._graphs: Dict[EntityKind, nx.DiGraph] = {}
        self._components: Dict[Entity, FrozenSet[Entity]] = {}
        self._unsatisfiable: Set[Entity] = set()
        self._ancestors_cache: Dict[Entity, Set[Entity]] = {}

        for kind in EntityKind:
            self._graphs[kind] = self._build_graph(kind)

        logger.info(
            "Structural reasoner ready: "
            + ", ".join(f"{k.value}={self._graphs[k].number_of_nodes()}" for k in EntityKind)
        )

    def _build_graph(self, kind: EntityKind) -> nx.DiGraph:
        """Edges point from an entity to its asserted super-entities"""
        graph = nx.DiGraph()
        top = Entity.top(kind)
        bottom = Entity.bottom(kind)
        graph.add_node(top)
        graph.add_node(bottom)

        for entity in self._ontology.entities(kind):
            graph.add_node(entity)
            if entity != top:
                graph.add_edge(entity, top)
            for parent in self._ontology.asserted_parents(entity):
                graph.add_edge(entity, parent)
            for equiv in self._ontology.asserted_equivalents(entity):
                graph.add_edge(entity, equiv)
                graph.add_edge(equiv, entity)

        # bottom is subsumed by everything
        for entity in list(graph.nodes):
            if entity != bottom:
                graph.add_edge(bottom, entity)

        self._unsatisfiable |= nx.ancestors(graph, bottom) | {bottom}

        for component in nx.strongly_connected_components(graph):
            members = frozenset(component)
            for member in members:
                self._components[member] = members

        return graph

    def ancestors_of(self, entity: Entity) -> Set[Entity]:
        if entity in self._ancestors_cache:
            return set(self._ancestors_cache[entity])

        graph = self._graphs[entity.kind]
        if entity not in graph:
            return set()

        if self._is_unsatisfiable(entity):
            # unsatisfiable entities sit below everything
            ancestors = set(graph.nodes)
        else:
            ancestors = set(nx.descendants(graph, entity))
        ancestors.discard(entity)

        self._ancestors_cache[entity] = ancestors
        return set(ancestors)

    def equivalents_of(self, entity: Entity) -> Set[Entity]:
        graph = self._graphs[entity.kind]
        if entity not in graph:
            return set()

        # unsatisfiable entities share the bottom entity's component
        return set(self._components.get(entity, frozenset())) - {entity}

    def _is_unsatisfiable(self, entity: Entity) -> bool:
        return entity in self._unsatisfiable

    def __repr__(self) -> str:
        return f"StructuralReasoner(ontology={self._ontology!r})"


# =============================================================================
# Registry
# =============================================================================
ReasonerFactory = Callable[[OntologyClosureProtocol], ReasonerProtocol]

_REASONERS: Dict[str, ReasonerFactory] = {
    "structural": StructuralReasoner,
}


def register_reasoner(name: str, factory: ReasonerFactory) -> None:
    """Make a reasoner available to configuration by name"""
    if name in _REASONERS:
        logger.warning(f"Replacing registered reasoner '{name}'")
    _REASONERS[name] = factory


def available_reasoners() -> List[str]:
    return sorted(_REASONERS)


def create_reasoner(name: str, ontology: OntologyClosureProtocol) -> ReasonerProtocol:
    """
    Factory function: build a registered reasoner for an ontology

    Raises:
        InvalidConfigurationError: if no reasoner is registered under `name`
    """
    factory = _REASONERS.get(name)
    if factory is None:
        raise InvalidConfigurationError(
            f"Invalid reasoner '{name}'. Valid values are: {available_reasoners()}"
        )
    logger.info(f"Creating reasoner '{name}'")
    return factory(ontology)
