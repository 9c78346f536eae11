"""
owlfhir Hierarchy Reduction
===========================
Transitive reduction of a reasoner's ancestor relation into direct parents

The ancestor sets handed in by a reasoner are complete but redundant: an
entity's ancestors include its grandparents, the top entity and so on. This
module keeps, per entity, only the ancestors not reachable through another
ancestor.

Mutual ancestors are OWL equivalences. They are either collapsed into one
representative (default) or reported as an EquivalenceCycleError.

Version: 1.0.0
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import (
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Set,
    Tuple,
    Union,
)

import networkx as nx

from owlfhir.core.errors import EquivalenceCycleError, StructuralInvariantViolation
from owlfhir.core.types import Entity, EquivalencePolicy

logger = logging.getLogger(__name__)

AncestorSource = Union[
    Mapping[Entity, Iterable[Entity]],
    Callable[[Entity], Iterable[Entity]],
]


# =============================================================================
# Result
# =============================================================================
@dataclass
class HierarchyReduction:
    """
    Direct-parent map plus the equivalence classes found on the way

    `parents` maps every node to the representatives of its direct parents.
    `aliases` maps each representative of a collapsed class to the other
    members of that class.
    """
    parents: Dict[Entity, FrozenSet[Entity]] = field(default_factory=dict)
    aliases: Dict[Entity, FrozenSet[Entity]] = field(default_factory=dict)
    representatives: Dict[Entity, Entity] = field(default_factory=dict)

    def parents_of(self, entity: Entity) -> FrozenSet[Entity]:
        return self.parents.get(entity, frozenset())

    def representative_of(self, entity: Entity) -> Entity:
        return self.representatives.get(entity, entity)

    def equivalents_of(self, entity: Entity) -> FrozenSet[Entity]:
        """Other members of the entity's equivalence class"""
        rep = self.representative_of(entity)
        members = self.aliases.get(rep, frozenset()) | {rep}
        return frozenset(members - {entity})

    @property
    def num_edges(self) -> int:
        return sum(len(p) for p in self.parents.values())

    @property
    def num_equivalence_classes(self) -> int:
        return len(self.aliases)

    def stats(self) -> Dict[str, int]:
        return {
            "nodes": len(self.parents),
            "edges": self.num_edges,
            "equivalence_classes": self.num_equivalence_classes,
        }


# =============================================================================
# Reduction
# =============================================================================
def _ancestor_lookup(ancestors: AncestorSource) -> Callable[[Entity], Iterable[Entity]]:
    if callable(ancestors):
        return ancestors

    def lookup(entity: Entity) -> Iterable[Entity]:
        if entity not in ancestors:
            raise StructuralInvariantViolation(
                f"No ancestor entry computed for {entity.iri}"
            )
        return ancestors[entity]

    return lookup


def _choose_representative(
    members: Iterable[Entity],
    prefer: Optional[Callable[[Entity], bool]] = None,
) -> Entity:
    """
    A universal top entity if present, else the smallest IRI among the
    preferred members (all members when none is preferred)
    """
    members = sorted(members)
    for member in members:
        if member.is_top:
            return member
    preferred = [m for m in members if prefer(m)] if prefer is not None else []
    return min(preferred or members, key=lambda e: e.iri)


def reduce_hierarchy(
    nodes: Iterable[Entity],
    ancestors: AncestorSource,
    policy: EquivalencePolicy = EquivalencePolicy.COLLAPSE,
    prefer: Optional[Callable[[Entity], bool]] = None,
) -> HierarchyReduction:
    """
    Compute the minimal direct-parent relation over `nodes`

    Args:
        nodes: Entities to place in the hierarchy
        ancestors: Entity -> ancestors, as a mapping or a callable (e.g. a
            reasoner's `ancestors_of`). Ancestors outside `nodes` are ignored.
        policy: What to do with mutually subsuming entities
        prefer: Members eligible as representative of a collapsed class
            (e.g. the ones that will be emitted); others are only chosen
            when no member qualifies

    Returns:
        HierarchyReduction

    Raises:
        EquivalenceCycleError: equivalent entities found under the FAIL policy
        StructuralInvariantViolation: missing ancestor entry, or a cycle left
            in the reduced hierarchy
    """
    node_set: FrozenSet[Entity] = frozenset(nodes)
    lookup = _ancestor_lookup(ancestors)

    # Candidate ancestors restricted to the node set
    candidates: Dict[Entity, Set[Entity]] = {}
    for node in node_set:
        candidates[node] = (set(lookup(node)) & node_set) - {node}

    # Equivalence classes
    graph = nx.DiGraph()
    graph.add_nodes_from(node_set)
    for node, cands in candidates.items():
        graph.add_edges_from((node, c) for c in cands)

    representatives: Dict[Entity, Entity] = {}
    aliases: Dict[Entity, FrozenSet[Entity]] = {}
    for component in nx.strongly_connected_components(graph):
        if len(component) == 1:
            (only,) = component
            representatives[only] = only
            continue

        if policy == EquivalencePolicy.FAIL:
            raise EquivalenceCycleError(e.iri for e in component)

        rep = _choose_representative(component, prefer)
        aliases[rep] = frozenset(component - {rep})
        for member in component:
            representatives[member] = rep
        logger.debug(f"Collapsed {len(component)} equivalent entities into {rep.iri}")

    # Candidates of the collapsed graph, keyed by representative
    collapsed: Dict[Entity, Set[Entity]] = {}
    for node, cands in candidates.items():
        rep = representatives[node]
        bucket = collapsed.setdefault(rep, set())
        bucket.update(representatives[c] for c in cands)
    for rep, bucket in collapsed.items():
        bucket.discard(rep)

    rep_parents = _reduce_acyclic(collapsed)

    # Re-expand collapsed members with their representative's parents
    parents: Dict[Entity, FrozenSet[Entity]] = {}
    for node in node_set:
        parents[node] = rep_parents[representatives[node]]

    _verify_acyclic(rep_parents)

    reduction = HierarchyReduction(
        parents=parents,
        aliases=aliases,
        representatives=representatives,
    )
    logger.info(
        f"Reduced hierarchy: {len(node_set)} nodes, {reduction.num_edges} edges, "
        f"{reduction.num_equivalence_classes} equivalence classes"
    )
    return reduction


def _reduce_acyclic(candidates: Mapping[Entity, Set[Entity]]) -> Dict[Entity, FrozenSet[Entity]]:
    """
    Reduce an acyclic candidate map, ancestors first

    Uses an explicit stack; a node is finished once all its candidates are.
    closure[N] = C(N) | closure(B) for B in C(N)
    parents[N] = C(N) - closure(B) for B in C(N)
    """
    closure: Dict[Entity, FrozenSet[Entity]] = {}
    parents: Dict[Entity, FrozenSet[Entity]] = {}
    in_progress: Set[Entity] = set()

    for start in sorted(candidates):
        if start in closure:
            continue

        stack: List[Tuple[Entity, bool]] = [(start, False)]
        while stack:
            node, expanded = stack.pop()
            if node in closure:
                continue

            if expanded:
                closure[node], parents[node] = _reduce_node(node, candidates[node], closure)
                in_progress.discard(node)
                continue

            in_progress.add(node)
            stack.append((node, True))
            for cand in sorted(candidates[node], reverse=True):
                if cand in closure:
                    continue
                if cand in in_progress:
                    raise StructuralInvariantViolation(
                        f"Cycle found in hierarchy through {cand.iri} and {node.iri}"
                    )
                if cand not in candidates:
                    raise StructuralInvariantViolation(
                        f"No ancestor entry computed for {cand.iri}"
                    )
                stack.append((cand, False))

    return parents


def _reduce_node(
    node: Entity,
    cands: Set[Entity],
    closure: Mapping[Entity, FrozenSet[Entity]],
) -> Tuple[FrozenSet[Entity], FrozenSet[Entity]]:
    indirect: Set[Entity] = set()
    for cand in cands:
        if cand not in closure:
            raise StructuralInvariantViolation(
                f"Ancestor {cand.iri} of {node.iri} was not reduced before it"
            )
        indirect |= closure[cand]

    if node in indirect:
        raise StructuralInvariantViolation(f"{node.iri} is its own ancestor")

    return frozenset(cands | indirect), frozenset(cands - indirect)


def _verify_acyclic(parents: Mapping[Entity, Iterable[Entity]]) -> None:
    graph = nx.DiGraph()
    graph.add_nodes_from(parents)
    for node, ps in parents.items():
        graph.add_edges_from((node, p) for p in ps)

    if not nx.is_directed_acyclic_graph(graph):
        cycle = nx.find_cycle(graph)
        members = sorted({u.iri for u, _ in cycle})
        raise StructuralInvariantViolation(
            "Cycle found in hierarchy between: " + ", ".join(members)
        )


# =============================================================================
# Closure
# =============================================================================
def transitive_closure(
    parent_map: Mapping[Entity, Iterable[Entity]],
) -> Dict[Entity, FrozenSet[Entity]]:
    """
    Ancestors of every key of a parent map

    Parents that are not keys contribute themselves but nothing above them.
    """
    graph = nx.DiGraph()
    graph.add_nodes_from(parent_map)
    for node, ps in parent_map.items():
        graph.add_edges_from((node, p) for p in ps)

    return {node: frozenset(nx.descendants(graph, node)) for node in parent_map}
