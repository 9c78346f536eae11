"""
# ==============================================================================
# Module: owlfhir/codesystem/resolver.py
# ==============================================================================
# Purpose: Resolve code, display, synonyms, definition, deprecation, parents
#          and root flag of one ontology entity
#
# Dependencies:
#   - External: None (pure Python)
#   - Internal: owlfhir.core, owlfhir.config.settings,
#               owlfhir.ontology.namespaces
#
# Input:
#   - Ontology closure (annotations), import classifier, concept settings
#   - Direct parents of the entity (from the hierarchy reduction)
#
# Output:
#   - ConceptRecord
#   - TransformWarning list for recovered annotation anomalies
#
# Design Notes:
#   - Every choice among several literals is the lexicographically smallest,
#     so output never depends on annotation order
#   - The ontology-wide display map is built once at construction
#   - Deprecation verdicts are memoized so each anomaly is reported once
# ==============================================================================
"""
from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from owlfhir.config.settings import ConceptSettings
from owlfhir.core.protocols import OntologyClosureProtocol
from owlfhir.core.types import (
    ConceptRecord,
    Entity,
    EntityKind,
    TOP_DISPLAYS,
    TransformWarning,
    WarningKind,
    local_name,
)
from owlfhir.ontology.namespaces import ImportClassifier

logger = logging.getLogger(__name__)


def build_display_map(ontology: OntologyClosureProtocol, display_property: str) -> Dict[str, str]:
    """Smallest preferred-term literal of every entity in the closure that has one"""
    display_map: Dict[str, str] = {}
    for kind in EntityKind:
        for entity in ontology.entities(kind):
            values = sorted(v.lexical for v in ontology.annotation_values(entity.iri, display_property))
            if values:
                display_map[entity.iri] = values[0]
    return display_map


class EntityAttributeResolver:
    """
    Per-entity attribute resolution

    Usage:
        resolver = EntityAttributeResolver(ontology, classifier, ConceptSettings())
        record = resolver.resolve(entity, parents=reduction.parents_of(entity))
    """

    def __init__(
        self,
        ontology: OntologyClosureProtocol,
        classifier: ImportClassifier,
        settings: Optional[ConceptSettings] = None,
        include_deprecated: bool = False,
    ):
        self._ontology = ontology
        self._classifier = classifier
        self._settings = settings or ConceptSettings()
        self._include_deprecated = include_deprecated
        self._excluded: FrozenSet[str] = frozenset(self._settings.labels_to_exclude)

        self._display_map = build_display_map(ontology, self._settings.display_property)
        self._deprecated: Dict[str, bool] = {}
        self._warnings: List[TransformWarning] = []

        logger.debug(f"Display map built with {len(self._display_map)} entries")

    @property
    def warnings(self) -> List[TransformWarning]:
        return list(self._warnings)

    @property
    def display_map(self) -> Dict[str, str]:
        return dict(self._display_map)

    # =========================================================================
    # Code
    # =========================================================================
    def resolve_code(self, entity: Entity) -> str:
        """Code annotation if present, else full IRI (imported) or local code"""
        prop = self._settings.code_property
        if prop:
            values = self._ontology.annotation_values(entity.iri, prop)
            if values:
                return min(v.lexical for v in values)
        return self.structural_code(entity.iri)

    def structural_code(self, iri: str) -> str:
        """Code derived from the IRI alone, ignoring any code annotation"""
        if self._classifier.is_imported(iri):
            return iri
        return self.local_code(iri)

    def local_code(self, iri: str) -> str:
        code = local_name(iri)
        replacement = self._settings.code_replacement
        if replacement is not None:
            code = code.replace(replacement[0], replacement[1])
        return code

    # =========================================================================
    # Display and Synonyms
    # =========================================================================
    def preferred_terms(self, entity: Entity) -> List[str]:
        """Preferred-term literals minus exclusions, sorted"""
        values = self._ontology.annotation_values(entity.iri, self._settings.display_property)
        return sorted({v.lexical for v in values} - self._excluded)

    def synonym_candidates(self, entity: Entity) -> Set[str]:
        synonyms: Set[str] = set()
        for prop in self._settings.synonym_properties:
            for value in self._ontology.annotation_values(entity.iri, prop):
                synonyms.add(value.lexical)
        return synonyms - self._excluded

    def resolve_display(self, entity: Entity, code: str) -> Tuple[str, Tuple[str, ...]]:
        """
        Display and synonyms of an entity

        Order: smallest preferred term; smallest synonym (promoted out of the
        synonym set); ontology-wide display map; the code itself.
        """
        synonyms = self.synonym_candidates(entity)

        if entity.iri in TOP_DISPLAYS:
            display = TOP_DISPLAYS[entity.iri]
        else:
            terms = self.preferred_terms(entity)
            if terms:
                display = terms[0]
            elif synonyms:
                display = min(synonyms)
            elif entity.iri in self._display_map:
                display = self._display_map[entity.iri]
            else:
                display = code
                self._warn(
                    WarningKind.UNRESOLVABLE_LABEL,
                    entity.iri,
                    f"No label found for {entity.iri}; using code '{code}' as display",
                )

        synonyms.discard(display)
        return display, tuple(sorted(synonyms))

    def resolve_definition(self, entity: Entity) -> Optional[str]:
        prop = self._settings.definition_property
        if not prop:
            return None
        values = sorted(v.lexical for v in self._ontology.annotation_values(entity.iri, prop))
        return values[0] if values else None

    # =========================================================================
    # Status
    # =========================================================================
    def is_deprecated(self, entity: Entity) -> bool:
        """Boolean value of any annotation whose property local name is 'deprecated'"""
        cached = self._deprecated.get(entity.iri)
        if cached is not None:
            return cached

        deprecated = False
        annotations = self._ontology.annotations_of(entity.iri)
        for prop in sorted(annotations):
            if local_name(prop) != "deprecated":
                continue
            for value in annotations[prop]:
                if value.is_boolean:
                    deprecated = deprecated or value.as_bool()
                else:
                    self._warn(
                        WarningKind.ANNOTATION_TYPE_MISMATCH,
                        entity.iri,
                        f"Found deprecated attribute on {entity.iri} but it is not "
                        f"boolean: '{value.lexical}'",
                    )

        self._deprecated[entity.iri] = deprecated
        return deprecated

    # =========================================================================
    # Hierarchy
    # =========================================================================
    def filter_parents(self, parents: Iterable[Entity]) -> List[Entity]:
        """Drop bottom entities and, unless included, deprecated parents"""
        kept = []
        for parent in sorted(parents):
            if parent.is_bottom:
                continue
            if not self._include_deprecated and self.is_deprecated(parent):
                continue
            kept.append(parent)
        return kept

    def resolve_parents(self, parents: Iterable[Entity]) -> Tuple[str, ...]:
        return self._parent_codes(self.filter_parents(parents))

    def _parent_codes(self, parents: Iterable[Entity]) -> Tuple[str, ...]:
        return tuple(sorted({self.structural_code(p.iri) for p in parents}))

    # =========================================================================
    # Record
    # =========================================================================
    def resolve(
        self,
        entity: Entity,
        parents: Iterable[Entity] = (),
        equivalents: Iterable[Entity] = (),
    ) -> ConceptRecord:
        """
        Build the ConceptRecord of one entity

        Args:
            entity: Entity to resolve
            parents: Direct parents from the hierarchy reduction
            equivalents: Entities equivalent to this one
        """
        equivalents = frozenset(equivalents)
        code = self.resolve_code(entity)
        display, synonyms = self.resolve_display(entity, code)
        kept_parents = self.filter_parents(parents)
        parent_codes = self._parent_codes(kept_parents)

        if entity.is_top:
            root = True
            parent_codes = ()
        else:
            # top-entity parents do not count against root
            root = (
                all(p.is_top for p in kept_parents)
                or Entity.top(entity.kind) in equivalents
            )

        record = ConceptRecord(
            code=code,
            display=display,
            synonyms=synonyms,
            imported=self._classifier.is_imported(entity.iri),
            root=root,
            deprecated=self.is_deprecated(entity),
            parents=parent_codes,
            definition=self.resolve_definition(entity),
            equivalents=tuple(sorted(self.resolve_code(e) for e in equivalents)),
            iri=entity.iri,
            kind=entity.kind,
        )
        logger.debug(f"Resolved {entity.iri} -> {record.code} ({record.display})")
        return record

    def _warn(self, kind: WarningKind, iri: str, message: str) -> None:
        logger.warning(message)
        self._warnings.append(TransformWarning(kind=kind, iri=iri, message=message))
