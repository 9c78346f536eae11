"""
owlfhir CodeSystem Assembler
============================
Combines hierarchy reduction, import classification and attribute resolution
into one CodeSystem record.

Pipeline:
1. Resource metadata (URL first: a missing identifier aborts before any
   entity is processed)
2. Entity selection per kind (classes always; properties on request)
3. Hierarchy reduction per kind through the reasoner
4. One ConceptRecord per non-excluded entity, in (kind, IRI) order

Version: 1.0.0
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set

from owlfhir.config.settings import DATE_REGEX_GROUPS, CodeSystemSettings, TransformSettings
from owlfhir.core.errors import MissingIdentifierError
from owlfhir.core.protocols import OntologyClosureProtocol, ReasonerProtocol
from owlfhir.core.types import (
    CodeSystemRecord,
    ConceptRecord,
    Entity,
    EntityKind,
    FilterDefinition,
    PropertyDefinition,
    PropertyType,
    TransformResult,
)
from owlfhir.codesystem.resolver import EntityAttributeResolver
from owlfhir.ontology.hierarchy import HierarchyReduction, reduce_hierarchy
from owlfhir.ontology.namespaces import ImportClassifier

logger = logging.getLogger(__name__)


# =============================================================================
# Structural Properties
# =============================================================================
STRUCTURAL_PROPERTIES = (
    PropertyDefinition("parent", PropertyType.CODE, "Parent codes."),
    PropertyDefinition(
        "imported",
        PropertyType.BOOLEAN,
        "Indicates if the concept is imported from another code system.",
    ),
    PropertyDefinition(
        "root",
        PropertyType.BOOLEAN,
        "Indicates if this concept is a root concept "
        "(i.e. Thing is equivalent or a direct parent)",
    ),
    PropertyDefinition(
        "deprecated",
        PropertyType.BOOLEAN,
        "Indicates if this concept is deprecated.",
    ),
)

STRUCTURAL_FILTERS = (
    FilterDefinition("parent", ("=",), "A parent code.", "Concepts with the given parent."),
    FilterDefinition("imported", ("=",), "True or false."),
    FilterDefinition("root", ("=",), "True or false."),
    FilterDefinition("deprecated", ("=",), "True or false."),
)

VERSION_NOT_AVAILABLE = "NA"
DEFAULT_HIERARCHY_MEANING = "is-a"


# =============================================================================
# Assembler
# =============================================================================
class CodeSystemAssembler:
    """
    Builds the CodeSystem record of an ontology closure

    Usage:
        assembler = CodeSystemAssembler(ontology, reasoner, settings)
        result = assembler.assemble()
        result.code_system.count
    """

    def __init__(
        self,
        ontology: OntologyClosureProtocol,
        reasoner: ReasonerProtocol,
        settings: Optional[TransformSettings] = None,
    ):
        self._ontology = ontology
        self._reasoner = reasoner
        self._settings = settings or TransformSettings()
        self._cs_settings: CodeSystemSettings = self._settings.code_system

    # =========================================================================
    # Entry Point
    # =========================================================================
    def assemble(self) -> TransformResult:
        """
        Returns:
            TransformResult with the record, recovered warnings and
            per-kind reduction statistics

        Raises:
            MissingIdentifierError: no URL configured and no ontology IRI
            StructuralInvariantViolation: the hierarchy is undefined
        """
        code_system = self.build_metadata()

        classifier = ImportClassifier(self._ontology, self._settings.main_namespaces)
        resolver = EntityAttributeResolver(
            self._ontology,
            classifier,
            self._settings.concept,
            include_deprecated=self._cs_settings.include_deprecated,
        )

        code_system.properties = list(STRUCTURAL_PROPERTIES)
        code_system.filters = list(STRUCTURAL_FILTERS)

        stats: Dict[str, Any] = {}
        for kind in EntityKind:
            entities = self.select_entities(kind)
            if not entities:
                continue

            reduction = reduce_hierarchy(
                entities,
                self._reasoner.ancestors_of,
                policy=self._cs_settings.equivalence_policy,
                prefer=lambda e: self._is_emitted(e, resolver),
            )
            concepts = self._emit(kind, entities, reduction, resolver)
            code_system.concepts.extend(concepts)

            kind_stats = reduction.stats()
            kind_stats["concepts"] = len(concepts)
            stats[kind.value] = kind_stats

        code_system.count = len(code_system.concepts)
        warnings = resolver.warnings

        logger.info(
            f"Assembled code system {code_system.url} with {code_system.count} concepts "
            f"({len(warnings)} warnings)"
        )
        return TransformResult(
            code_system=code_system,
            warnings=warnings,
            metadata={
                "reduction": stats,
                "import_mode": classifier.mode,
                "count": code_system.count,
            },
        )

    def _emit(
        self,
        kind: EntityKind,
        entities: Set[Entity],
        reduction: HierarchyReduction,
        resolver: EntityAttributeResolver,
    ) -> List[ConceptRecord]:
        concepts: List[ConceptRecord] = []
        skipped = 0

        for entity in sorted(entities):
            if not self._is_emitted(entity, resolver):
                skipped += 1
                continue
            equivalents = [
                e for e in reduction.equivalents_of(entity) if self._is_emitted(e, resolver)
            ]
            concepts.append(
                resolver.resolve(
                    entity,
                    parents=reduction.parents_of(entity),
                    equivalents=equivalents,
                )
            )

        logger.info(
            f"Emitted {len(concepts)} {kind.value} concepts"
            + (f" ({skipped} deprecated skipped)" if skipped else "")
        )
        return concepts

    def _is_emitted(self, entity: Entity, resolver: EntityAttributeResolver) -> bool:
        """Top entities always; deprecated ones only when included"""
        if entity.is_top or self._cs_settings.include_deprecated:
            return True
        return not resolver.is_deprecated(entity)

    # =========================================================================
    # Entity Selection
    # =========================================================================
    def select_entities(self, kind: EntityKind) -> Set[Entity]:
        """
        Entities of one kind that take part in the hierarchy

        Classes always include the top class. Properties are only extracted
        when requested, and the top property is only added when the
        ontology declares at least one property of that kind. The bottom
        entity and everything equivalent to it are always excluded.
        """
        if kind == EntityKind.OBJECT_PROPERTY and not self._cs_settings.extract_object_properties:
            return set()
        if kind == EntityKind.DATA_PROPERTY and not self._cs_settings.extract_data_properties:
            return set()

        entities = set(self._ontology.entities(kind))
        if kind != EntityKind.CLASS and not entities:
            return set()

        bottom = Entity.bottom(kind)
        entities.add(Entity.top(kind))
        entities.discard(bottom)
        entities -= set(self._reasoner.equivalents_of(bottom))
        return entities

    # =========================================================================
    # Metadata
    # =========================================================================
    def build_metadata(self) -> CodeSystemRecord:
        cs = self._cs_settings
        url = self.resolve_url()

        return CodeSystemRecord(
            url=url,
            name=self.resolve_name(),
            version=self.resolve_version(),
            status=cs.status,
            content=cs.content,
            hierarchy_meaning=cs.hierarchy_meaning or DEFAULT_HIERARCHY_MEANING,
            id=cs.id,
            language=cs.language,
            identifiers=cs.parsed_identifiers(),
            title=cs.title,
            experimental=cs.experimental,
            date=cs.date,
            publisher=cs.publisher or self._ontology_annotation(cs.publisher_properties),
            contacts=cs.parsed_contacts(),
            description=cs.description or self._ontology_annotation(cs.description_properties),
            purpose=cs.purpose,
            jurisdictions=cs.parsed_jurisdictions(),
            copyright=cs.copyright,
            value_set=cs.value_set or value_set_url(url),
            compositional=cs.compositional,
            version_needed=cs.version_needed,
        )

    def resolve_url(self) -> str:
        return resolve_url(self._ontology, self._cs_settings)

    def resolve_version(self) -> str:
        version = (
            self._cs_settings.version
            or self._ontology.version_iri
            or VERSION_NOT_AVAILABLE
        )

        pattern = self._cs_settings.compiled_date_regex()
        if pattern is not None:
            match = pattern.search(version)
            if match:
                version = "".join(match.group(g) or "" for g in DATE_REGEX_GROUPS)
            else:
                logger.debug(f"Date pattern did not match version '{version}'")
        return version

    def resolve_name(self) -> str:
        if self._cs_settings.name:
            return self._cs_settings.name

        label = self._ontology_annotation([self._cs_settings.name_property])
        if label is not None:
            return label

        iri = self._ontology.ontology_iri
        if not iri:
            raise MissingIdentifierError()
        return iri

    def _ontology_annotation(self, props: List[str]) -> Optional[str]:
        """First literal of the first listed property the ontology carries"""
        annotations = self._ontology.ontology_annotations
        for prop in props:
            values = annotations.get(prop, ())
            if values:
                return values[0].lexical
        return None


def resolve_url(ontology: OntologyClosureProtocol, settings: CodeSystemSettings) -> str:
    """
    Canonical URL: configured, else the ontology IRI (.owl -> .fhir on request)

    Raises:
        MissingIdentifierError: no URL configured and no ontology IRI
    """
    if settings.url:
        return settings.url

    iri = ontology.ontology_iri
    if not iri:
        raise MissingIdentifierError()
    if settings.use_fhir_extension and iri.endswith(".owl"):
        return iri[: -len(".owl")] + ".fhir"
    return iri


def value_set_url(url: str) -> str:
    """Implicit value set of a code system URL"""
    if "?" in url:
        return url + "&vs"
    return url + "?vs"
