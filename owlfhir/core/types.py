"""
owlfhir Core Types
==================
Shared data types for the ontology to CodeSystem transform.

All maps and records built during a transform are derived from these types.
Entities are immutable and hashable so they can key the ancestor, parent and
annotation maps directly.

Version: 1.0.0
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# =============================================================================
# Well-known IRIs
# =============================================================================
OWL_NS = "http://www.w3.org/2002/07/owl#"
RDFS_NS = "http://www.w3.org/2000/01/rdf-schema#"
XSD_NS = "http://www.w3.org/2001/XMLSchema#"
DC_NS = "http://purl.org/dc/elements/1.1/"
OBO_NS = "http://purl.org/obo/owl/"
OBO_PURL = "http://purl.obolibrary.org/obo/"
OBO_IN_OWL_NS = "http://www.geneontology.org/formats/oboInOwl#"

OWL_THING = OWL_NS + "Thing"
OWL_NOTHING = OWL_NS + "Nothing"
OWL_TOP_OBJECT_PROPERTY = OWL_NS + "topObjectProperty"
OWL_BOTTOM_OBJECT_PROPERTY = OWL_NS + "bottomObjectProperty"
OWL_TOP_DATA_PROPERTY = OWL_NS + "topDataProperty"
OWL_BOTTOM_DATA_PROPERTY = OWL_NS + "bottomDataProperty"
OWL_DEPRECATED = OWL_NS + "deprecated"

RDFS_LABEL = RDFS_NS + "label"
RDFS_COMMENT = RDFS_NS + "comment"
DC_TITLE = DC_NS + "title"
DC_SUBJECT = DC_NS + "subject"
DC_PUBLISHER = DC_NS + "publisher"

XSD_BOOLEAN = XSD_NS + "boolean"
XSD_STRING = XSD_NS + "string"

IAO_DEFINITION = OBO_PURL + "IAO_0000115"


def local_name(iri: str) -> str:
    """
    Short form of an IRI: the fragment after '#', else the last path segment.

    >>> local_name("http://www.co-ode.org/ontologies/pizza/pizza.owl#Food")
    'Food'
    >>> local_name("http://purl.obolibrary.org/obo/DUO_0000001")
    'DUO_0000001'
    """
    if "#" in iri:
        fragment = iri.rsplit("#", 1)[1]
        if fragment:
            return fragment
    stripped = iri.rstrip("/")
    if "/" in stripped:
        return stripped.rsplit("/", 1)[1]
    if ":" in stripped:
        return stripped.rsplit(":", 1)[1]
    return stripped


# =============================================================================
# Enums
# =============================================================================
class EntityKind(str, Enum):
    """
    Kinds of ontology entities that become concepts

    The declaration order is the emission order of the assembler.
    """
    CLASS = "class"
    OBJECT_PROPERTY = "object_property"
    DATA_PROPERTY = "data_property"

    @property
    def top_iri(self) -> str:
        """IRI of the universal top entity of this kind"""
        return _TOP_IRIS[self]

    @property
    def bottom_iri(self) -> str:
        """IRI of the universal bottom entity of this kind"""
        return _BOTTOM_IRIS[self]

    @property
    def rank(self) -> int:
        return list(EntityKind).index(self)


_TOP_IRIS = {
    EntityKind.CLASS: OWL_THING,
    EntityKind.OBJECT_PROPERTY: OWL_TOP_OBJECT_PROPERTY,
    EntityKind.DATA_PROPERTY: OWL_TOP_DATA_PROPERTY,
}

_BOTTOM_IRIS = {
    EntityKind.CLASS: OWL_NOTHING,
    EntityKind.OBJECT_PROPERTY: OWL_BOTTOM_OBJECT_PROPERTY,
    EntityKind.DATA_PROPERTY: OWL_BOTTOM_DATA_PROPERTY,
}

# Fixed displays for the universal top entities
TOP_DISPLAYS = {
    OWL_THING: "Thing",
    OWL_TOP_OBJECT_PROPERTY: "Top Object Property",
    OWL_TOP_DATA_PROPERTY: "Top Data Property",
}


class ImportStatus(str, Enum):
    """Whether an entity belongs to the code system being produced"""
    LOCAL = "local"
    IMPORTED = "imported"


class EquivalencePolicy(str, Enum):
    """What the reduction engine does with mutually subsuming entities"""
    COLLAPSE = "collapse"
    FAIL = "fail"


class PropertyType(str, Enum):
    """FHIR CodeSystem property types used by the structural properties"""
    CODE = "code"
    BOOLEAN = "boolean"
    STRING = "string"


class WarningKind(str, Enum):
    """Per-entity anomalies that are recovered from"""
    ANNOTATION_TYPE_MISMATCH = "annotation-type-mismatch"
    UNRESOLVABLE_LABEL = "unresolvable-label"


# =============================================================================
# Ontology Data Classes
# =============================================================================
@dataclass(frozen=True, order=True)
class Entity:
    """
    Ontology entity identity

    Ordered by (kind rank, IRI) so sorting a set of entities gives the
    emission order.
    """
    sort_key: Tuple[int, str] = field(init=False, repr=False, compare=True)
    iri: str = field(compare=False)
    kind: EntityKind = field(default=EntityKind.CLASS, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "sort_key", (self.kind.rank, self.iri))

    @property
    def short_form(self) -> str:
        return local_name(self.iri)

    @property
    def is_top(self) -> bool:
        return self.iri == self.kind.top_iri

    @property
    def is_bottom(self) -> bool:
        return self.iri == self.kind.bottom_iri

    @classmethod
    def top(cls, kind: EntityKind) -> "Entity":
        return cls(kind.top_iri, kind)

    @classmethod
    def bottom(cls, kind: EntityKind) -> "Entity":
        return cls(kind.bottom_iri, kind)

    def __str__(self) -> str:
        return self.iri


@dataclass(frozen=True)
class AnnotationValue:
    """
    Literal annotation value

    `lexical` is the literal's lexical form; `datatype` is the datatype IRI
    (None for plain literals).
    """
    lexical: str
    datatype: Optional[str] = None
    language: Optional[str] = None

    @property
    def is_boolean(self) -> bool:
        return self.datatype == XSD_BOOLEAN

    def as_bool(self) -> bool:
        """Parse an xsd:boolean lexical form"""
        if not self.is_boolean:
            raise ValueError(f"Not a boolean literal: {self!r}")
        return self.lexical.strip().lower() in ("true", "1")

    @classmethod
    def boolean(cls, value: bool) -> "AnnotationValue":
        return cls("true" if value else "false", XSD_BOOLEAN)

    def __str__(self) -> str:
        return self.lexical


# entity IRI -> annotation property IRI -> ordered literal values
AnnotationMap = Dict[str, Dict[str, Tuple[AnnotationValue, ...]]]


# =============================================================================
# CodeSystem Data Classes
# =============================================================================
@dataclass(frozen=True)
class PropertyDefinition:
    """CodeSystem-level property declaration"""
    code: str
    type: PropertyType
    description: str


@dataclass(frozen=True)
class FilterDefinition:
    """CodeSystem-level filter declaration"""
    code: str
    operators: Tuple[str, ...]
    value: str
    description: Optional[str] = None


@dataclass
class ConceptRecord:
    """
    One concept of the resulting CodeSystem
    """
    code: str
    display: str
    synonyms: Tuple[str, ...] = ()
    imported: bool = False
    root: bool = False
    deprecated: bool = False
    parents: Tuple[str, ...] = ()

    # Optional content
    definition: Optional[str] = None
    equivalents: Tuple[str, ...] = ()   # codes collapsed into the same node

    # Provenance
    iri: Optional[str] = None
    kind: EntityKind = EntityKind.CLASS


@dataclass(frozen=True)
class Identifier:
    """FHIR Identifier (`system|value`)"""
    value: str
    system: Optional[str] = None


@dataclass(frozen=True)
class ContactDetail:
    """FHIR ContactDetail with a single telecom entry (`name|system|value`)"""
    name: str
    system: str
    value: str


@dataclass(frozen=True)
class Coding:
    """FHIR Coding (used for jurisdictions)"""
    code: str
    system: Optional[str] = None
    display: Optional[str] = None


@dataclass
class CodeSystemRecord:
    """
    Structured CodeSystem resource

    Handed to the serializer; the assembler never encodes it itself.
    """
    url: str
    name: str
    version: str
    status: str = "draft"
    content: str = "complete"
    hierarchy_meaning: str = "is-a"

    id: Optional[str] = None
    language: Optional[str] = None
    identifiers: List[Identifier] = field(default_factory=list)
    title: Optional[str] = None
    experimental: bool = False
    date: Optional[str] = None
    publisher: Optional[str] = None
    contacts: List[ContactDetail] = field(default_factory=list)
    description: Optional[str] = None
    purpose: Optional[str] = None
    jurisdictions: List[Coding] = field(default_factory=list)
    copyright: Optional[str] = None
    value_set: Optional[str] = None
    compositional: bool = False
    version_needed: bool = False

    properties: List[PropertyDefinition] = field(default_factory=list)
    filters: List[FilterDefinition] = field(default_factory=list)
    concepts: List[ConceptRecord] = field(default_factory=list)
    count: int = 0

    def get_concept(self, code: str) -> Optional[ConceptRecord]:
        """Look up a concept by code (None if absent)"""
        for concept in self.concepts:
            if concept.code == code:
                return concept
        return None


@dataclass(frozen=True)
class TransformWarning:
    """Recovered per-entity anomaly"""
    kind: WarningKind
    iri: str
    message: str


@dataclass
class TransformResult:
    """
    Output of one transform run
    """
    code_system: CodeSystemRecord
    warnings: List[TransformWarning] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
