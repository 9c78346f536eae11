"""
owlfhir Core Module
===================
Shared types, error taxonomy and protocol definitions

All other modules depend on this one for their interface contracts.

Usage:
    from owlfhir.core import Entity, EntityKind, ConceptRecord
    from owlfhir.core import ReasonerProtocol, OntologyClosureProtocol
"""

# Core Types
from owlfhir.core.types import (
    # IRIs
    OWL_THING,
    OWL_NOTHING,
    OWL_TOP_OBJECT_PROPERTY,
    OWL_TOP_DATA_PROPERTY,
    OWL_DEPRECATED,
    RDFS_LABEL,
    RDFS_COMMENT,
    DC_PUBLISHER,
    DC_SUBJECT,
    XSD_BOOLEAN,
    TOP_DISPLAYS,
    local_name,
    # Enums
    EntityKind,
    ImportStatus,
    EquivalencePolicy,
    PropertyType,
    WarningKind,
    # Data Classes
    Entity,
    AnnotationValue,
    AnnotationMap,
    PropertyDefinition,
    FilterDefinition,
    ConceptRecord,
    Identifier,
    ContactDetail,
    Coding,
    CodeSystemRecord,
    TransformWarning,
    TransformResult,
)

# Errors
from owlfhir.core.errors import (
    TransformError,
    MissingIdentifierError,
    InvalidConfigurationError,
    StructuralInvariantViolation,
    EquivalenceCycleError,
    OntologyLoadError,
)

# Protocols
from owlfhir.core.protocols import (
    ReasonerProtocol,
    OntologyClosureProtocol,
)

__all__ = [
    # IRIs
    "OWL_THING",
    "OWL_NOTHING",
    "OWL_TOP_OBJECT_PROPERTY",
    "OWL_TOP_DATA_PROPERTY",
    "OWL_DEPRECATED",
    "RDFS_LABEL",
    "RDFS_COMMENT",
    "DC_PUBLISHER",
    "DC_SUBJECT",
    "XSD_BOOLEAN",
    "TOP_DISPLAYS",
    "local_name",
    # Enums
    "EntityKind",
    "ImportStatus",
    "EquivalencePolicy",
    "PropertyType",
    "WarningKind",
    # Data Classes
    "Entity",
    "AnnotationValue",
    "AnnotationMap",
    "PropertyDefinition",
    "FilterDefinition",
    "ConceptRecord",
    "Identifier",
    "ContactDetail",
    "Coding",
    "CodeSystemRecord",
    "TransformWarning",
    "TransformResult",
    # Errors
    "TransformError",
    "MissingIdentifierError",
    "InvalidConfigurationError",
    "StructuralInvariantViolation",
    "EquivalenceCycleError",
    "OntologyLoadError",
    # Protocols
    "ReasonerProtocol",
    "OntologyClosureProtocol",
]
