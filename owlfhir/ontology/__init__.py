"""
owlfhir Ontology Module
=======================
Ontology closure, loading, reasoning and hierarchy reduction

Main features:
- In-memory ontology closure (root document plus imports)
- OBO / OWL loading with pronto and explicit IRI redirections
- Pluggable reasoners (told subsumption, hand-built maps)
- Transitive reduction of ancestor sets into direct parents
- Local / imported classification

Usage:
    from owlfhir.ontology import OntologyLoader, create_reasoner, reduce_hierarchy

    ontology = OntologyLoader().load(Path("pizza.owl"))
    reasoner = create_reasoner("structural", ontology)
    reduction = reduce_hierarchy(ontology.entities(EntityKind.CLASS), reasoner.ancestors_of)

Version: 1.0.0
"""

# Closure
from owlfhir.ontology.closure import InMemoryOntology

# Loader
from owlfhir.ontology.loader import (
    OntologyLoader,
    create_ontology_loader,
    expand_id,
    load_iri_mappings,
)

# Reasoners
from owlfhir.ontology.reasoner import (
    MappingReasoner,
    StructuralReasoner,
    available_reasoners,
    create_reasoner,
    register_reasoner,
)

# Hierarchy
from owlfhir.ontology.hierarchy import (
    HierarchyReduction,
    reduce_hierarchy,
    transitive_closure,
)

# Import classification
from owlfhir.ontology.namespaces import ImportClassifier, compute_local_iris

__all__ = [
    # Closure
    "InMemoryOntology",
    # Loader
    "OntologyLoader",
    "create_ontology_loader",
    "expand_id",
    "load_iri_mappings",
    # Reasoners
    "MappingReasoner",
    "StructuralReasoner",
    "available_reasoners",
    "create_reasoner",
    "register_reasoner",
    # Hierarchy
    "HierarchyReduction",
    "reduce_hierarchy",
    "transitive_closure",
    # Import classification
    "ImportClassifier",
    "compute_local_iris",
]
