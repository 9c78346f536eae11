"""
owlfhir Ontology Loader
=======================
Builds an InMemoryOntology closure from OBO / OWL documents with pronto.

The root document is parsed without following its imports; declared imports
are then walked with an explicit worklist so that every document in the
closure is known separately (root vs imported declarations) and import IRIs
can be redirected to local files through an explicit mapping table.

Term data mapping:
- id          -> entity IRI (OBO ids expanded to OBO PURLs)
- name        -> rdfs:label
- synonyms    -> oboInOwl:has{Exact,Broad,Narrow,Related}Synonym
- definition  -> IAO:0000115
- obsolete    -> owl:deprecated "true"^^xsd:boolean
- literal property values are kept as annotations

Version: 1.0.0
"""
from __future__ import annotations

import logging
import re
from collections import deque
from pathlib import Path
from typing import Deque, Dict, Iterable, Mapping, Optional, Set, Tuple, Union

import pronto

from owlfhir.core.errors import OntologyLoadError
from owlfhir.core.types import (
    AnnotationValue,
    EntityKind,
    IAO_DEFINITION,
    OBO_IN_OWL_NS,
    OBO_PURL,
    RDFS_COMMENT,
    RDFS_LABEL,
    XSD_NS,
)
from owlfhir.ontology.closure import InMemoryOntology

logger = logging.getLogger(__name__)

SYNONYM_PROPERTIES = {
    "EXACT": OBO_IN_OWL_NS + "hasExactSynonym",
    "BROAD": OBO_IN_OWL_NS + "hasBroadSynonym",
    "NARROW": OBO_IN_OWL_NS + "hasNarrowSynonym",
    "RELATED": OBO_IN_OWL_NS + "hasRelatedSynonym",
}

# Prefixes understood in property and datatype ids
KNOWN_PREFIXES = {
    "xsd": XSD_NS,
    "rdfs": "http://www.w3.org/2000/01/rdf-schema#",
    "owl": "http://www.w3.org/2002/07/owl#",
    "dc": "http://purl.org/dc/elements/1.1/",
    "dcterms": "http://purl.org/dc/terms/",
    "oboInOwl": OBO_IN_OWL_NS,
    "skos": "http://www.w3.org/2004/02/skos/core#",
}

_OBO_ID = re.compile(r"^(?P<prefix>[A-Za-z][\w.-]*):(?P<local>[^/\s]+)$")


# =============================================================================
# IRI Mappings
# =============================================================================
def load_iri_mappings(path: Union[str, Path]) -> Dict[str, str]:
    """
    Read an IRI redirection file

    One `iri,path` entry per line; lines starting with '#' are comments.
    Relative paths are resolved against the mapping file's directory.
    Entries whose target file does not exist are skipped with a warning.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"IRI mappings file not found: {path}")

    mappings: Dict[str, str] = {}
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            parts = line.split(",", 1)
            if len(parts) != 2:
                logger.warning(f"Ignoring malformed IRI mapping at {path}:{line_no}: {line}")
                continue

            iri, target = parts[0].strip(), Path(parts[1].strip())
            if not target.is_absolute():
                target = path.parent / target
            if not target.exists():
                logger.warning(f"Mapped file for {iri} not found: {target}")
                continue
            mappings[iri] = str(target)

    logger.info(f"Loaded {len(mappings)} IRI mappings from {path}")
    return mappings


# =============================================================================
# Id Expansion
# =============================================================================
def expand_id(identifier: str, default_prefix: Optional[str] = None) -> str:
    """
    Expand a compact id to an IRI

    >>> expand_id("HP:0000001")
    'http://purl.obolibrary.org/obo/HP_0000001'
    >>> expand_id("xsd:boolean")
    'http://www.w3.org/2001/XMLSchema#boolean'
    """
    if "://" in identifier:
        return identifier

    match = _OBO_ID.match(identifier)
    if match:
        prefix = match.group("prefix")
        if prefix in KNOWN_PREFIXES:
            return KNOWN_PREFIXES[prefix] + match.group("local")
        return f"{OBO_PURL}{prefix}_{match.group('local')}"

    if default_prefix:
        return f"{default_prefix}{identifier}"
    return identifier


# =============================================================================
# Loader
# =============================================================================
class OntologyLoader:
    """
    Loads an ontology document and its import closure

    Usage:
        loader = OntologyLoader(iri_mappings={"http://example.org/imp.owl": "imp.obo"})
        ontology = loader.load(Path("root.obo"))
    """

    def __init__(self, iri_mappings: Optional[Mapping[str, str]] = None):
        """
        Args:
            iri_mappings: Import IRI -> local file path redirections
        """
        self._iri_mappings: Dict[str, str] = dict(iri_mappings or {})

    def load(self, path: Union[str, Path]) -> InMemoryOntology:
        """
        Load the root document and every document it imports

        Raises:
            FileNotFoundError: the root document does not exist
            OntologyLoadError: a document could not be parsed
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Ontology file not found: {path}")

        logger.info(f"Loading ontology from file {path}")
        root = self._parse(str(path))
        meta = root.metadata

        ontology_iri, version_iri = self._identity(meta)
        imports = tuple(sorted(meta.imports))
        closure = InMemoryOntology(
            ontology_iri=ontology_iri,
            version_iri=version_iri,
            imports=imports,
            ontology_annotations=self._ontology_annotations(meta),
        )
        self._add_document(closure, root, in_root=True)

        # Walk the import closure
        visited: Set[str] = set()
        worklist: Deque[str] = deque(imports)
        while worklist:
            target = worklist.popleft()
            if target in visited:
                continue
            visited.add(target)

            source = self._iri_mappings.get(target, target)
            logger.info(f"Loading import {target}" + (f" from {source}" if source != target else ""))
            document = self._parse(source)
            self._add_document(closure, document, in_root=False)
            worklist.extend(sorted(document.metadata.imports))

        logger.info(
            f"Loaded {closure!r} with {len(visited)} imported documents"
        )
        return closure

    def _parse(self, source: str) -> pronto.Ontology:
        try:
            return pronto.Ontology(source, import_depth=0)
        except Exception as e:
            raise OntologyLoadError(source, e) from e

    # =========================================================================
    # Metadata
    # =========================================================================
    def _identity(self, meta: "pronto.Metadata") -> Tuple[Optional[str], Optional[str]]:
        name = meta.ontology
        ontology_iri = None
        if name:
            ontology_iri = name if "://" in name else f"{OBO_PURL}{name}.owl"

        version_iri = None
        if meta.data_version:
            version = meta.data_version
            if "://" in version:
                version_iri = version
            elif name and "://" not in name:
                version_iri = f"{OBO_PURL}{name}/releases/{version}/{name}.owl"
            else:
                version_iri = version
        return ontology_iri, version_iri

    def _ontology_annotations(self, meta: "pronto.Metadata") -> Dict[str, Tuple[AnnotationValue, ...]]:
        annotations: Dict[str, list] = {}
        for prop, value in self._literal_values(meta.annotations):
            annotations.setdefault(prop, []).append(value)
        for remark in sorted(meta.remarks):
            annotations.setdefault(RDFS_COMMENT, []).append(AnnotationValue(remark))
        return {prop: tuple(values) for prop, values in annotations.items()}

    def _literal_values(self, property_values: Iterable) -> Iterable[Tuple[str, AnnotationValue]]:
        for pv in property_values:
            if not isinstance(pv, pronto.LiteralPropertyValue):
                continue
            datatype = expand_id(pv.datatype) if pv.datatype else None
            yield expand_id(pv.property), AnnotationValue(pv.literal, datatype)

    # =========================================================================
    # Entities
    # =========================================================================
    def _add_document(self, closure: InMemoryOntology, document: pronto.Ontology, in_root: bool) -> None:
        name = document.metadata.ontology
        local_prefix = f"{OBO_PURL}{name}#" if name and "://" not in name else None

        num_terms = 0
        for term in document.terms():
            iri = expand_id(term.id)
            closure.add_entity(
                iri,
                EntityKind.CLASS,
                parents=[expand_id(p.id) for p in self._related(term, "superclasses")],
                equivalents=[expand_id(e.id) for e in self._related(term, "equivalent_to")],
                in_root=in_root,
                in_imports=not in_root,
            )
            self._annotate(closure, iri, term)
            num_terms += 1

        num_relationships = 0
        for rel in document.relationships():
            iri = expand_id(rel.id, local_prefix)
            closure.add_entity(
                iri,
                EntityKind.OBJECT_PROPERTY,
                parents=[expand_id(p.id, local_prefix) for p in self._related(rel, "superproperties")],
                in_root=in_root,
                in_imports=not in_root,
            )
            self._annotate(closure, iri, rel)
            num_relationships += 1

        logger.debug(
            f"Added {num_terms} terms and {num_relationships} relationships "
            f"from {'root' if in_root else 'imported'} document {name}"
        )

    def _related(self, entity, relation: str) -> list:
        """Direct super-entities or equivalents, skipping undeclared references"""
        try:
            if relation == "superclasses":
                related = entity.superclasses(distance=1, with_self=False)
            elif relation == "superproperties":
                related = entity.superproperties(distance=1, with_self=False)
            else:
                related = entity.equivalent_to
            return sorted(related, key=lambda e: e.id)
        except KeyError as e:
            logger.warning(f"{entity.id} references an entity outside its document: {e}")
            return []

    def _annotate(self, closure: InMemoryOntology, iri: str, entity) -> None:
        if entity.name:
            closure.annotate(iri, RDFS_LABEL, entity.name)
        if entity.definition:
            closure.annotate(iri, IAO_DEFINITION, str(entity.definition))
        for synonym in sorted(entity.synonyms, key=lambda s: (s.scope, s.description)):
            prop = SYNONYM_PROPERTIES.get(synonym.scope, SYNONYM_PROPERTIES["RELATED"])
            closure.annotate(iri, prop, synonym.description)
        for prop, value in self._literal_values(entity.annotations):
            closure.annotate(iri, prop, value)
        if entity.obsolete:
            closure.set_deprecated(iri, True)


# =============================================================================
# Factory Function
# =============================================================================
def create_ontology_loader(
    iri_mappings: Optional[Mapping[str, str]] = None,
    iri_mappings_file: Optional[Union[str, Path]] = None,
) -> OntologyLoader:
    """
    Factory function: build a loader from inline and file-based redirections

    Inline mappings take precedence over the file's entries.
    """
    mappings: Dict[str, str] = {}
    if iri_mappings_file:
        mappings.update(load_iri_mappings(iri_mappings_file))
    mappings.update(iri_mappings or {})
    return OntologyLoader(mappings)
