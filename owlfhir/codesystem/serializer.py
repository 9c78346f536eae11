"""
owlfhir FHIR Serializer
=======================
Renders a CodeSystemRecord as a FHIR R4 CodeSystem JSON resource.

Version: 1.0.0
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from owlfhir.core.types import CodeSystemRecord, ConceptRecord, PropertyType

logger = logging.getLogger(__name__)

SNOMED_SYSTEM = "http://snomed.info/sct"

# Designation use for synonyms
SYNONYM_USE = {
    "system": SNOMED_SYSTEM,
    "code": "900000000000013009",
    "display": "Synonym (core metadata concept)",
}


def _concept_to_dict(concept: ConceptRecord) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "code": concept.code,
        "display": concept.display,
    }
    if concept.definition:
        entry["definition"] = concept.definition

    if concept.synonyms:
        entry["designation"] = [
            {"use": dict(SYNONYM_USE), "value": synonym} for synonym in concept.synonyms
        ]

    properties: List[Dict[str, Any]] = [
        {"code": "parent", "valueCode": parent} for parent in concept.parents
    ]
    properties.append({"code": "imported", "valueBoolean": concept.imported})
    properties.append({"code": "root", "valueBoolean": concept.root})
    properties.append({"code": "deprecated", "valueBoolean": concept.deprecated})
    entry["property"] = properties

    return entry


def to_fhir_dict(code_system: CodeSystemRecord) -> Dict[str, Any]:
    """
    FHIR R4 CodeSystem resource as a JSON-compatible dict

    Optional metadata is only emitted when set.
    """
    cs = code_system
    resource: Dict[str, Any] = {"resourceType": "CodeSystem"}

    if cs.id:
        resource["id"] = cs.id
    if cs.language:
        resource["language"] = cs.language

    resource["url"] = cs.url
    if cs.identifiers:
        resource["identifier"] = [
            {k: v for k, v in (("system", i.system), ("value", i.value)) if v}
            for i in cs.identifiers
        ]
    resource["version"] = cs.version
    resource["name"] = cs.name
    if cs.title:
        resource["title"] = cs.title
    resource["status"] = cs.status
    resource["experimental"] = cs.experimental
    if cs.date:
        resource["date"] = cs.date
    if cs.publisher:
        resource["publisher"] = cs.publisher
    if cs.contacts:
        resource["contact"] = [
            {"name": c.name, "telecom": [{"system": c.system, "value": c.value}]}
            for c in cs.contacts
        ]
    if cs.description:
        resource["description"] = cs.description
    if cs.jurisdictions:
        resource["jurisdiction"] = [
            {
                "coding": [
                    {k: v for k, v in (("system", j.system), ("code", j.code), ("display", j.display)) if v}
                ]
            }
            for j in cs.jurisdictions
        ]
    if cs.purpose:
        resource["purpose"] = cs.purpose
    if cs.copyright:
        resource["copyright"] = cs.copyright

    resource["valueSet"] = cs.value_set
    resource["hierarchyMeaning"] = cs.hierarchy_meaning
    resource["compositional"] = cs.compositional
    resource["versionNeeded"] = cs.version_needed
    resource["content"] = cs.content
    resource["count"] = cs.count

    resource["filter"] = []
    for f in cs.filters:
        entry: Dict[str, Any] = {"code": f.code}
        if f.description:
            entry["description"] = f.description
        entry["operator"] = list(f.operators)
        entry["value"] = f.value
        resource["filter"].append(entry)

    resource["property"] = [
        {
            "code": p.code,
            "description": p.description,
            "type": p.type.value if isinstance(p.type, PropertyType) else p.type,
        }
        for p in cs.properties
    ]

    resource["concept"] = [_concept_to_dict(c) for c in cs.concepts]
    return resource


def write_json(code_system: CodeSystemRecord, path: Union[str, Path]) -> Path:
    """Write the CodeSystem resource as pretty-printed JSON"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(to_fhir_dict(code_system), f, indent=2, ensure_ascii=False)

    logger.info(f"Code system written to {path} ({code_system.count} concepts)")
    return path
