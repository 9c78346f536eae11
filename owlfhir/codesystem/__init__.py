"""
owlfhir CodeSystem Module
=========================
Attribute resolution, CodeSystem assembly and FHIR JSON output

Usage:
    from owlfhir.codesystem import CodeSystemAssembler, write_json

    result = CodeSystemAssembler(ontology, reasoner, settings).assemble()
    write_json(result.code_system, "out.json")
"""

from owlfhir.codesystem.resolver import EntityAttributeResolver, build_display_map
from owlfhir.codesystem.assembler import (
    STRUCTURAL_FILTERS,
    STRUCTURAL_PROPERTIES,
    CodeSystemAssembler,
    resolve_url,
    value_set_url,
)
from owlfhir.codesystem.serializer import SYNONYM_USE, to_fhir_dict, write_json

__all__ = [
    "EntityAttributeResolver",
    "build_display_map",
    "STRUCTURAL_FILTERS",
    "STRUCTURAL_PROPERTIES",
    "CodeSystemAssembler",
    "resolve_url",
    "value_set_url",
    "SYNONYM_USE",
    "to_fhir_dict",
    "write_json",
]
