"""
Unit Tests for FHIR JSON Output
===============================
"""
import json

import pytest

from owlfhir.core import (
    CodeSystemRecord,
    Coding,
    ConceptRecord,
    ContactDetail,
    Identifier,
)
from owlfhir.codesystem import (
    STRUCTURAL_FILTERS,
    STRUCTURAL_PROPERTIES,
    SYNONYM_USE,
    to_fhir_dict,
    write_json,
)


# =============================================================================
# Fixtures
# =============================================================================
@pytest.fixture
def code_system() -> CodeSystemRecord:
    cs = CodeSystemRecord(
        url="http://example.org/pizza.fhir",
        name="pizza",
        version="20210223",
        value_set="http://example.org/pizza.fhir?vs",
        properties=list(STRUCTURAL_PROPERTIES),
        filters=list(STRUCTURAL_FILTERS),
    )
    cs.concepts = [
        ConceptRecord(
            code="Margherita",
            display="Margherita",
            synonyms=("Pizza Margherita",),
            parents=("NamedPizza",),
            definition="Tomato and mozzarella.",
        ),
        ConceptRecord(
            code="http://www.w3.org/2002/07/owl#Thing",
            display="Thing",
            imported=True,
            root=True,
        ),
    ]
    cs.count = len(cs.concepts)
    return cs


# =============================================================================
# Test Resource Shape
# =============================================================================
class TestToFhirDict:

    def test_required_fields(self, code_system):
        resource = to_fhir_dict(code_system)

        assert resource["resourceType"] == "CodeSystem"
        assert resource["url"] == "http://example.org/pizza.fhir"
        assert resource["version"] == "20210223"
        assert resource["status"] == "draft"
        assert resource["content"] == "complete"
        assert resource["hierarchyMeaning"] == "is-a"
        assert resource["valueSet"] == "http://example.org/pizza.fhir?vs"
        assert resource["count"] == 2

    def test_unset_optional_fields_omitted(self, code_system):
        resource = to_fhir_dict(code_system)

        for key in ("id", "title", "publisher", "description", "contact", "identifier"):
            assert key not in resource

    def test_optional_fields(self, code_system):
        code_system.id = "pizza"
        code_system.publisher = "Example Org"
        code_system.identifiers = [Identifier(value="urn:oid:1.2.3")]
        code_system.contacts = [ContactDetail("Jane", "email", "jane@example.org")]
        code_system.jurisdictions = [Coding(code="US", system="urn:iso:std:iso:3166")]

        resource = to_fhir_dict(code_system)

        assert resource["id"] == "pizza"
        assert resource["publisher"] == "Example Org"
        assert resource["identifier"] == [{"value": "urn:oid:1.2.3"}]
        assert resource["contact"] == [
            {"name": "Jane", "telecom": [{"system": "email", "value": "jane@example.org"}]}
        ]
        assert resource["jurisdiction"] == [
            {"coding": [{"system": "urn:iso:std:iso:3166", "code": "US"}]}
        ]

    def test_properties_and_filters(self, code_system):
        resource = to_fhir_dict(code_system)

        assert resource["property"][0] == {
            "code": "parent",
            "description": "Parent codes.",
            "type": "code",
        }
        assert [p["type"] for p in resource["property"][1:]] == ["boolean"] * 3
        assert resource["filter"][0] == {
            "code": "parent",
            "description": "Concepts with the given parent.",
            "operator": ["="],
            "value": "A parent code.",
        }
        assert resource["filter"][1] == {
            "code": "imported",
            "operator": ["="],
            "value": "True or false.",
        }

    def test_concept(self, code_system):
        concept = to_fhir_dict(code_system)["concept"][0]

        assert concept["code"] == "Margherita"
        assert concept["definition"] == "Tomato and mozzarella."
        assert concept["designation"] == [{"use": SYNONYM_USE, "value": "Pizza Margherita"}]
        assert concept["property"] == [
            {"code": "parent", "valueCode": "NamedPizza"},
            {"code": "imported", "valueBoolean": False},
            {"code": "root", "valueBoolean": False},
            {"code": "deprecated", "valueBoolean": False},
        ]

    def test_concept_without_synonyms(self, code_system):
        concept = to_fhir_dict(code_system)["concept"][1]

        assert "designation" not in concept
        assert "definition" not in concept
        assert concept["property"][0] == {"code": "imported", "valueBoolean": True}


# =============================================================================
# Test File Output
# =============================================================================
class TestWriteJson:

    def test_write(self, code_system, tmp_path):
        path = write_json(code_system, tmp_path / "out" / "pizza.json")

        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        assert data == to_fhir_dict(code_system)
        assert path.read_text(encoding="utf-8").startswith('{\n  "resourceType"')
