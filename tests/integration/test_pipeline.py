"""
Integration Tests: OBO Fixture -> FHIR CodeSystem
=================================================
End-to-end tests that verify:
  1. Loading an OBO document and its redirected import with pronto
  2. Structural classification, reduction and attribute resolution
  3. JSON output through the pipeline and the command line script

The fixture ontology (tests/fixtures/mini_onto.obo) imports shared.obo
through tests/fixtures/iri_mappings.txt.

Module: tests/integration/test_pipeline.py
"""
from __future__ import annotations

import importlib.util
import json
from pathlib import Path

import pytest

from owlfhir.config import build_settings, save_settings
from owlfhir.core import EntityKind, RDFS_LABEL
from owlfhir.ontology import OntologyLoader, load_iri_mappings
from owlfhir.pipeline import TransformPipeline, run_transform

pytestmark = pytest.mark.integration

FIXTURES = Path(__file__).parent.parent / "fixtures"
PROJECT_ROOT = Path(__file__).parent.parent.parent

OBO = "http://purl.obolibrary.org/obo/"
THING = "http://www.w3.org/2002/07/owl#Thing"
EXACT_SYNONYM = "http://www.geneontology.org/formats/oboInOwl#hasExactSynonym"


# =============================================================================
# Fixtures
# =============================================================================
@pytest.fixture
def settings_data() -> dict:
    return {
        "input": str(FIXTURES / "mini_onto.obo"),
        "iri_mappings_file": str(FIXTURES / "iri_mappings.txt"),
    }


@pytest.fixture
def ontology():
    loader = OntologyLoader(load_iri_mappings(FIXTURES / "iri_mappings.txt"))
    return loader.load(FIXTURES / "mini_onto.obo")


def _load_script():
    path = PROJECT_ROOT / "scripts" / "transform_ontology.py"
    spec = importlib.util.spec_from_file_location("transform_ontology", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


# =============================================================================
# Test Loader
# =============================================================================
class TestLoader:

    def test_identity(self, ontology):
        assert ontology.ontology_iri == OBO + "mini.owl"
        assert ontology.version_iri == OBO + "mini/releases/2023-01-15/mini.owl"
        assert ontology.imports == frozenset({"http://example.org/ontologies/shared.obo"})

    def test_documents(self, ontology):
        assert OBO + "MINI_0000001" in ontology.root_document_iris
        assert OBO + "SHARED_0000001" in ontology.imported_document_iris
        assert OBO + "SHARED_0000001" not in ontology.root_document_iris

    def test_term_annotations(self, ontology):
        fruit = OBO + "MINI_0000002"

        assert [v.lexical for v in ontology.annotation_values(fruit, RDFS_LABEL)] == ["fruit"]
        assert [v.lexical for v in ontology.annotation_values(fruit, EXACT_SYNONYM)] == ["fruit item"]

    def test_obsolete_is_deprecated(self, ontology):
        values = ontology.annotation_values(
            OBO + "MINI_0000004", "http://www.w3.org/2002/07/owl#deprecated"
        )

        assert len(values) == 1
        assert values[0].is_boolean
        assert values[0].as_bool()

    def test_asserted_parents(self, ontology):
        apple = ontology.get_entity(OBO + "MINI_0000003", EntityKind.CLASS)

        assert {p.iri for p in ontology.asserted_parents(apple)} == {OBO + "MINI_0000002"}

    def test_remark_is_comment(self, ontology):
        comments = ontology.ontology_annotations["http://www.w3.org/2000/01/rdf-schema#comment"]

        assert comments[0].lexical.startswith("Miniature fruit ontology")


# =============================================================================
# Test Pipeline
# =============================================================================
class TestPipeline:

    def test_concepts(self, settings_data):
        result = run_transform(build_settings(settings_data))
        cs = result.code_system

        assert [c.code for c in cs.concepts] == [
            "MINI_0000001",
            "MINI_0000002",
            "MINI_0000003",
            "MINI_0000005",
            OBO + "SHARED_0000001",
            THING,
        ]
        assert cs.count == 6
        assert result.metadata["import_mode"] == "closure"

    def test_hierarchy_and_flags(self, settings_data):
        cs = run_transform(build_settings(settings_data)).code_system

        food = cs.get_concept("MINI_0000001")
        assert food.display == "food"
        assert food.parents == (THING,)
        assert food.root
        assert not food.imported

        apple = cs.get_concept("MINI_0000003")
        assert apple.parents == ("MINI_0000002",)
        assert not apple.root

        heirloom = cs.get_concept("MINI_0000005")
        assert heirloom.parents == ()
        assert heirloom.root

        shared = cs.get_concept(OBO + "SHARED_0000001")
        assert shared.imported
        assert shared.display == "shared thing"

        thing = cs.get_concept(THING)
        assert thing.imported
        assert thing.root
        assert thing.display == "Thing"

    def test_metadata(self, settings_data):
        settings_data["code_system"] = {
            "date_regex": r"(?<year>\d{4})-(?<month>\d{2})-(?<day>\d{2})",
            "use_fhir_extension": True,
        }

        cs = run_transform(build_settings(settings_data)).code_system

        assert cs.url == OBO + "mini.fhir"
        assert cs.value_set == OBO + "mini.fhir?vs"
        assert cs.version == "20230115"
        assert cs.name == OBO + "mini.owl"
        assert cs.description.startswith("Miniature fruit ontology")

    def test_synonyms_and_definitions(self, settings_data):
        settings_data["concept"] = {
            "synonym_properties": [EXACT_SYNONYM],
            "definition_property": OBO + "IAO_0000115",
        }

        cs = run_transform(build_settings(settings_data)).code_system

        assert cs.get_concept("MINI_0000002").synonyms == ("fruit item",)
        assert cs.get_concept("MINI_0000001").definition == "Anything that can be eaten."

    def test_include_deprecated(self, settings_data):
        settings_data["code_system"] = {"include_deprecated": True}

        cs = run_transform(build_settings(settings_data)).code_system

        assert cs.get_concept("MINI_0000004").deprecated
        assert cs.get_concept("MINI_0000005").parents == ("MINI_0000004",)

    def test_namespace_mode(self, settings_data):
        settings_data["main_namespaces"] = [OBO + "MINI_"]

        result = run_transform(build_settings(settings_data))

        assert result.metadata["import_mode"] == "namespace"
        assert result.code_system.get_concept("MINI_0000001").parents == (THING,)

    def test_writes_json(self, settings_data, tmp_path):
        output = tmp_path / "mini.json"

        result = TransformPipeline(build_settings(settings_data)).run(output)

        assert result.metadata["output"] == str(output)
        with open(output, encoding="utf-8") as f:
            resource = json.load(f)
        assert resource["resourceType"] == "CodeSystem"
        assert resource["count"] == 6
        assert [p["code"] for p in resource["property"]] == ["parent", "imported", "root", "deprecated"]


# =============================================================================
# Test Command Line
# =============================================================================
class TestScript:

    @pytest.fixture
    def script(self):
        return _load_script()

    def test_main(self, script, tmp_path):
        output = tmp_path / "mini.json"

        code = script.main([
            "-i", str(FIXTURES / "mini_onto.obo"),
            "-o", str(output),
            "--iri-mappings", str(FIXTURES / "iri_mappings.txt"),
            "--status", "active",
        ])

        assert code == 0
        with open(output, encoding="utf-8") as f:
            resource = json.load(f)
        assert resource["status"] == "active"

    def test_config_file(self, script, settings_data, tmp_path):
        config = tmp_path / "transform.yaml"
        settings_data["output"] = str(tmp_path / "from_config.json")
        save_settings(build_settings(settings_data), config)

        assert script.main(["--config", str(config)]) == 0
        assert (tmp_path / "from_config.json").exists()

    def test_invalid_option(self, script):
        assert script.main(["-i", "x.obo", "-o", "x.json", "--status", "final"]) == 2

    def test_missing_output(self, script):
        assert script.main(["-i", str(FIXTURES / "mini_onto.obo")]) == 2
