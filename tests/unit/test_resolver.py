"""
Unit Tests for Entity Attribute Resolution
==========================================
Codes, displays, synonyms, deprecation, parents and root flags
"""
import pytest

from owlfhir.config import ConceptSettings
from owlfhir.core import (
    AnnotationValue,
    Entity,
    EntityKind,
    OWL_DEPRECATED,
    OWL_NOTHING,
    OWL_THING,
    OWL_TOP_DATA_PROPERTY,
    RDFS_LABEL,
    WarningKind,
)
from owlfhir.codesystem import EntityAttributeResolver
from owlfhir.ontology import ImportClassifier, InMemoryOntology

LOCAL = "http://example.org/local#"
IMP = "http://example.org/imported/"
CODE = "http://example.org/props#code"
ALT = "http://example.org/props#altLabel"
DEFINITION = "http://example.org/props#definition"


def E(iri: str, kind: EntityKind = EntityKind.CLASS) -> Entity:
    return Entity(iri, kind)


# =============================================================================
# Fixtures
# =============================================================================
@pytest.fixture
def ontology() -> InMemoryOntology:
    ont = InMemoryOntology("http://example.org/local", imports=["http://example.org/imported"])

    ont.add_entity(LOCAL + "Fruit", labels=["Banana", "Apple", "cherry"])
    ont.add_entity(LOCAL + "Unnamed")
    ont.add_entity(LOCAL + "Alt_Only")
    ont.annotate(LOCAL + "Alt_Only", ALT, "zeta", "alpha")
    ont.add_entity(LOCAL + "Excluded", labels=["Obsolete"])

    ont.add_entity(LOCAL + "Coded", labels=["Coded"])
    ont.annotate(LOCAL + "Coded", CODE, "C-001")
    ont.add_entity(IMP + "Bar", labels=["Bar"], in_root=False, in_imports=True)
    ont.annotate(IMP + "Bar", CODE, "B-001")
    ont.add_entity(IMP + "Baz", labels=["Baz"], in_root=False, in_imports=True)

    ont.add_entity(LOCAL + "Old", labels=["Old"])
    ont.set_deprecated(LOCAL + "Old")
    ont.add_entity(LOCAL + "Weird", labels=["Weird"])
    ont.annotate(LOCAL + "Weird", OWL_DEPRECATED, "yes")
    ont.add_entity(LOCAL + "Custom", labels=["Custom"])
    ont.annotate(LOCAL + "Custom", "http://example.org/props#deprecated", AnnotationValue.boolean(True))

    ont.add_entity(LOCAL + "Defined", labels=["Defined"])
    ont.annotate(LOCAL + "Defined", DEFINITION, "second", "first")
    return ont


@pytest.fixture
def classifier(ontology) -> ImportClassifier:
    return ImportClassifier(ontology)


@pytest.fixture
def resolver(ontology, classifier) -> EntityAttributeResolver:
    return EntityAttributeResolver(ontology, classifier, ConceptSettings())


def make_resolver(ontology, classifier, include_deprecated=False, **settings):
    return EntityAttributeResolver(
        ontology,
        classifier,
        ConceptSettings(**settings),
        include_deprecated=include_deprecated,
    )


# =============================================================================
# Test Code Resolution
# =============================================================================
class TestCodeResolution:

    def test_local_fragment(self, resolver):
        assert resolver.resolve_code(E(LOCAL + "Fruit")) == "Fruit"

    def test_imported_full_iri(self, resolver):
        assert resolver.resolve_code(E(IMP + "Baz")) == IMP + "Baz"

    def test_code_annotation_wins_regardless_of_import(self, ontology, classifier):
        resolver = make_resolver(ontology, classifier, code_property=CODE)

        assert resolver.resolve_code(E(LOCAL + "Coded")) == "C-001"
        assert resolver.resolve_code(E(IMP + "Bar")) == "B-001"
        assert resolver.resolve_code(E(LOCAL + "Fruit")) == "Fruit"

    def test_smallest_code_annotation(self, ontology, classifier):
        ontology.annotate(LOCAL + "Unnamed", CODE, "U-002", "U-001")
        resolver = make_resolver(ontology, classifier, code_property=CODE)

        assert resolver.resolve_code(E(LOCAL + "Unnamed")) == "U-001"

    def test_replacement_only_on_local_codes(self, ontology, classifier):
        resolver = make_resolver(
            ontology, classifier, code_replace_source="_", code_replace_target=":"
        )

        assert resolver.resolve_code(E(LOCAL + "Alt_Only")) == "Alt:Only"
        assert resolver.resolve_code(E(IMP + "Baz")) == IMP + "Baz"

    def test_parent_code_ignores_code_annotation(self, ontology, classifier):
        resolver = make_resolver(ontology, classifier, code_property=CODE)

        assert resolver.resolve_parents([E(LOCAL + "Coded")]) == ("Coded",)


# =============================================================================
# Test Display Resolution
# =============================================================================
class TestDisplayResolution:

    def test_lexicographically_smallest(self, resolver):
        display, synonyms = resolver.resolve_display(E(LOCAL + "Fruit"), "Fruit")

        assert display == "Apple"
        assert synonyms == ("Banana", "cherry")

    def test_synonym_promotion_is_deterministic(self, ontology, classifier):
        resolver = make_resolver(ontology, classifier, synonym_properties=[RDFS_LABEL, ALT])

        display, synonyms = resolver.resolve_display(E(LOCAL + "Alt_Only"), "Alt_Only")

        assert display == "alpha"
        assert synonyms == ("zeta",)

    def test_display_map_fallback(self, ontology, classifier):
        resolver = make_resolver(ontology, classifier, labels_to_exclude=["Obsolete"])

        display, synonyms = resolver.resolve_display(E(LOCAL + "Excluded"), "Excluded")

        assert display == "Obsolete"
        assert synonyms == ()
        assert resolver.display_map[LOCAL + "Excluded"] == "Obsolete"

    def test_code_fallback_warns(self, resolver):
        display, _ = resolver.resolve_display(E(LOCAL + "Unnamed"), "Unnamed")

        assert display == "Unnamed"
        assert [w.kind for w in resolver.warnings] == [WarningKind.UNRESOLVABLE_LABEL]
        assert resolver.warnings[0].iri == LOCAL + "Unnamed"

    def test_top_entity_displays(self, resolver):
        assert resolver.resolve_display(E(OWL_THING), "Thing")[0] == "Thing"
        top_dp = E(OWL_TOP_DATA_PROPERTY, EntityKind.DATA_PROPERTY)
        assert resolver.resolve_display(top_dp, "topDataProperty")[0] == "Top Data Property"
        assert resolver.warnings == []

    def test_definition(self, ontology, classifier):
        resolver = make_resolver(ontology, classifier, definition_property=DEFINITION)

        assert resolver.resolve_definition(E(LOCAL + "Defined")) == "first"
        assert resolver.resolve_definition(E(LOCAL + "Fruit")) is None

    def test_no_definition_property(self, resolver):
        assert resolver.resolve_definition(E(LOCAL + "Defined")) is None


# =============================================================================
# Test Deprecation
# =============================================================================
class TestDeprecation:

    def test_boolean_annotation(self, resolver):
        assert resolver.is_deprecated(E(LOCAL + "Old"))
        assert not resolver.is_deprecated(E(LOCAL + "Fruit"))

    def test_any_property_named_deprecated(self, resolver):
        assert resolver.is_deprecated(E(LOCAL + "Custom"))

    def test_non_boolean_warns_once(self, resolver):
        assert not resolver.is_deprecated(E(LOCAL + "Weird"))
        assert not resolver.is_deprecated(E(LOCAL + "Weird"))

        warnings = resolver.warnings
        assert len(warnings) == 1
        assert warnings[0].kind == WarningKind.ANNOTATION_TYPE_MISMATCH


# =============================================================================
# Test Parents and Root
# =============================================================================
class TestHierarchyAttributes:

    def test_parents_sorted_with_import_codes(self, resolver):
        codes = resolver.resolve_parents([E(LOCAL + "Fruit"), E(IMP + "Baz")])

        assert codes == ("Fruit", IMP + "Baz")

    def test_bottom_and_deprecated_parents_skipped(self, resolver):
        codes = resolver.resolve_parents(
            [E(OWL_NOTHING), E(LOCAL + "Old"), E(LOCAL + "Fruit")]
        )

        assert codes == ("Fruit",)

    def test_deprecated_parents_kept_when_included(self, ontology, classifier):
        resolver = make_resolver(ontology, classifier, include_deprecated=True)

        assert resolver.resolve_parents([E(LOCAL + "Old")]) == ("Old",)

    def test_root_when_only_parent_deprecated(self, resolver):
        record = resolver.resolve(E(LOCAL + "Fruit"), parents=[E(LOCAL + "Old")])

        assert record.root
        assert record.parents == ()

    def test_not_root_with_parent(self, resolver):
        record = resolver.resolve(E(LOCAL + "Unnamed"), parents=[E(LOCAL + "Fruit")])

        assert not record.root
        assert record.parents == ("Fruit",)

    def test_root_when_only_parent_is_top(self, resolver):
        record = resolver.resolve(E(LOCAL + "Fruit"), parents=[E(OWL_THING)])

        assert record.root
        assert record.parents == resolver.resolve_parents([E(OWL_THING)])
        assert len(record.parents) == 1

    def test_not_root_with_top_and_named_parent(self, resolver):
        record = resolver.resolve(
            E(LOCAL + "Unnamed"), parents=[E(OWL_THING), E(LOCAL + "Fruit")]
        )

        assert not record.root

    def test_root_when_equivalent_to_top(self, resolver):
        record = resolver.resolve(
            E(LOCAL + "Fruit"),
            parents=[E(LOCAL + "Unnamed")],
            equivalents=[E(OWL_THING)],
        )

        assert record.root

    def test_top_is_root(self, resolver):
        record = resolver.resolve(E(OWL_THING))

        assert record.root
        assert record.display == "Thing"


# =============================================================================
# Test Records
# =============================================================================
class TestConceptRecord:

    def test_full_record(self, ontology, classifier):
        resolver = make_resolver(ontology, classifier, definition_property=DEFINITION)

        record = resolver.resolve(E(LOCAL + "Defined"), parents=[E(IMP + "Baz")])

        assert record.code == "Defined"
        assert record.display == "Defined"
        assert record.synonyms == ()
        assert record.definition == "first"
        assert record.parents == (IMP + "Baz",)
        assert not record.imported
        assert not record.deprecated
        assert record.iri == LOCAL + "Defined"

    def test_imported_flag(self, resolver):
        assert resolver.resolve(E(IMP + "Baz")).imported

    def test_equivalents_listed_by_code(self, resolver):
        record = resolver.resolve(E(LOCAL + "Fruit"), equivalents=[E(IMP + "Baz")])

        assert record.equivalents == (IMP + "Baz",)
