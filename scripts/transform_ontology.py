#!/usr/bin/env python3
"""
owlfhir Ontology Transform Script
=================================
Main entry point for converting an ontology into a FHIR CodeSystem.

Script: scripts/transform_ontology.py

Purpose:
    Command-line interface for the ontology to CodeSystem transform.
    Handles configuration loading, command-line overrides, ontology loading,
    classification and JSON output.

Usage:
    python scripts/transform_ontology.py -i pizza.owl -o pizza.json
    python scripts/transform_ontology.py --config configs/transform.yaml
    python scripts/transform_ontology.py -i hp.obo -o hp.json \\
        --namespace http://purl.obolibrary.org/obo/HP_ --include-deprecated

Dependencies:
    - argparse: CLI argument parsing
    - owlfhir.config.settings: TransformSettings, YAML loading
    - owlfhir.pipeline: TransformPipeline

Input:
    - Configuration file (YAML) and/or CLI arguments
    - Ontology document (OBO / OWL) and its imports

Output:
    - FHIR CodeSystem JSON file
    - Optionally the effective configuration as YAML

Version: 1.0.0
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from owlfhir.config.settings import (
    TransformSettings,
    build_settings,
    read_settings_file,
    save_settings,
)
from owlfhir.core.errors import TransformError
from owlfhir.pipeline import TransformPipeline

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(),
    ],
)
logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description="Transform an OWL / OBO ontology into a FHIR CodeSystem",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Configuration file
    parser.add_argument(
        "--config", "-c",
        type=str,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--save-config",
        type=str,
        default=None,
        help="Write the effective configuration to this YAML file",
    )

    # Paths
    parser.add_argument(
        "--input", "-i",
        type=str,
        default=None,
        help="Ontology file",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="CodeSystem JSON file",
    )
    parser.add_argument(
        "--iri-mappings",
        type=str,
        default=None,
        help="File of iri,path lines redirecting imports to local files",
    )

    # Classification
    parser.add_argument(
        "--namespace", "-n",
        action="append",
        default=None,
        help="IRI prefix of local entities (repeatable)",
    )
    parser.add_argument(
        "--reasoner",
        type=str,
        default=None,
        help="Reasoner name",
    )
    parser.add_argument(
        "--equivalence-policy",
        type=str,
        choices=["collapse", "fail"],
        default=None,
        help="Handling of equivalent entities",
    )
    parser.add_argument(
        "--include-deprecated",
        action="store_true",
        help="Keep deprecated entities and parents",
    )
    parser.add_argument(
        "--extract-object-properties",
        action="store_true",
        help="Emit object properties as concepts",
    )
    parser.add_argument(
        "--extract-data-properties",
        action="store_true",
        help="Emit data properties as concepts",
    )

    # Concepts
    parser.add_argument(
        "--code-property",
        type=str,
        default=None,
        help="Annotation property holding concept codes",
    )
    parser.add_argument(
        "--display-property",
        type=str,
        default=None,
        help="Annotation property holding preferred terms",
    )
    parser.add_argument(
        "--synonym-properties",
        type=str,
        default=None,
        help="Comma-separated annotation properties holding synonyms",
    )
    parser.add_argument(
        "--labels-to-exclude",
        type=str,
        default=None,
        help="Comma-separated labels never used as display or synonym",
    )

    # Metadata
    parser.add_argument("--url", type=str, default=None, help="CodeSystem URL")
    parser.add_argument("--name", type=str, default=None, help="CodeSystem name")
    parser.add_argument("--version", type=str, default=None, help="CodeSystem version")
    parser.add_argument("--status", type=str, default=None, help="Publication status")
    parser.add_argument(
        "--date-regex",
        type=str,
        default=None,
        help="Pattern with year, month and day groups applied to the version",
    )
    parser.add_argument(
        "--use-fhir-extension",
        action="store_true",
        help="Replace a trailing .owl with .fhir in the default URL",
    )

    # Misc
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (verbose logging)",
    )

    return parser.parse_args(argv)


def _set_if(section: Dict[str, Any], key: str, value: Any) -> None:
    if value is not None and value is not False:
        section[key] = value


def load_config(args: argparse.Namespace) -> TransformSettings:
    """Load configuration from file and command-line arguments"""
    data: Dict[str, Any] = {}
    if args.config:
        data = read_settings_file(args.config)
        logger.info(f"Loaded configuration from {args.config}")

    concept = dict(data.get("concept") or {})
    code_system = dict(data.get("code_system") or {})

    # CLI overrides
    _set_if(data, "input", args.input)
    _set_if(data, "output", args.output)
    _set_if(data, "iri_mappings_file", args.iri_mappings)
    _set_if(data, "main_namespaces", args.namespace)

    _set_if(concept, "code_property", args.code_property)
    _set_if(concept, "display_property", args.display_property)
    _set_if(concept, "synonym_properties", args.synonym_properties)
    _set_if(concept, "labels_to_exclude", args.labels_to_exclude)

    _set_if(code_system, "reasoner", args.reasoner)
    _set_if(code_system, "equivalence_policy", args.equivalence_policy)
    _set_if(code_system, "include_deprecated", args.include_deprecated)
    _set_if(code_system, "extract_object_properties", args.extract_object_properties)
    _set_if(code_system, "extract_data_properties", args.extract_data_properties)
    _set_if(code_system, "url", args.url)
    _set_if(code_system, "name", args.name)
    _set_if(code_system, "version", args.version)
    _set_if(code_system, "status", args.status)
    _set_if(code_system, "date_regex", args.date_regex)
    _set_if(code_system, "use_fhir_extension", args.use_fhir_extension)

    data["concept"] = concept
    data["code_system"] = code_system
    return build_settings(data)


# =============================================================================
# Entry Point
# =============================================================================
def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = parse_args(argv)

    # Set debug logging
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        settings = load_config(args)
    except (TransformError, FileNotFoundError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    if args.save_config:
        save_settings(settings, args.save_config)

    if not settings.input or not settings.output:
        logger.error("Both an input ontology and an output file are required")
        return 2

    try:
        result = TransformPipeline(settings).run()
    except KeyboardInterrupt:
        logger.info("Transform interrupted by user")
        return 1
    except Exception as e:
        logger.exception(f"Transform failed: {e}")
        return 1

    for warning in result.warnings:
        logger.debug(f"[{warning.kind.value}] {warning.message}")
    logger.info("Done!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
