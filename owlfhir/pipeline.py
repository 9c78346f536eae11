"""
# ==============================================================================
# Module: owlfhir/pipeline.py
# ==============================================================================
# Purpose: End-to-end ontology to FHIR CodeSystem transform
#
# Dependencies:
#   - External: pronto (through the loader), networkx (through the reasoner)
#   - Internal: owlfhir.config, owlfhir.ontology, owlfhir.codesystem
#
# Input:
#   - TransformSettings (input file, output file, overrides)
#
# Output:
#   - TransformResult; the CodeSystem JSON file when an output is configured
#
# Design Notes:
#   - Settings are validated before any ontology is read
#   - The ontology closure and the reasoner can be injected, so the transform
#     runs on hand-built closures without touching the file system
#   - Any structural error aborts the run before anything is written
#
# Usage:
#   from owlfhir.pipeline import TransformPipeline
#
#   pipeline = TransformPipeline(load_settings("transform.yaml"))
#   result = pipeline.run()
# ==============================================================================
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional, Union

from owlfhir.codesystem.assembler import CodeSystemAssembler, resolve_url
from owlfhir.codesystem.serializer import write_json
from owlfhir.config.settings import TransformSettings
from owlfhir.core.errors import InvalidConfigurationError
from owlfhir.core.protocols import OntologyClosureProtocol, ReasonerProtocol
from owlfhir.core.types import TransformResult
from owlfhir.ontology.loader import create_ontology_loader
from owlfhir.ontology.reasoner import create_reasoner

logger = logging.getLogger(__name__)


class TransformPipeline:
    """
    Load -> classify -> assemble -> serialize
    """

    def __init__(
        self,
        settings: TransformSettings,
        ontology: Optional[OntologyClosureProtocol] = None,
        reasoner: Optional[ReasonerProtocol] = None,
    ):
        self.settings = settings
        self._ontology = ontology
        self._reasoner = reasoner

    def load_ontology(self) -> OntologyClosureProtocol:
        if self._ontology is not None:
            return self._ontology

        if not self.settings.input:
            raise InvalidConfigurationError("No input ontology was configured")

        loader = create_ontology_loader(
            iri_mappings=self.settings.iri_mappings,
            iri_mappings_file=self.settings.iri_mappings_file,
        )
        self._ontology = loader.load(Path(self.settings.input))
        return self._ontology

    def build_reasoner(self, ontology: OntologyClosureProtocol) -> ReasonerProtocol:
        if self._reasoner is None:
            name = self.settings.code_system.reasoner
            logger.info(f"Classifying ontology with {name}")
            self._reasoner = create_reasoner(name, ontology)
        return self._reasoner

    def run(self, output: Optional[Union[str, Path]] = None) -> TransformResult:
        """
        Execute the full transform

        Args:
            output: Override of the configured output file (None keeps it;
                nothing is written when neither is set)

        Returns:
            TransformResult
        """
        start_time = time.time()

        ontology = self.load_ontology()
        # fails on a missing identifier before any classification work
        url = resolve_url(ontology, self.settings.code_system)
        logger.info(f"Building code system {url}")
        reasoner = self.build_reasoner(ontology)

        assembler = CodeSystemAssembler(ontology, reasoner, self.settings)
        result = assembler.assemble()

        target = output or self.settings.output
        if target:
            result.metadata["output"] = str(write_json(result.code_system, target))

        result.metadata["elapsed_ms"] = (time.time() - start_time) * 1000
        logger.info(
            f"Transform finished in {result.metadata['elapsed_ms']:.1f} ms: "
            f"{result.code_system.count} concepts, {len(result.warnings)} warnings"
        )
        return result


def run_transform(
    settings: TransformSettings,
    ontology: Optional[OntologyClosureProtocol] = None,
    reasoner: Optional[ReasonerProtocol] = None,
) -> TransformResult:
    """Convenience wrapper around TransformPipeline.run"""
    return TransformPipeline(settings, ontology=ontology, reasoner=reasoner).run()
