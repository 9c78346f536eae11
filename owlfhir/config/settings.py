"""
owlfhir Transform Settings
==========================
Validated configuration for one ontology to CodeSystem transform.

Module: owlfhir/config/settings.py

Purpose:
    - Define every override the transform accepts, with its default
    - Reject malformed values eagerly, before any ontology is loaded
    - Persist configurations to YAML files

Components:
    - ConceptSettings: code / display / synonym / definition sources
    - CodeSystemSettings: CodeSystem metadata and extraction flags
    - TransformSettings: input, output, namespaces, IRI redirections
    - build_settings / load_settings / save_settings

Dependencies:
    - pydantic: Validation
    - yaml: Configuration file I/O

Called by:
    - owlfhir/pipeline.py
    - scripts/transform_ontology.py

Version: 1.0.0
"""
from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from owlfhir.core.errors import InvalidConfigurationError
from owlfhir.core.types import (
    Coding,
    ContactDetail,
    DC_PUBLISHER,
    DC_SUBJECT,
    EquivalencePolicy,
    Identifier,
    RDFS_COMMENT,
    RDFS_LABEL,
)
from owlfhir.ontology.reasoner import available_reasoners

logger = logging.getLogger(__name__)

CONFIG_FORMAT_VERSION = "1.0"

STATUS_VALUES = ("draft", "active", "retired", "unknown")
CONTENT_VALUES = ("not-present", "example", "fragment", "complete", "supplement")
HIERARCHY_MEANING_VALUES = ("grouped-by", "is-a", "part-of", "classified-with")
CONTACT_SYSTEM_VALUES = ("phone", "fax", "email", "pager", "url", "sms", "other")
DATE_REGEX_GROUPS = ("year", "month", "day")

_DATE_FORMATS = (
    (re.compile(r"^\d{4}$"), "%Y"),
    (re.compile(r"^\d{4}-\d{2}$"), "%Y-%m"),
    (re.compile(r"^\d{4}-\d{2}-\d{2}$"), "%Y-%m-%d"),
    (
        re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{3})?(Z|[+-]\d{2}:\d{2})$"),
        None,
    ),
)

# Named groups written as (?<name>...) are accepted as well
_NAMED_GROUP = re.compile(r"\(\?<([A-Za-z_]\w*)>")


# =============================================================================
# Helpers
# =============================================================================
def split_list(value: Any) -> Any:
    """Accept comma-separated strings wherever a list is expected"""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


def _one_of(value: str, allowed: tuple, what: str) -> str:
    if value not in allowed:
        raise ValueError(f"Invalid {what} value '{value}'. Valid values are: {list(allowed)}")
    return value


def parse_identifier(text: str) -> Identifier:
    parts = text.split("|")
    if len(parts) != 2 or not parts[1]:
        raise ValueError(
            f"Invalid identifier '{text}'. Valid format is [system]|[value] "
            f"and value cannot be empty."
        )
    return Identifier(value=parts[1], system=parts[0] or None)


def parse_contact(text: str) -> ContactDetail:
    parts = text.split("|")
    if len(parts) != 3:
        raise ValueError(f"Invalid contact '{text}'. Valid format is [name|system|value].")
    if parts[1] not in CONTACT_SYSTEM_VALUES:
        raise ValueError(
            f"Invalid system contact '{parts[1]}'. "
            f"Valid values are: {list(CONTACT_SYSTEM_VALUES)}"
        )
    return ContactDetail(name=parts[0], system=parts[1], value=parts[2])


def parse_jurisdiction(text: str) -> Coding:
    parts = text.split("|")
    if len(parts) != 3:
        raise ValueError(
            f"Invalid jurisdiction '{text}'. Valid format is [code|system|display] "
            f"from https://hl7.org/fhir/valueset-jurisdiction.html."
        )
    return Coding(code=parts[0], system=parts[1] or None, display=parts[2] or None)


def validate_date(text: str) -> str:
    for pattern, fmt in _DATE_FORMATS:
        if not pattern.match(text):
            continue
        try:
            if fmt is None:
                datetime.fromisoformat(text.replace("Z", "+00:00"))
            else:
                datetime.strptime(text, fmt)
        except ValueError:
            break
        return text
    raise ValueError(
        f"Invalid date value '{text}'. Valid formats are: "
        f"YYYY, YYYY-MM, YYYY-MM-DD and YYYY-MM-DDThh:mm:ss+zz:zz."
    )


def compile_date_regex(text: str) -> "re.Pattern[str]":
    """Compile a version date pattern with year, month and day groups"""
    source = _NAMED_GROUP.sub(r"(?P<\1>", text)
    try:
        pattern = re.compile(source)
    except re.error as e:
        raise ValueError(f"The date regex '{text}' is invalid: {e}") from e

    missing = [g for g in DATE_REGEX_GROUPS if g not in pattern.groupindex]
    if missing:
        raise ValueError(
            f"The date regex '{text}' must define the named groups "
            f"{list(DATE_REGEX_GROUPS)}; missing {missing}"
        )
    return pattern


# =============================================================================
# Settings Models
# =============================================================================
class ConceptSettings(BaseModel):
    """Where concept codes, displays, synonyms and definitions come from"""

    model_config = {"extra": "forbid"}

    code_property: Optional[str] = Field(
        default=None,
        description="Annotation property holding the code (IRI short form if unset)",
    )
    display_property: str = Field(
        default=RDFS_LABEL,
        description="Annotation property holding the preferred term",
    )
    definition_property: Optional[str] = Field(
        default=None,
        description="Annotation property holding the concept definition",
    )
    synonym_properties: List[str] = Field(
        default_factory=lambda: [RDFS_LABEL],
        description="Annotation properties holding synonyms",
    )
    code_replace_source: Optional[str] = Field(
        default=None,
        description="Substring replaced in local codes",
    )
    code_replace_target: Optional[str] = Field(
        default=None,
        description="Replacement for code_replace_source",
    )
    labels_to_exclude: List[str] = Field(
        default_factory=list,
        description="Labels never used as display or synonym",
    )

    @field_validator("synonym_properties", "labels_to_exclude", mode="before")
    @classmethod
    def validate_lists(cls, v: Any) -> Any:
        return split_list(v)

    @model_validator(mode="after")
    def validate_replacement(self) -> "ConceptSettings":
        if (self.code_replace_source is None) != (self.code_replace_target is None):
            raise ValueError(
                "code_replace_source and code_replace_target must be set together"
            )
        if self.code_replace_source == "":
            raise ValueError("code_replace_source cannot be empty")
        return self

    @property
    def code_replacement(self) -> Optional[tuple]:
        if self.code_replace_source is None:
            return None
        return (self.code_replace_source, self.code_replace_target)


class CodeSystemSettings(BaseModel):
    """CodeSystem metadata overrides and extraction flags"""

    model_config = {"extra": "forbid"}

    id: Optional[str] = None
    language: Optional[str] = None
    url: Optional[str] = Field(default=None, description="Canonical URL (ontology IRI if unset)")
    identifiers: List[str] = Field(default_factory=list, description="[system]|[value] entries")
    version: Optional[str] = Field(default=None, description="Version (version IRI if unset)")
    name: Optional[str] = None
    name_property: str = Field(
        default=RDFS_LABEL,
        description="Ontology annotation used as name when no name is set",
    )
    title: Optional[str] = None
    status: str = "draft"
    experimental: bool = False
    date: Optional[str] = None
    publisher: Optional[str] = None
    publisher_properties: List[str] = Field(default_factory=lambda: [DC_PUBLISHER])
    contacts: List[str] = Field(default_factory=list, description="[name|system|value] entries")
    description: Optional[str] = None
    description_properties: List[str] = Field(
        default_factory=lambda: [DC_SUBJECT, RDFS_COMMENT]
    )
    purpose: Optional[str] = None
    jurisdictions: List[str] = Field(default_factory=list, description="[code|system|display] entries")
    copyright: Optional[str] = None
    value_set: Optional[str] = None
    hierarchy_meaning: Optional[str] = None
    compositional: bool = False
    version_needed: bool = False
    content: str = "complete"

    include_deprecated: bool = False
    use_fhir_extension: bool = False
    date_regex: Optional[str] = Field(
        default=None,
        description="Pattern with year, month and day groups applied to the version",
    )
    reasoner: str = "structural"
    extract_object_properties: bool = False
    extract_data_properties: bool = False
    equivalence_policy: EquivalencePolicy = EquivalencePolicy.COLLAPSE

    @field_validator(
        "identifiers",
        "publisher_properties",
        "contacts",
        "description_properties",
        "jurisdictions",
        mode="before",
    )
    @classmethod
    def validate_lists(cls, v: Any) -> Any:
        return split_list(v)

    @field_validator("identifiers")
    @classmethod
    def validate_identifiers(cls, v: List[str]) -> List[str]:
        for item in v:
            parse_identifier(item)
        return v

    @field_validator("contacts")
    @classmethod
    def validate_contacts(cls, v: List[str]) -> List[str]:
        for item in v:
            parse_contact(item)
        return v

    @field_validator("jurisdictions")
    @classmethod
    def validate_jurisdictions(cls, v: List[str]) -> List[str]:
        for item in v:
            parse_jurisdiction(item)
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _one_of(v, STATUS_VALUES, "status")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _one_of(v, CONTENT_VALUES, "content")

    @field_validator("hierarchy_meaning")
    @classmethod
    def validate_hierarchy_meaning(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _one_of(v, HIERARCHY_MEANING_VALUES, "hierarchy meaning")

    @field_validator("reasoner")
    @classmethod
    def validate_reasoner(cls, v: str) -> str:
        return _one_of(v, tuple(available_reasoners()), "reasoner")

    @field_validator("date")
    @classmethod
    def check_date(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        return validate_date(v)

    @field_validator("date_regex")
    @classmethod
    def check_date_regex(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        compile_date_regex(v)
        return v

    # Parsed views -----------------------------------------------------------
    def parsed_identifiers(self) -> List[Identifier]:
        return [parse_identifier(item) for item in self.identifiers]

    def parsed_contacts(self) -> List[ContactDetail]:
        return [parse_contact(item) for item in self.contacts]

    def parsed_jurisdictions(self) -> List[Coding]:
        return [parse_jurisdiction(item) for item in self.jurisdictions]

    def compiled_date_regex(self) -> Optional["re.Pattern[str]"]:
        if self.date_regex is None:
            return None
        return compile_date_regex(self.date_regex)


class TransformSettings(BaseModel):
    """Complete configuration of one transform run"""

    model_config = {"extra": "forbid"}

    input: Optional[str] = Field(default=None, description="Ontology file")
    output: Optional[str] = Field(default=None, description="CodeSystem JSON file")
    main_namespaces: List[str] = Field(
        default_factory=list,
        description="IRI prefixes of local entities (closure difference if empty)",
    )
    iri_mappings: Dict[str, str] = Field(
        default_factory=dict,
        description="Import IRI -> local file redirections",
    )
    iri_mappings_file: Optional[str] = Field(
        default=None,
        description="File of iri,path redirection lines",
    )
    concept: ConceptSettings = Field(default_factory=ConceptSettings)
    code_system: CodeSystemSettings = Field(default_factory=CodeSystemSettings)

    @field_validator("main_namespaces", mode="before")
    @classmethod
    def validate_namespaces(cls, v: Any) -> Any:
        return split_list(v)


# =============================================================================
# Construction and Persistence
# =============================================================================
def build_settings(data: Optional[Mapping[str, Any]] = None, **overrides: Any) -> TransformSettings:
    """
    Validate a raw configuration mapping

    Raises:
        InvalidConfigurationError: wrapping every pydantic validation error
    """
    raw: Dict[str, Any] = dict(data or {})
    raw.update(overrides)
    try:
        return TransformSettings.model_validate(raw)
    except ValidationError as e:
        messages = []
        for err in e.errors():
            loc = ".".join(str(part) for part in err["loc"])
            messages.append(f"{loc}: {err['msg']}" if loc else err["msg"])
        raise InvalidConfigurationError("; ".join(messages)) from e


def read_settings_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Raw configuration mapping from a YAML file"""
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise InvalidConfigurationError(f"Config file {path} must hold a mapping")

    config.pop("version", None)
    config.pop("updated_at", None)
    return config


def load_settings(path: Union[str, Path]) -> TransformSettings:
    """Load and validate configuration from a YAML file"""
    settings = build_settings(read_settings_file(path))
    logger.info(f"Configuration loaded from {path}")
    return settings


def save_settings(settings: TransformSettings, path: Union[str, Path]) -> None:
    """Save configuration to a YAML file"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    config = {
        "version": CONFIG_FORMAT_VERSION,
        "updated_at": datetime.now().isoformat(),
    }
    config.update(settings.model_dump(mode="json"))

    with open(path, "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)

    logger.info(f"Configuration saved to {path}")
