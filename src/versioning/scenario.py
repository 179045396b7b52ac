"""Scenario files: the root manifest, package metadata and selected versions.

A scenario stands in for manifest parsing and registry metadata so the
driver can be exercised from a single JSON or YAML document.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Tuple

import yaml

from constants import Constants

from .models import Version, VersionId, VersionRange, parse_range, parse_version

logger = logging.getLogger(__name__)

Requirements = Dict[str, VersionRange]


class ScenarioError(ValueError):
    """The scenario document is malformed."""


@dataclass
class Scenario:
    """Everything the driver needs for one resolution attempt."""
    root: VersionId
    dependencies: Requirements = field(default_factory=dict)
    test_dependencies: Requirements = field(default_factory=dict)
    packages: Dict[str, Dict[Version, Requirements]] = field(default_factory=dict)
    selected: Dict[str, Version] = field(default_factory=dict)
    locked: Dict[str, Version] = field(default_factory=dict)

    def requirements_of(self, node: VersionId) -> List[Tuple[str, VersionRange]]:
        """Sorted ``(target, range)`` pairs declared by ``node``.

        The root also yields its test dependencies. A package listed in both
        sections contributes both ranges.
        """
        if node == self.root:
            pairs = list(self.dependencies.items()) + list(self.test_dependencies.items())
        else:
            pairs = list(self.packages.get(node.name, {}).get(node.version, {}).items())
        return sorted(set(pairs))


def _mapping(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, Mapping):
        raise ScenarioError(f"'{key}' must be a mapping")
    return value


def _requirements(raw: Mapping[str, Any], where: str) -> Requirements:
    result: Requirements = {}
    for name, text in raw.items():
        try:
            result[str(name)] = parse_range(str(text))
        except ValueError as exc:
            raise ScenarioError(f"{where}: bad range for '{name}': {exc}") from exc
    return result


def _versions(raw: Mapping[str, Any], where: str) -> Dict[str, Version]:
    result: Dict[str, Version] = {}
    for name, text in raw.items():
        try:
            result[str(name)] = parse_version(str(text))
        except ValueError as exc:
            raise ScenarioError(f"{where}: bad version for '{name}': {exc}") from exc
    return result


def parse_scenario(data: Any) -> Scenario:
    """Build a Scenario from an already-decoded document.

    Raises:
        ScenarioError: If a section is missing or malformed
    """
    if not isinstance(data, Mapping):
        raise ScenarioError("scenario must be a mapping")
    root = data.get("root")
    if not isinstance(root, Mapping) or "name" not in root or "version" not in root:
        raise ScenarioError("'root' must have 'name' and 'version'")
    try:
        root_id = VersionId(str(root["name"]), parse_version(str(root["version"])))
    except ValueError as exc:
        raise ScenarioError(f"root: {exc}") from exc

    packages: Dict[str, Dict[Version, Requirements]] = {}
    for name, versions in _mapping(data, "packages").items():
        if not isinstance(versions, Mapping):
            raise ScenarioError(f"packages.{name} must be a mapping of versions")
        table: Dict[Version, Requirements] = {}
        for version_text, info in versions.items():
            where = f"packages.{name}.{version_text}"
            try:
                version = parse_version(str(version_text))
            except ValueError as exc:
                raise ScenarioError(f"{where}: {exc}") from exc
            info = info or {}
            if not isinstance(info, Mapping):
                raise ScenarioError(f"{where} must be a mapping")
            table[version] = _requirements(_mapping(info, "dependencies"), where)
        packages[str(name)] = table

    return Scenario(
        root=root_id,
        dependencies=_requirements(_mapping(data, "dependencies"), "dependencies"),
        test_dependencies=_requirements(_mapping(data, "test-dependencies"), "test-dependencies"),
        packages=packages,
        selected=_versions(_mapping(data, "selected"), "selected"),
        locked=_versions(_mapping(data, "locked"), "locked"),
    )


def load_scenario(path: str) -> Scenario:
    """Load a scenario from a ``.json``, ``.yml`` or ``.yaml`` file.

    Raises:
        ScenarioError: If the extension is unsupported or the document is malformed
        OSError: If the file cannot be read
    """
    extension = os.path.splitext(path)[1].lower()
    if extension not in Constants.SCENARIO_EXTENSIONS:
        raise ScenarioError(f"Unsupported scenario file type: {path}")
    with open(path, "r", encoding="utf-8") as fh:
        try:
            if extension == ".json":
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise ScenarioError(f"Could not decode {path}: {exc}") from exc
    logger.debug("Loaded scenario %s", path)
    return parse_scenario(data)
