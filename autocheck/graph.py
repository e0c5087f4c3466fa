"""Load repository descriptors and wire the dependents graph."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import DEFAULT_BRANCH, DESCRIPTOR_SUFFIX
from .errors import ConfigurationError, DescriptorError
from .registry import Repository, RepositoryRegistry


logger = logging.getLogger('autocheck.graph')


@dataclass
class Descriptor:
    """Validated contents of one descriptor file."""
    name: str
    path: Path
    branch: str
    depends: Dict[str, Optional[str]] = field(default_factory=dict)
    builds: List[str] = field(default_factory=list)
    source: Optional[Path] = None


def _require_string(data: Dict[str, Any], key: str, source: Path) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise DescriptorError(source, f"'{key}' must be a non-empty string")
    return value


def _parse_depends(raw: Any, source: Path) -> Dict[str, Optional[str]]:
    """
    Normalize the ``depends`` field.

    The mapping form gives each dependency the relative path of its nested
    checkout. A plain list of names is accepted too; those dependencies have
    no nested checkout.
    """
    if raw is None:
        return {}

    if isinstance(raw, list):
        depends = {}
        for name in raw:
            if not isinstance(name, str) or not name:
                raise DescriptorError(source, f"invalid dependency name: {name!r}")
            depends[name] = None
        return depends

    if isinstance(raw, dict):
        depends = {}
        for name, rel_path in raw.items():
            if not name:
                raise DescriptorError(source, "dependency name must not be empty")
            if rel_path is not None and not isinstance(rel_path, str):
                raise DescriptorError(source, f"dependency '{name}' path must be a string")
            depends[name] = rel_path or None
        return depends

    raise DescriptorError(source, "'depends' must be a mapping or a list")


def parse_descriptor(source: Path, default_branch: str = DEFAULT_BRANCH) -> Descriptor:
    """
    Read and validate one descriptor file.

    Raises:
        DescriptorError: If the file is unreadable, not JSON, or malformed
    """
    try:
        text = Path(source).read_text(encoding='utf-8')
    except OSError as e:
        raise DescriptorError(source, f"cannot read file: {e}")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DescriptorError(source, f"invalid JSON: {e}")

    if not isinstance(data, dict):
        raise DescriptorError(source, "top-level value must be an object")

    name = _require_string(data, "name", source)
    path = _require_string(data, "path", source)

    branch = data.get("branch") or default_branch
    if not isinstance(branch, str):
        raise DescriptorError(source, "'branch' must be a string")

    builds = data.get("builds") or []
    if not isinstance(builds, list) or not all(isinstance(line, str) for line in builds):
        raise DescriptorError(source, "'builds' must be a list of strings")

    return Descriptor(
        name=name,
        path=Path(path).expanduser(),
        branch=branch,
        depends=_parse_depends(data.get("depends"), source),
        builds=list(builds),
        source=Path(source),
    )


def apply_descriptor(registry: RepositoryRegistry, descriptor: Descriptor) -> Repository:
    """Fill in the repository record and add reverse edges to its dependencies."""
    repository = registry.get_or_create(descriptor.name)
    repository.path = descriptor.path
    repository.branch = descriptor.branch
    repository.depends = dict(descriptor.depends)
    repository.builds = list(descriptor.builds)
    repository.descriptor = descriptor.source
    repository.valid = True

    for dependency_name in descriptor.depends:
        dependency = registry.get_or_create(dependency_name)
        dependency.add_dependent(repository)

    return repository


def load_all(
    directory: Path,
    registry: RepositoryRegistry,
    suffix: str = DESCRIPTOR_SUFFIX,
    default_branch: str = DEFAULT_BRANCH
) -> List[Repository]:
    """
    Load every descriptor in ``directory`` into ``registry``.

    Bad files are logged and skipped. A second descriptor naming an
    already-loaded repository is skipped as well.

    Returns:
        Repositories loaded from descriptors, in load order

    Raises:
        ConfigurationError: If the directory cannot be listed
    """
    directory = Path(directory)

    try:
        entries = sorted(entry for entry in directory.iterdir() if entry.name.endswith(suffix))
    except OSError as e:
        raise ConfigurationError(f"Cannot open descriptor directory {directory}: {e}")

    loaded = []
    for entry in entries:
        if not entry.is_file():
            continue

        try:
            descriptor = parse_descriptor(entry, default_branch)
        except DescriptorError as e:
            logger.error(f"Skipping descriptor: {e}")
            continue

        existing = registry.get(descriptor.name)
        if existing is not None and existing.valid:
            logger.error(
                f"Skipping descriptor {entry}: repository {descriptor.name} "
                f"already loaded from {existing.descriptor}"
            )
            continue

        loaded.append(apply_descriptor(registry, descriptor))
        logger.debug(f"Loaded descriptor {entry.name} for repository {descriptor.name}")

    logger.info(f"Loaded {len(loaded)} descriptor(s), {len(registry)} repositories registered")
    return loaded
