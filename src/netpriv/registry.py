"""Platform registry for netpriv."""

from __future__ import annotations

from importlib.resources import files
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

import yaml

from .platform import PlatformDefinition
from .program_exceptions import MalformedDefinition, UnknownPlatform
from .program_logging import get_logger


class PlatformRegistry:
    """Validated platform definitions, keyed by platform type.

    A registry is a plain object handed to whoever needs it; tests build their
    own with synthetic definitions.
    """

    def __init__(self, definitions: Optional[Iterable[PlatformDefinition]] = None) -> None:
        self._by_type: Dict[str, PlatformDefinition] = {}
        for definition in definitions or ():
            self.register(definition)

    def register(self, definition: PlatformDefinition, replace: bool = False) -> None:
        """Registers a `PlatformDefinition` in the `PlatformRegistry`."""
        if definition.platform_type in self._by_type and not replace:
            raise ValueError(f"duplicate platform: {definition.platform_type}")
        self._by_type[definition.platform_type] = definition

    def get(self, platform_type: str) -> PlatformDefinition:
        try:
            return self._by_type[platform_type]
        except KeyError:
            known = ", ".join(self.names()) or "none"
            raise UnknownPlatform(
                f"unknown platform name '{platform_type}' (known: {known})"
            ) from None

    def names(self) -> List[str]:
        return sorted(self._by_type)

    def __contains__(self, platform_type: object) -> bool:
        return platform_type in self._by_type

    def __iter__(self) -> Iterator[PlatformDefinition]:
        return iter(self._by_type[name] for name in self.names())

    def __len__(self) -> int:
        return len(self._by_type)

    def load_text(
        self, text: str, source: str = "<string>", replace: bool = False
    ) -> List[PlatformDefinition]:
        """Parse, validate and register every platform document in `text`."""
        logger = get_logger("registry")
        try:
            documents = [doc for doc in yaml.safe_load_all(text) if doc]
        except yaml.YAMLError as exc:
            raise MalformedDefinition(source, [f"invalid YAML: {exc}"]) from exc

        loaded = []
        for document in documents:
            if not isinstance(document, dict):
                raise MalformedDefinition(source, ["platform document must be a mapping"])
            definition = PlatformDefinition.from_mapping(document)
            self.register(definition, replace=replace)
            logger.debug(f"Loaded platform '{definition.platform_type}' from {source}")
            loaded.append(definition)
        return loaded

    def load_file(self, path: str | Path, replace: bool = False) -> List[PlatformDefinition]:
        path = Path(path)
        return self.load_text(path.read_text(encoding="utf-8"), source=str(path), replace=replace)

    def load_directory(
        self, directory: str | Path, replace: bool = False
    ) -> List[PlatformDefinition]:
        """Load every ``*.yaml``/``*.yml`` file in `directory`, sorted by name."""
        directory = Path(directory)
        loaded: List[PlatformDefinition] = []
        if not directory.is_dir():
            return loaded
        for path in sorted(directory.iterdir()):
            if path.suffix in (".yaml", ".yml"):
                loaded.extend(self.load_file(path, replace=replace))
        return loaded


def load_builtin_registry() -> PlatformRegistry:
    """Build a fresh registry holding the platforms shipped with netpriv."""
    registry = PlatformRegistry()
    assets = files("netpriv").joinpath("assets")
    for entry in sorted(assets.iterdir(), key=lambda e: e.name):
        if entry.name.endswith(".yaml"):
            registry.load_text(entry.read_text(encoding="utf-8"), source=entry.name)
    return registry
