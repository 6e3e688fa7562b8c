from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_CANVAS_SIZE = 512
DEFAULT_COLLECTION_SIZE = 10
DEFAULT_COLLECTION_NAME = "My Collection"


@dataclass
class CanvasConfig:
    width: int = DEFAULT_CANVAS_SIZE
    height: int = DEFAULT_CANVAS_SIZE

    def __post_init__(self) -> None:
        self.width = int(self.width)
        self.height = int(self.height)
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"canvas size must be positive, got {self.width}x{self.height}")


@dataclass
class RunConfig:
    size: int = DEFAULT_COLLECTION_SIZE
    seed: Optional[int] = None
    yield_delay_s: float = 0.05


@dataclass
class CollectionConfig:
    name: str = DEFAULT_COLLECTION_NAME
    description: Optional[str] = None


@dataclass
class PathsConfig:
    registry: Path = Path("traits")
    output_dir: Path = Path("output")
    database: Path = Path("collections.sqlite")
    log_file: Optional[Path] = None


@dataclass
class TraitLabConfig:
    canvas: CanvasConfig = field(default_factory=CanvasConfig)
    run: RunConfig = field(default_factory=RunConfig)
    collection: CollectionConfig = field(default_factory=CollectionConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "TraitLabConfig":
        canvas_data = _section(raw, "canvas")
        run_data = _section(raw, "run")
        collection_data = _section(raw, "collection")
        paths_data = _section(raw, "paths")
        logging_data = _section(raw, "logging")

        canvas = CanvasConfig(
            width=int(canvas_data.get("width", DEFAULT_CANVAS_SIZE)),
            height=int(canvas_data.get("height", DEFAULT_CANVAS_SIZE)),
        )

        seed = run_data.get("seed")
        run = RunConfig(
            size=max(0, int(run_data.get("size", DEFAULT_COLLECTION_SIZE))),
            seed=int(seed) if seed is not None else None,
            yield_delay_s=max(0.0, float(run_data.get("yield_delay_s", 0.05))),
        )

        collection = CollectionConfig(
            name=_optional_str(collection_data.get("name")) or DEFAULT_COLLECTION_NAME,
            description=_optional_str(collection_data.get("description")),
        )

        paths = PathsConfig(
            registry=Path(str(paths_data.get("registry", "traits"))),
            output_dir=Path(str(paths_data.get("output_dir", "output"))),
            database=Path(str(paths_data.get("database", "collections.sqlite"))),
            log_file=_optional_path(paths_data.get("log_file", logging_data.get("file"))),
        )

        return cls(
            canvas=canvas,
            run=run,
            collection=collection,
            paths=paths,
            log_level=str(logging_data.get("level", raw.get("log_level", "INFO"))).upper(),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "canvas": {"width": self.canvas.width, "height": self.canvas.height},
            "run": {
                "size": self.run.size,
                "seed": self.run.seed,
                "yield_delay_s": self.run.yield_delay_s,
            },
            "collection": {
                "name": self.collection.name,
                "description": self.collection.description,
            },
            "paths": {
                "registry": str(self.paths.registry),
                "output_dir": str(self.paths.output_dir),
                "database": str(self.paths.database),
                "log_file": str(self.paths.log_file) if self.paths.log_file else None,
            },
            "logging": {"level": self.log_level},
        }


def load_config(path: Path | str) -> TraitLabConfig:
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in {".json", ".jsonc"}:
        data = json.loads(_strip_jsonc(text))
    else:
        data = yaml.safe_load(text)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Configuration file must contain a mapping at the top level")
    return TraitLabConfig.from_dict(data)


def _strip_jsonc(payload: str) -> str:
    """Drop ``//`` and ``/* */`` comments that sit outside string literals."""

    result: list[str] = []
    length = len(payload)
    i = 0
    in_string = False
    while i < length:
        ch = payload[i]
        if in_string:
            result.append(ch)
            if ch == "\\" and i + 1 < length:
                result.append(payload[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue
        if ch == '"':
            in_string = True
        elif payload.startswith("//", i):
            end = payload.find("\n", i)
            i = length if end == -1 else end
            continue
        elif payload.startswith("/*", i):
            end = payload.find("*/", i + 2)
            i = length if end == -1 else end + 2
            continue
        result.append(ch)
        i += 1
    return "".join(result)


def _section(raw: Mapping[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key, {})
    return dict(value) if isinstance(value, Mapping) else {}


def _optional_path(value: Any) -> Path | None:
    if value in (None, "", False):
        return None
    return Path(str(value))


def _optional_str(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


__all__ = [
    "CanvasConfig",
    "CollectionConfig",
    "PathsConfig",
    "RunConfig",
    "TraitLabConfig",
    "load_config",
]
