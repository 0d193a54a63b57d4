import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from ..core.classification.classifier import ClassifierConfig
from ..models.errors import ConfigurationInvalid
from ..models.schema import AttributeDirective

DEFAULT_CONFIG_NAMES = ("rnmigrate.yml", "rnmigrate.yaml", "config.json", "analyzer-config.json")

# keys used by the older JSON configs of the node tooling
_ALIASES = {
    "srcFolder": "src_folder",
    "fileExtensions": "file_extensions",
    "packagesToTrack": "packages",
    "updateExisting": "update_existing",
    "componentFilters": "component_filters",
    "priorityThresholds": "priority_thresholds",
    "includeGlobs": "include_globs",
    "excludeGlobs": "exclude_globs",
}

_DIRECTIVE_KINDS = ("string", "expression")


@dataclass(frozen=True)
class Settings:
    src_folder: str
    file_extensions: Tuple[str, ...] = ("js", "jsx", "ts", "tsx")
    include_globs: Tuple[str, ...] = ()
    exclude_globs: Tuple[str, ...] = ()
    components: FrozenSet[str] = frozenset()
    packages: FrozenSet[str] = frozenset()
    props: Tuple[AttributeDirective, ...] = ()
    update_existing: bool = False
    include_filter: FrozenSet[str] = frozenset()
    exclude_filter: FrozenSet[str] = frozenset()
    high_threshold: int = 10
    medium_threshold: int = 5
    github_repository: Optional[str] = None
    github_branch: str = "main"
    jobs: int = 1
    source_path: Optional[str] = field(default=None, compare=False)

    @property
    def classifier(self) -> ClassifierConfig:
        return ClassifierConfig.build(
            target_components=self.components,
            tracked_modules=self.packages,
            include_filter=self.include_filter,
            exclude_filter=self.exclude_filter,
        )


def load_yaml(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise ConfigurationInvalid(f"Cannot read configuration {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationInvalid(f"Cannot parse configuration {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationInvalid(f"Configuration {path} must be a mapping")
    return data


def load_defaults(pkg_root: Path) -> Dict[str, Any]:
    return load_yaml(pkg_root / "config" / "defaults.yml")


def find_config(cwd: Path) -> Optional[Path]:
    for name in DEFAULT_CONFIG_NAMES:
        candidate = cwd / name
        if candidate.is_file():
            return candidate
    return None


def _normalize_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {_ALIASES.get(k, k): v for k, v in raw.items()}


def _merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in overlay.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def _str_list(data: Dict[str, Any], key: str) -> List[str]:
    val = data.get(key)
    if val is None:
        return []
    if not isinstance(val, list) or not all(isinstance(v, str) for v in val):
        raise ConfigurationInvalid(f"'{key}' must be a list of strings")
    return val


def _int(data: Dict[str, Any], key: str, default: int) -> int:
    val = data.get(key, default)
    if isinstance(val, bool) or not isinstance(val, int) or val < 0:
        raise ConfigurationInvalid(f"'{key}' must be a non-negative integer")
    return val


def _directives(raw: Any) -> Tuple[AttributeDirective, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigurationInvalid("'props' must be a list of {name, value} entries")
    out: List[AttributeDirective] = []
    seen = set()
    for i, item in enumerate(raw):
        if not isinstance(item, dict) or "name" not in item or "value" not in item:
            raise ConfigurationInvalid(f"props[{i}] needs both 'name' and 'value'")
        name = item["name"]
        if not isinstance(name, str) or not name:
            raise ConfigurationInvalid(f"props[{i}].name must be a non-empty string")
        if name in seen:
            raise ConfigurationInvalid(f"Duplicate prop '{name}'")
        seen.add(name)
        value = item["value"]
        kind = item.get("kind", "string")
        if kind not in _DIRECTIVE_KINDS:
            raise ConfigurationInvalid(f"props[{i}].kind must be one of {', '.join(_DIRECTIVE_KINDS)}")
        if isinstance(value, bool):
            value = "true" if value else "false"
        if not isinstance(value, (str, int, float)):
            raise ConfigurationInvalid(f"props[{i}].value must be a scalar")
        out.append(AttributeDirective(name=name, value=str(value), kind=kind))
    return tuple(out)


def build_settings(data: Dict[str, Any], source_path: Optional[str] = None) -> Settings:
    src = data.get("src_folder")
    if not isinstance(src, str) or not src.strip():
        raise ConfigurationInvalid("'src_folder' is required")

    exts = [e.lstrip(".").lower() for e in _str_list(data, "file_extensions")]
    if not exts:
        raise ConfigurationInvalid("'file_extensions' must list at least one extension")

    filters = data.get("component_filters") or {}
    if not isinstance(filters, dict):
        raise ConfigurationInvalid("'component_filters' must be a mapping")
    thresholds = data.get("priority_thresholds") or {}
    if not isinstance(thresholds, dict):
        raise ConfigurationInvalid("'priority_thresholds' must be a mapping")
    high = _int(thresholds, "high", 10)
    medium = _int(thresholds, "medium", 5)
    if high < medium:
        raise ConfigurationInvalid("priority_thresholds.high must be >= priority_thresholds.medium")

    github = data.get("github") or {}
    if not isinstance(github, dict):
        raise ConfigurationInvalid("'github' must be a mapping")

    jobs = _int(data, "jobs", 1)
    if jobs < 1:
        raise ConfigurationInvalid("'jobs' must be at least 1")

    update_existing = data.get("update_existing", False)
    if not isinstance(update_existing, bool):
        raise ConfigurationInvalid("'update_existing' must be true or false")

    return Settings(
        src_folder=src,
        file_extensions=tuple(exts),
        include_globs=tuple(_str_list(data, "include_globs")),
        exclude_globs=tuple(_str_list(data, "exclude_globs")),
        components=frozenset(_str_list(data, "components")),
        packages=frozenset(_str_list(data, "packages")),
        props=_directives(data.get("props")),
        update_existing=update_existing,
        include_filter=frozenset(_str_list(filters, "include")),
        exclude_filter=frozenset(_str_list(filters, "exclude")),
        high_threshold=high,
        medium_threshold=medium,
        github_repository=github.get("repository") or None,
        github_branch=github.get("branch") or "main",
        jobs=jobs,
        source_path=source_path,
    )


def load_settings(
    config_path: Optional[Path],
    pkg_root: Path,
    overrides: Optional[Dict[str, Any]] = None,
) -> Settings:
    data = _normalize_keys(load_defaults(pkg_root))
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigurationInvalid(f"Configuration file not found: {config_path}")
        data = _merge(data, _normalize_keys(load_yaml(config_path)))
    if overrides:
        data = _merge(data, {k: v for k, v in overrides.items() if v is not None})
    return build_settings(data, source_path=str(config_path) if config_path else None)


def require_mutation_settings(settings: Settings) -> None:
    if not settings.props:
        raise ConfigurationInvalid("add-props needs at least one entry under 'props'")
    if not settings.components and not settings.packages:
        raise ConfigurationInvalid("add-props needs 'components' or 'packages' to select target elements")
