"""
YAML config files for markfluence.

Lookup order, highest precedence first:

1. the file named by ``$MARKFLUENCE_CONFIG``
2. ``./markfluence.yml``
3. ``./.markfluence.yml``
4. ``~/.config/markfluence/config.yml``

A file can pull in another with ``!include`` and reference environment
variables as ``${NAME}`` or ``${NAME:-fallback}``. When several files exist,
a top-level section from a higher-precedence file replaces that whole
section from a lower one.

Usage:
    from markfluence.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MARKFLUENCE_CONFIG"
PROJECT_CONFIG_NAMES = ("markfluence.yml", ".markfluence.yml")
GLOBAL_CONFIG_PATH = Path(".config") / "markfluence" / "config.yml"

# ---------------------------------------------------------------------------
# Environment references
# ---------------------------------------------------------------------------

# ${NAME} or ${NAME:-fallback}
_ENV_REF = re.compile(r"\$\{(?P<name>[^}:]+?)(?::-(?P<fallback>.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Expand ``${NAME}`` and ``${NAME:-fallback}`` references in *value*.

    An unset or empty variable expands to its fallback, or to ``""`` when
    there is none. A ``${`` without a closing brace is kept as written.

    Examples:
        >>> interpolate_env_vars("${MARKFLUENCE_UNSET_EXAMPLE:-DOCS}")
        'DOCS'
    """

    def _expand(match: re.Match) -> str:
        return os.environ.get(match["name"]) or match["fallback"] or ""

    return _ENV_REF.sub(_expand, value)


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    if isinstance(obj, dict):
        return {key: _interpolate_recursive(val) for key, val in obj.items()}
    return obj


# ---------------------------------------------------------------------------
# !include
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader that understands ``!include``.

    Typical use is keeping credentials out of a committed project file::

        confluence: !include ~/.config/markfluence/credentials.yml

    ``chain`` holds the files being loaded, outermost first, so an include
    cycle is reported instead of recursing forever. ``yaml.SafeLoader``
    itself is left untouched.
    """

    def __init__(self, stream, chain: tuple[Path, ...] = ()):
        super().__init__(stream)
        self.chain = chain

    def construct_include(self, node: yaml.ScalarNode) -> Any:
        target = Path(self.construct_scalar(node)).expanduser()
        including = self.chain[-1]
        if not target.is_absolute():
            target = including.parent / target
        target = target.resolve()

        if target in self.chain:
            cycle = " -> ".join(str(p) for p in (*self.chain, target))
            raise ValueError(f"Circular include detected: {cycle}")
        if not target.exists():
            raise FileNotFoundError(
                f"Include file not found: {target} (referenced from {including})"
            )
        return _load_yaml_with_includes(target, _chain=self.chain)


ConfigLoader.add_constructor("!include", ConfigLoader.construct_include)


def _load_yaml_with_includes(
    path: Path, *, _chain: tuple[Path, ...] = ()
) -> Any:
    path = Path(path).resolve()
    with path.open(encoding="utf-8") as fh:
        loader = ConfigLoader(fh, (*_chain, path))
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# Discovery and loading
# ---------------------------------------------------------------------------


def discover_config_files() -> list[Path]:
    """Return the config files that exist, highest precedence first."""
    candidates: list[Path] = []

    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.append(Path(explicit).expanduser().resolve())

    cwd = Path.cwd()
    candidates.extend(cwd / name for name in PROJECT_CONFIG_NAMES)
    candidates.append(Path.home() / GLOBAL_CONFIG_PATH)

    return [p for p in candidates if p.is_file()]


def load_config_file(path: Path) -> dict[str, Any]:
    """Load exactly one config file (``--config PATH``).

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file's top level is not a mapping.
    """
    path = Path(path).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    data = _load_yaml_with_includes(path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Config file {path} must contain a mapping, "
            f"got {type(data).__name__}"
        )
    return _interpolate_recursive(data)


def load_hierarchical_config() -> dict[str, Any]:
    """Merge every discovered config file into one raw dict.

    Environment references are expanded after merging. Returns ``{}`` when
    there are no config files.
    """
    merged: dict[str, Any] = {}

    # Lowest precedence first so later files replace earlier sections
    for path in reversed(discover_config_files()):
        logger.debug("Loading config: %s", path)
        data = _load_yaml_with_includes(path)
        if data is None:
            continue
        if not isinstance(data, dict):
            logger.warning(
                "Ignoring config file %s: top level is %s, not a mapping",
                path,
                type(data).__name__,
            )
            continue
        merged.update(data)

    return _interpolate_recursive(merged)
