"""
Shared configuration loading and validation helpers.

Provides:
 - `load_config`: basic YAML loader
 - `load_task_config`: validated configuration for a given task
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

from common.base.file_io import read_yaml


ConfigDict = Dict[str, Any]

DEFAULT_CONFIG_FILENAME = "config.yaml"
LOGGING_SECTION_KEY = "logging"
TASKS_SECTION_KEY = "tasks"
TASK_DEFAULTS_KEY = "task_defaults"
CONFIGS_DIR = Path(__file__).resolve().parents[2] / "configs"


TASK_SCHEMAS: Dict[str, Dict[str, Iterable[str]]] = {
    "dicom_search": {
        "required": ["roots"],
        "optional": [
            "age",
            "gender",
            "output_dir",
            "max_concurrency",
            "delete_invalid",
            "dry_run",
            "report",
        ],
    },
}

FIELD_ALIASES = {
    "root": "roots",
    "output": "output_dir",
    "sex": "gender",
}

SINGLE_PATH_FIELDS = {"output_dir"}
MULTI_PATH_FIELDS = {"roots"}
BOOLEAN_FIELDS = {"delete_invalid", "dry_run", "report"}
INTEGER_FIELDS = {"max_concurrency"}
LOGGING_ALLOWED_KEYS = {"level", "use_rich", "log_dir", "file_prefix"}
TASK_DEFAULT_ALLOWED_KEYS = {"roots", "output_root"}

YES_VALUES = {"1", "true", "yes", "y", "on"}
NO_VALUES = {"0", "false", "no", "n", "off"}


def load_config(path: str | Path | None) -> Mapping[str, Any] | Dict[str, Any]:
    if not path:
        return {}

    cfg_path = Path(path).expanduser()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {cfg_path}")

    data = read_yaml(cfg_path)
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Configuration root must be a mapping in {cfg_path}")

    return data or {}


def load_task_config(task: str, config_path: str | Path | None = None) -> ConfigDict:
    if task not in TASK_SCHEMAS:
        raise ValueError(f"Unknown task '{task}'. Expected one of: {', '.join(sorted(TASK_SCHEMAS))}")

    resolved_path = _resolve_config_path(config_path)
    root_config = dict(load_config(resolved_path))
    task_config_raw = _extract_task_config(root_config, task, resolved_path)
    task_defaults = _extract_task_defaults(root_config, resolved_path)
    task_logging_override: Dict[str, Any] = {}
    if "logging" in task_config_raw:
        logging_payload = task_config_raw.pop("logging")
        if not isinstance(logging_payload, Mapping):
            raise ValueError(
                f"Task '{task}' logging section must be a mapping in {resolved_path}"
            )
        task_logging_override = dict(logging_payload)
        invalid_logging_keys = [
            key for key in task_logging_override if key not in LOGGING_ALLOWED_KEYS
        ]
        if invalid_logging_keys:
            invalid_keys = ", ".join(sorted(invalid_logging_keys))
            raise ValueError(
                f"Task '{task}' logging section contains unsupported keys in {resolved_path}: {invalid_keys}"
            )
    config = _apply_aliases(task_config_raw)
    default_roots = task_defaults.get("roots")
    if default_roots is not None and "roots" not in config:
        config["roots"] = deepcopy(default_roots)

    schema = TASK_SCHEMAS[task]
    required = set(schema.get("required", []))
    optional = set(schema.get("optional", []))
    allowed_keys = required | optional

    missing = [key for key in sorted(required) if not config.get(key)]
    if missing:
        raise ValueError(
            f"Configuration '{resolved_path}' missing required fields for task '{task}': {', '.join(missing)}"
        )

    unexpected = [key for key in config if key not in allowed_keys]
    if unexpected:
        raise ValueError(
            f"Configuration '{resolved_path}' contains unsupported keys for task '{task}': {', '.join(unexpected)}"
        )

    normalized: ConfigDict = {}
    for key in allowed_keys:
        if key not in config:
            continue
        value = config[key]

        if key in SINGLE_PATH_FIELDS:
            normalized[key] = _normalize_single_path(value)
        elif key in MULTI_PATH_FIELDS:
            normalized[key] = _normalize_multi_path(value)
        elif key in BOOLEAN_FIELDS:
            normalized[key] = _coerce_bool(value, key, resolved_path)
        elif key in INTEGER_FIELDS:
            if value is None or value == "":
                normalized[key] = None
            else:
                normalized[key] = _coerce_int(value, key, resolved_path)
        elif key == "age":
            normalized[key] = None if value is None else coerce_age(value, resolved_path)
        elif key == "gender":
            normalized[key] = None if value is None else normalize_gender(value, resolved_path)
        else:
            normalized[key] = value

    normalized["__task__"] = task
    normalized["__config_path__"] = str(resolved_path)
    primary_root = _determine_primary_root(normalized, task_defaults)
    output_dir_resolved = _normalize_output_dir(
        normalized.get("output_dir"),
        task_defaults.get("output_root"),
        primary_root,
        resolved_path,
    )
    if output_dir_resolved is not None:
        normalized["output_dir"] = output_dir_resolved
    else:
        normalized.pop("output_dir", None)
    if task_defaults.get("output_root"):
        normalized["__output_root__"] = task_defaults["output_root"]

    merged_logging = _extract_logging_settings(root_config)
    if task_logging_override:
        merged_logging.update(task_logging_override)
    merged_logging = _apply_logging_defaults(
        merged_logging,
        primary_root,
        normalized.get("output_dir") or normalized.get("__output_root__"),
    )
    if merged_logging:
        normalized["__logging__"] = merged_logging
    return normalized


# ----------------------------------------------------------------------
# VALUE COERCION
# ----------------------------------------------------------------------

def coerce_age(value: Any, source: Path | str = "<arguments>") -> float | int:
    """Return ``value`` as a number of years (int when integral)."""
    if isinstance(value, bool):
        raise ValueError(f"Configuration '{source}' field 'age' must be a number.")
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Configuration '{source}' field 'age' must be a number.") from exc
    if number < 0:
        raise ValueError(f"Configuration '{source}' field 'age' must not be negative.")
    return int(number) if number.is_integer() else number


def normalize_gender(value: Any, source: Path | str = "<arguments>") -> str:
    """Return the single upper-case character used in DICOM PatientSex."""
    text = str(value).strip().upper() if value is not None else ""
    if not text:
        raise ValueError(f"Configuration '{source}' field 'gender' must not be empty.")
    return text[0]


def _apply_aliases(config: Mapping[str, Any]) -> ConfigDict:
    result: ConfigDict = {}
    for key, value in config.items():
        canonical = FIELD_ALIASES.get(key, key)
        result[canonical] = value
    return result


def _normalize_single_path(value: Any) -> str:
    if value is None:
        raise ValueError("Expected a path value, received None")
    return str(Path(value).expanduser())


def _normalize_multi_path(value: Any) -> list[str]:
    if value is None:
        raise ValueError("Expected a list of paths, received None")
    if isinstance(value, (list, tuple, set)):
        values = value
    else:
        values = [value]
    if not values:
        raise ValueError("Expected at least one path entry")
    return [str(Path(item).expanduser()) for item in values]


def _coerce_int(value: Any, field: str, config_path: Path) -> int:
    if isinstance(value, bool):
        raise ValueError(
            f"Configuration '{config_path}' field '{field}' must be an integer."
        )
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Configuration '{config_path}' field '{field}' must be an integer."
        ) from exc


def _coerce_bool(value: Any, field: str, config_path: Path) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    text = str(value).strip().lower()
    if text in YES_VALUES:
        return True
    if text in NO_VALUES:
        return False
    raise ValueError(
        f"Configuration '{config_path}' field '{field}' must be a boolean (yes/no)."
    )


# ----------------------------------------------------------------------
# SECTION EXTRACTION
# ----------------------------------------------------------------------

def _resolve_config_path(config_path: str | Path | None) -> Path:
    if config_path:
        return Path(config_path).expanduser()

    candidate = CONFIGS_DIR / DEFAULT_CONFIG_FILENAME
    if not candidate.exists():
        raise FileNotFoundError(
            f"No configuration path provided and default file not found: {candidate}"
        )
    return candidate


def _extract_task_config(root: Mapping[str, Any], task: str, config_path: Path) -> ConfigDict:
    if TASKS_SECTION_KEY in root:
        tasks_section = root.get(TASKS_SECTION_KEY) or {}
        if not isinstance(tasks_section, Mapping):
            raise ValueError(f"'tasks' section must be a mapping in {config_path}")
        if task not in tasks_section:
            raise ValueError(
                f"Configuration '{config_path}' missing task '{task}' under 'tasks' section"
            )
        task_payload = tasks_section[task] or {}
        if not isinstance(task_payload, Mapping):
            raise ValueError(f"Task '{task}' entry must be a mapping in {config_path}")
        return dict(task_payload)

    # Single-task files keep their keys at the top level.
    return {
        key: value
        for key, value in root.items()
        if key not in {LOGGING_SECTION_KEY, TASK_DEFAULTS_KEY}
    }


def _extract_logging_settings(root: Mapping[str, Any]) -> Dict[str, Any]:
    section = root.get(LOGGING_SECTION_KEY, {})
    return dict(section) if isinstance(section, Mapping) else {}


def _extract_task_defaults(root: Mapping[str, Any], config_path: Path) -> Dict[str, Any]:
    section = root.get(TASK_DEFAULTS_KEY, {})
    if not section:
        return {}
    if not isinstance(section, Mapping):
        raise ValueError(f"'{TASK_DEFAULTS_KEY}' section must be a mapping in {config_path}")

    invalid = [key for key in section if key not in TASK_DEFAULT_ALLOWED_KEYS]
    if invalid:
        invalid_keys = ", ".join(sorted(invalid))
        raise ValueError(
            f"'{TASK_DEFAULTS_KEY}' contains unsupported keys in {config_path}: {invalid_keys}"
        )

    defaults: Dict[str, Any] = {}
    if "roots" in section:
        normalized_roots = _normalize_multi_path(section["roots"])
        defaults["roots"] = normalized_roots
        defaults["primary_root"] = str(Path(normalized_roots[0]).expanduser().resolve())

    if "output_root" in section:
        value = section["output_root"]
        if value is None:
            raise ValueError(f"'output_root' in {TASK_DEFAULTS_KEY} cannot be null in {config_path}")
        candidate = Path(str(value)).expanduser()
        if not candidate.is_absolute():
            base_root = defaults.get("primary_root")
            if not base_root:
                raise ValueError(
                    f"'output_root' in {TASK_DEFAULTS_KEY} is relative but no root path is available to anchor it"
                )
            candidate = Path(base_root) / candidate
        defaults["output_root"] = str(candidate.resolve())
    return defaults


def _determine_primary_root(
    normalized: Mapping[str, Any],
    defaults: Mapping[str, Any],
) -> Optional[str]:
    roots = normalized.get("roots") or defaults.get("roots") or []
    candidate = roots[0] if roots else defaults.get("primary_root")
    if not candidate:
        return None
    return str(Path(str(candidate)).expanduser())


def _normalize_output_dir(
    value: Any,
    output_root: Optional[str],
    primary_root: Optional[str],
    config_path: Path,
) -> Optional[str]:
    raw_value_path: Optional[Path] = None
    if value is not None:
        raw_value_path = Path(str(value)).expanduser()
        if raw_value_path.is_absolute():
            return str(raw_value_path.resolve())

    if output_root:
        resolved_output_root = Path(output_root)
        if raw_value_path:
            trimmed = Path(*[part for part in raw_value_path.parts if part not in {"", "."}])
            return str((resolved_output_root / trimmed).resolve())
        return str(resolved_output_root)

    if raw_value_path is None:
        return None

    if primary_root:
        return str((Path(primary_root) / raw_value_path).resolve())
    raise ValueError(
        f"'output_dir' in {config_path} is relative but no root path is available to anchor it"
    )


def _apply_logging_defaults(
    logging_cfg: Dict[str, Any],
    primary_root: Optional[str],
    output_dir: Optional[str],
) -> Dict[str, Any]:
    if not logging_cfg and not (primary_root or output_dir):
        return {}

    cfg = dict(logging_cfg)
    base_root = (
        Path(output_dir).expanduser().resolve()
        if output_dir
        else (Path(primary_root).expanduser().resolve() if primary_root else None)
    )
    log_dir_value = cfg.get("log_dir")

    if log_dir_value:
        path = Path(str(log_dir_value)).expanduser()
        if path.is_absolute():
            cfg["log_dir"] = str(path.resolve())
        elif base_root:
            cfg["log_dir"] = str((base_root / path).resolve())
        else:
            cfg["log_dir"] = str(path.resolve())

    return cfg
