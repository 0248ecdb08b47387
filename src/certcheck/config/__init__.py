import logging
from os import path
from pathlib import Path
from copy import deepcopy
from typing import Union

import yaml
from pydantic import ValidationError

from ..exceptions import ConfigurationError
from ..models import CheckConfig

__module__ = "certcheck.config"

logger = logging.getLogger(__name__)
DEFAULT_CONFIG = ".check-cert.yaml"
CONFIG_PATH = f"{path.expanduser('~')}/.config/check-cert"


def _deep_merge(*args) -> dict:
    assert len(args) >= 2, "_deep_merge requires at least two dicts to merge"
    result = deepcopy(args[0])
    if not isinstance(result, dict):
        raise AttributeError(
            f"_deep_merge only takes dict arguments, got {type(result)} {result}"
        )
    for merge_dict in args[1:]:
        if not isinstance(merge_dict, dict):
            raise AttributeError(
                f"_deep_merge only takes dict arguments, got {type(merge_dict)} {merge_dict}"
            )
        for key, merge_val in merge_dict.items():
            result_val = result.get(key)
            if isinstance(result_val, dict) and isinstance(merge_val, dict):
                result[key] = _deep_merge(result_val, merge_val)
            else:
                result[key] = deepcopy(merge_val)
    return result


def base_config() -> dict:
    return yaml.safe_load(
        Path(path.join(str(Path(__file__).parent), "base.yaml")).read_bytes()
    )


def load_config(filename: str = DEFAULT_CONFIG) -> dict:
    config_path = Path(filename).expanduser()
    if not config_path.is_file():
        return {}
    logger.debug(f"loading configuration from {config_path.absolute()}")
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf8"))
    except yaml.YAMLError as ex:
        raise ConfigurationError(f"invalid YAML in {config_path}: {ex}") from ex
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"{config_path} must contain a mapping, got {type(data).__name__}"
        )
    return data


def get_config(
    custom_values: Union[dict, None] = None, config_path: Union[str, None] = None
) -> dict:
    """Merges built-in defaults, the user file, an explicit file then custom values

    Later sources win.
    """
    sources = [
        base_config(),
        load_config(path.join(CONFIG_PATH, DEFAULT_CONFIG)),
    ]
    if config_path:
        if not Path(config_path).expanduser().is_file():
            raise ConfigurationError(f"configuration file {config_path} not found")
        sources.append(load_config(config_path))
    sources.append(custom_values or {})
    combined = _deep_merge(*sources)
    logger.debug(f"merged configuration from {len(sources)} sources: {combined}")
    return combined


def build_check_config(values: dict) -> CheckConfig:
    """Validated configuration, any rule violation raises ConfigurationError"""
    try:
        return CheckConfig(**values)
    except ValidationError as ex:
        messages = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'config'}: {error['msg']}"
            for error in ex.errors()
        )
        raise ConfigurationError(messages) from ex
