import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional

from dorislift.config import config as app_global_config
from ..errors import UnsupportedDialectError
from .dialect_utils import dialect_pair_key


def conversion_rules_root() -> Path:
    return Path(app_global_config['base_dirs']['conversion_rules'])


def load_json_from_conversion_config(
    logger: Any,
    source_type: str,
    target_type: str,
    rules_subdirectory: Optional[str],  # e.g. 'ddl_conversion_rules', or None for the pair root
    config_filename: str
) -> Dict:
    """
    Loads a JSON configuration file from the structured conversion config directory.
    Expected path structure: <conversion_rules>/{source}_{target}/[{rules_subdirectory}/]{config_filename}

    Missing files are expected for pairs without custom rules and yield ``{}``.
    """
    effective_logger = logger if logger is not None else logging.getLogger(__name__)
    full_config_path = "an unspecified path"
    try:
        pair = dialect_pair_key(source_type, target_type)
        base_conversion_path = conversion_rules_root() / pair
        if rules_subdirectory:
            base_conversion_path = base_conversion_path / rules_subdirectory
        full_config_path = base_conversion_path / config_filename

        if not full_config_path.exists():
            effective_logger.info(f"Configuration file not found (this may be expected): {full_config_path}")
            return {}

        with open(full_config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
            effective_logger.debug(f"Successfully loaded configuration from {full_config_path}")
            return data
    except UnsupportedDialectError as ude:
        effective_logger.error(f"Cannot construct config path for {config_filename}: {ude}")
        return {}
    except json.JSONDecodeError as jde:
        effective_logger.error(f"Error decoding JSON from {str(full_config_path)}: {jde}", exc_info=True)
        return {}
    except (IOError, OSError) as ioe:
        effective_logger.error(f"File system error (IOError/OSError) loading configuration file {str(full_config_path)}: {ioe}", exc_info=True)
        return {}


def list_conversion_configs() -> Dict[str, list[str]]:
    """Return every dialect pair directory with the rule files it ships."""
    root = conversion_rules_root()
    if not root.is_dir():
        return {}
    return {
        pair_dir.name: sorted(str(p.relative_to(pair_dir)).replace('\\', '/') for p in pair_dir.rglob('*.json'))
        for pair_dir in sorted(root.iterdir())
        if pair_dir.is_dir()
    }
