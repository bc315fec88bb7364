import yaml
from pathlib import Path
import os
import logging

# Environment variables that override individual base directories
_BASE_DIR_ENV_OVERRIDES = {
    'workspace': 'DORISLIFT_WORKSPACE_DIR',
    'logs': 'DORISLIFT_LOGS_DIR',
}


def load_config(settings_path=None):
    """Load configuration from settings.yaml located in the package directory.

    ``DORISLIFT_SETTINGS`` may point to an alternate YAML file.
    """
    try:
        package_config_dir = Path(__file__).parent
        package_dir = package_config_dir.parent
        project_root = package_dir.parent

        if settings_path is None:
            env_settings = os.getenv('DORISLIFT_SETTINGS')
            settings_path = Path(env_settings) if env_settings else package_dir / 'settings.yaml'
        settings_path = Path(settings_path)

        if not settings_path.exists():
            logging.error(f"Critical: settings.yaml not found at expected path: {settings_path}")
            raise FileNotFoundError(f"settings.yaml not found at {settings_path}")

        with open(settings_path, encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if not config_data:
            config_data = {}
            logging.warning(f"settings.yaml at {settings_path} is empty or invalid.")

        # Ensure base_dirs paths are absolute, resolved from project_root
        resolved_base_dirs = {}
        for key, path_str in (config_data.get('base_dirs') or {}).items():
            if isinstance(path_str, str) and not os.path.isabs(path_str):
                resolved_base_dirs[key] = str((project_root / path_str).resolve())
            else:
                resolved_base_dirs[key] = path_str

        for key, env_name in _BASE_DIR_ENV_OVERRIDES.items():
            override = os.getenv(env_name)
            if override:
                resolved_base_dirs[key] = str(Path(override).resolve())

        resolved_base_dirs.setdefault('workspace', str((project_root / 'workspace').resolve()))
        resolved_base_dirs.setdefault('logs', str((project_root / 'logs').resolve()))
        resolved_base_dirs.setdefault('conversion_rules', str(package_config_dir / 'conversion'))
        config_data['base_dirs'] = resolved_base_dirs

        return config_data

    except FileNotFoundError as fnfe:
        logging.error(f"Configuration Error: {fnfe}", exc_info=True)
        raise
    except yaml.YAMLError as ye:
        logging.error(f"Error parsing {settings_path}: {ye}", exc_info=True)
        raise Exception(f"Failed to load application configuration: {ye}") from ye


# Load config at import time
try:
    config = load_config()
except Exception as e:
    logging.critical(f"CRITICAL FAILURE: Could not load application settings. Error: {e}", exc_info=True)
    raise SystemExit(f"Application cannot start due to configuration load failure: {e}")
