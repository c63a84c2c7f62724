# ===================================== IMPORTS ====================================== #

# Standard Library Imports
import yaml
from pathlib import Path
from typing import Any, Dict, Union

# Local Imports
from amplicon_eda import constants
from amplicon_eda.errors import MissingFileError

# ==================================== FUNCTIONS ===================================== #

def resolve_relative_paths(config: Dict, config_dir: Path) -> Dict:
    """Converts any relative paths in the configuration to absolute paths based on 
    the directory of the config file."""
    for key, value in config.items():
        if isinstance(value, str):
            # Check if the value is a relative path
            if value.startswith("./") or value.startswith("../"):
                config[key] = (config_dir / value).resolve()
        elif isinstance(value, dict):
            config[key] = resolve_relative_paths(value, config_dir)
    return config


def get_config(
    config_path: Union[str, Path] = constants.DEFAULT_CONFIG
) -> Dict:
    config_path = Path(config_path)
    if not config_path.is_file():
        raise MissingFileError(f"Config file not found: {config_path}")
    
    with open(config_path, "r") as file:
        config = yaml.safe_load(file) or {}
    
    config_dir = config_path.resolve().parent
    config = resolve_relative_paths(config, config_dir)
    
    return config


def get_section(config: Dict, name: str) -> Dict[str, Any]:
    """Return a config section, treating a missing or null section as empty."""
    section = config.get(name)
    return section if isinstance(section, dict) else {}
