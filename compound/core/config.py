"""Central configuration.

Env vars:
  COMPOUND_DATA_DIR        - host data folder; configuration documents resolve relative to it
  COMPOUND_COMPONENTS_DIR  - name of the components folder created under the data folder
  COMPOUND_LOG_LEVEL       - logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
  COMPOUND_COLOR_CHAR      - alternate color-code character used by colorized strings
  COMPOUND_STRICT_CONFIG   - when false, a failed configuration bind only warns
"""
from pathlib import Path
from pydantic import BaseModel
from dotenv import load_dotenv
import os
from compound import __version__

# Optionally load a config.env file so local runs can keep overrides out of the
# shell environment. COMPOUND_CONFIG_FILE points at an explicit file.
_candidates = []
_cfg_override = os.getenv('COMPOUND_CONFIG_FILE')
if _cfg_override:
    _candidates.append(Path(_cfg_override))
_candidates.append(Path.cwd() / 'config.env')

for _p in _candidates:
    try:
        if _p.exists():
            load_dotenv(str(_p))
            break
    except OSError:
        continue


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    app_name: str = 'compound'
    version: str = __version__
    data_dir: Path = Path.cwd() / 'data'
    components_dir: str = 'components'
    log_level: str = 'INFO'
    color_char: str = '&'
    strict_config: bool = True

    @property
    def components_path(self) -> Path:
        return self.data_dir / self.components_dir


def load_settings() -> Settings:
    """Build settings from the current environment."""
    values: dict = {}
    data_dir = os.getenv('COMPOUND_DATA_DIR')
    if data_dir:
        values['data_dir'] = Path(data_dir)
    components_dir = os.getenv('COMPOUND_COMPONENTS_DIR')
    if components_dir:
        values['components_dir'] = components_dir
    log_level = os.getenv('COMPOUND_LOG_LEVEL')
    if log_level:
        values['log_level'] = log_level
    color_char = os.getenv('COMPOUND_COLOR_CHAR')
    if color_char:
        values['color_char'] = color_char
    values['strict_config'] = _env_flag('COMPOUND_STRICT_CONFIG', True)
    return Settings(**values)


settings = load_settings()
