"""
Settings for projectree, read from a YAML config file and the environment.
"""
import os
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from .data.io import load_yaml_file
from .logs import get_logger
from .recovery import DataIntegrityError, PersistenceError, ValidationFailure

log = get_logger("config")

CONFIG_FILE = Path.home() / ".config" / "projectree" / "config.yml"
DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "projectree" / "data"

ENV_OVERRIDES = {
    "PROJECTREE_DATA_DIR": "data_dir",
    "PROJECTREE_BACKEND": "backend",
    "PROJECTREE_USER": "user_id",
}


class Settings(BaseModel):
    data_dir: Path = Field(default=DEFAULT_DATA_DIR, description="Where the file store keeps documents")
    backend: Literal["file", "memory"] = Field(default="file", description="Document store provider")
    user_id: Optional[str] = Field(default=None, description="Id of the signed-in user")
    user_name: str = Field(default="", description="Display name of the signed-in user")
    user_email: str = Field(default="", description="Email of the signed-in user")


def load_settings(path: Union[str, Path, None] = None) -> Settings:
    """
    Load settings from ``path`` (or the default config file), then apply
    environment overrides. A missing file means defaults.
    """
    path = Path(path) if path else CONFIG_FILE
    try:
        data = load_yaml_file(path)
    except (DataIntegrityError, PersistenceError) as e:
        raise ValidationFailure(f"Error loading config file {path}: {e}") from e
    if data is None:
        data = {}
    else:
        log.debug(f"Loaded config from {path}")

    for env_key, field in ENV_OVERRIDES.items():
        value = os.getenv(env_key)
        if value:
            data[field] = value

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ValidationFailure(f"Invalid settings: {e}") from e
