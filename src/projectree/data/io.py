import tempfile, yaml, json, os
from typing import Union, Dict, Any, Optional
from pathlib import Path
from projectree.recovery import PersistenceError, DataIntegrityError
from projectree.logs import get_logger

log = get_logger("data.io")

DATA_YAML = 0
DATA_JSON = 1

def _cleanup(temp_path: Optional[str]):
    if temp_path is not None and os.path.exists(temp_path):
        try:
            os.unlink(temp_path)
            log.debug(f"Cleaned up temporary file: {temp_path}")
        except OSError as cleanup_error:
            log.warning(f"Could not clean up temp file {temp_path}: {cleanup_error}")

def _create_dirs(file_path: Path):
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
    except (OSError, PermissionError) as e:
        error_msg = f"Cannot create directory {file_path.parent}: {e}"
        log.error(error_msg)
        raise PersistenceError(error_msg) from e

def dumps(data_type: int, data: Dict[str, Any]) -> str:
    if data_type == DATA_YAML:
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, indent=2, allow_unicode=True)
    elif data_type == DATA_JSON:
        return json.dumps(data, indent=2, ensure_ascii=False)
    raise DataIntegrityError("Unsupported Data Format")

def loads(data_type: int, text: str, source: Union[Path, str] = "<string>") -> Dict[str, Any]:
    """Parse a document, insisting on a mapping at the top level."""
    try:
        if data_type == DATA_YAML:
            data = yaml.safe_load(text)
        elif data_type == DATA_JSON:
            data = json.loads(text)
        else:
            raise DataIntegrityError("Unsupported Data Format")
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise DataIntegrityError(f"Syntax error in {source}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DataIntegrityError(f"File {source} contains invalid data structure")
    return data

def atomic_write(data_type: int, file_path: Union[Path, str], data: Dict[str, Any], create_dirs: bool = False):
    """
    Serialize and save data to a YAML or JSON file using atomic updates.
    """
    file_path = Path(file_path)
    temp_path = None

    try:
        if create_dirs:
            _create_dirs(file_path)

        # Serialize first so a bad document never touches the disk
        try:
            text = dumps(data_type, data)
        except (yaml.YAMLError, TypeError, ValueError) as e:
            error_msg = (f"Data serialization failed for {file_path}. "
                         f"In-memory data may contain non-serializable types: {e}")
            log.critical(error_msg)
            raise DataIntegrityError(error_msg) from e

        # Temporary file in the same directory as target for atomicity
        with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', dir=file_path.parent, prefix=f".{file_path.name}.", suffix='.tmp', delete=False) as temp_file:
            temp_path = temp_file.name
            temp_file.write(text)
            temp_file.flush()
            os.fsync(temp_file.fileno())

        os.replace(temp_path, file_path)
        log.debug(f"Successfully saved file: {file_path}")
        return True

    except (IOError, OSError, PermissionError) as e:
        _cleanup(temp_path)
        error_msg = f"I/O error saving file {file_path}: {e}"
        log.error(error_msg)
        raise PersistenceError(error_msg) from e

def load_yaml_file(file_path: Union[Path, str]) -> Union[None, Dict[str, Any]]:
    """
    Load and parse a YAML file.

    Returns:
        Parsed data as dict, or None if file doesn't exist
    """
    file_path = Path(file_path)
    if not file_path.exists():
        return None

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return loads(DATA_YAML, f.read(), file_path)
    except (IOError, OSError, PermissionError) as e:
        raise PersistenceError(f"Failed to read file {file_path}: {e}") from e
