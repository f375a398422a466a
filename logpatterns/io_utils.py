"""
I/O utilities: message sources, pattern database files and option files.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import yaml

from .models import PatternDataError, PatternOptions


class MessageReader:
    """
    Reader for message files.

    ``.yaml``/``.yml`` files hold a list of strings, ``.jsonl`` files hold
    one string (or an object with a ``message`` key) per line; anything
    else is read as plain text, one message per non-empty line.
    """

    def __init__(self, file_path: str):
        self.file_path = Path(file_path)

    def read_messages(self) -> List[str]:
        """Read all messages in file order."""
        return list(self)

    def __iter__(self) -> Iterator[str]:
        suffix = self.file_path.suffix.lower()
        if suffix in (".yaml", ".yml"):
            yield from self._read_yaml()
        elif suffix == ".jsonl":
            yield from self._read_jsonl()
        else:
            yield from self._read_text()

    def batches(self, size: int) -> Iterator[List[str]]:
        """Yield consecutive chunks of at most ``size`` messages."""
        if size < 1:
            raise ValueError("batch size must be positive")
        batch = []
        for message in self:
            batch.append(message)
            if len(batch) >= size:
                yield batch
                batch = []
        if batch:
            yield batch

    def _read_yaml(self) -> List[str]:
        with open(self.file_path, 'r', encoding='utf-8') as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise PatternDataError(f"{self.file_path}: invalid YAML: {e}") from e
        if data is None:
            return []
        if not isinstance(data, list):
            raise PatternDataError(f"{self.file_path}: expected a list of messages")
        for n, item in enumerate(data):
            if not isinstance(item, str):
                raise PatternDataError(
                    f"{self.file_path}: item #{n} is not a string: {item!r}")
        return data

    def _read_jsonl(self) -> Iterator[str]:
        with open(self.file_path, 'r', encoding='utf-8') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    item = json.loads(line)
                except json.JSONDecodeError as e:
                    raise PatternDataError(
                        f"{self.file_path}:{line_num}: invalid JSON: {e}") from e
                if isinstance(item, dict):
                    item = item.get("message")
                if not isinstance(item, str):
                    raise PatternDataError(
                        f"{self.file_path}:{line_num}: expected a string or a 'message' field")
                yield item

    def _read_text(self) -> Iterator[str]:
        with open(self.file_path, 'r', encoding='utf-8', errors='replace') as f:
            for line in f:
                line = line.rstrip('\r\n')
                if line.strip():
                    yield line


class PatternDatabaseFile:
    """
    JSON file holding a dumped pattern database.
    """

    def __init__(self, file_path: str):
        self.file_path = Path(file_path)

    def exists(self) -> bool:
        return self.file_path.exists()

    def read(self) -> Optional[Dict[str, Any]]:
        """Parsed database, or None when the file does not exist."""
        if not self.file_path.exists():
            return None
        with open(self.file_path, 'r', encoding='utf-8') as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise PatternDataError(f"{self.file_path}: invalid JSON: {e}") from e

    def write(self, data: Dict[str, Any]) -> None:
        """Write the database tab-indented, creating parent directories."""
        ensure_directory(str(self.file_path.parent))
        with open(self.file_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent='\t')
            f.write('\n')


def load_options(file_path: str) -> PatternOptions:
    """Read ``PatternOptions`` from a YAML or JSON mapping."""
    path = Path(file_path)
    with open(path, 'r', encoding='utf-8') as f:
        try:
            # JSON is a subset of YAML, so one parser serves both
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise PatternDataError(f"{path}: invalid options file: {e}") from e
    return PatternOptions.from_mapping(data or {})


def ensure_directory(path: str) -> Path:
    """Ensure directory exists and return Path object."""
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path
