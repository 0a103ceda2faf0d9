"""Долговременное key/value хранилище для данных сессии."""

import json
import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Union

from flitcar_admin.config import get_settings

logger = logging.getLogger(__name__)

_CLIENT_ID_RE = re.compile(r"[0-9a-f]{32}")


class KeyValueStorage(ABC):
    """
    Строковое key/value хранилище в духе localStorage.

    set_items и remove_items меняют несколько ключей одной записью.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Получить значение по ключу или None"""

    @abstractmethod
    def set_items(self, items: Mapping[str, str]) -> None:
        """Записать несколько значений одной операцией"""

    @abstractmethod
    def remove_items(self, keys: Iterable[str]) -> None:
        """Удалить несколько ключей одной операцией"""

    def set_item(self, key: str, value: str) -> None:
        self.set_items({key: value})

    def remove_item(self, key: str) -> None:
        self.remove_items([key])


class MemoryStorage(KeyValueStorage):
    """Хранилище в памяти (тесты и запуск без диска)."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_items(self, items: Mapping[str, str]) -> None:
        self._data.update(items)

    def remove_items(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        """Копия содержимого хранилища"""
        return dict(self._data)


class JSONFileStorage(KeyValueStorage):
    """
    Хранилище в JSON файле.

    Каждая запись переписывает файл целиком через временный файл и
    os.replace, поэтому после сбоя на диске остается либо старая, либо
    новая версия, но не смесь.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        """
        Args:
            path: Путь к файлу (допускается ~)
        """
        self.path = Path(path).expanduser()

    def _load(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning(f"[STORAGE] Failed to read {self.path}: {e}")
            return {}

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning(f"[STORAGE] Corrupted storage file {self.path}, ignoring contents")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"[STORAGE] Unexpected storage layout in {self.path}, ignoring contents")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _dump(self, data: Mapping[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".session-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(dict(data), tmp, ensure_ascii=False)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_items(self, items: Mapping[str, str]) -> None:
        data = self._load()
        data.update(items)
        self._dump(data)

    def remove_items(self, keys: Iterable[str]) -> None:
        data = self._load()
        changed = False
        for key in keys:
            if data.pop(key, None) is not None:
                changed = True
        if changed:
            self._dump(data)


def is_valid_client_id(client_id: Optional[str]) -> bool:
    """Идентификатор браузера: uuid4 в hex, без символов пути"""
    return bool(client_id) and _CLIENT_ID_RE.fullmatch(client_id) is not None


def client_storage(client_id: str, directory: Optional[Union[str, Path]] = None) -> JSONFileStorage:
    """
    Отдельный файл сессии для одного браузера.

    Args:
        client_id: Идентификатор браузера
        directory: Каталог файлов сессий (по умолчанию из настроек)

    Returns:
        JSONFileStorage для <directory>/<client_id>.json

    Raises:
        ValueError: Идентификатор не похож на uuid4 hex
    """
    if not is_valid_client_id(client_id):
        raise ValueError(f"Invalid client id: {client_id!r}")
    if directory is None:
        directory = get_settings().storage_dir
    return JSONFileStorage(Path(directory).expanduser() / f"{client_id}.json")
