"""Persisted model preference and process-scoped completion parameters.

Only the selected model id survives restarts: it is read once at startup and
written through on every change. Completion parameters live for the process.
"""

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from chatstream.constants import (
    ATTACHMENT_RESTRICTED_MODEL_ID,
    DEFAULT_MODEL_ID,
    MODEL_IDS,
    PREFERRED_MODEL_KEY,
)
from chatstream.models.schemas import CompletionParams

logger = logging.getLogger(__name__)


class PreferenceBackend(Protocol):
    """Key-value storage for persisted preferences."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryPreferenceBackend:
    """Non-persistent backend, handy for tests and throwaway sessions."""

    def __init__(self, values: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(values or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


class JsonFilePreferenceBackend:
    """Stores preferences as a flat JSON object in a single file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable preferences file {self._path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")


class PreferenceStore:
    """Selected model id plus completion parameters.

    Args:
        backend: Where the model id is persisted.
    """

    def __init__(self, backend: PreferenceBackend) -> None:
        self._backend = backend
        self._model_id = DEFAULT_MODEL_ID
        self.completion_params = CompletionParams()

    @property
    def model_id(self) -> str:
        return self._model_id

    def load(self) -> str:
        """Read the persisted model id, falling back to the default.

        Returns:
            The model id now in effect.
        """
        stored = self._backend.get(PREFERRED_MODEL_KEY)
        if stored in MODEL_IDS:
            self._model_id = stored
        else:
            if stored is not None:
                logger.warning(f"Unknown stored model {stored!r}, using {DEFAULT_MODEL_ID}")
            self._model_id = DEFAULT_MODEL_ID
        return self._model_id

    def select_model(self, model_id: str) -> None:
        """Change the model and persist it.

        Raises:
            ValueError: If the model id is not one of the known options.
        """
        if model_id not in MODEL_IDS:
            raise ValueError(f"Unknown model: {model_id}")
        self._model_id = model_id
        self._backend.set(PREFERRED_MODEL_KEY, model_id)

    def update_completion_params(self, **changes: Any) -> CompletionParams:
        """Apply validated changes to the completion parameters.

        Raises:
            pydantic.ValidationError: If a value is out of range.
        """
        self.completion_params = CompletionParams.model_validate(
            {**self.completion_params.model_dump(), **changes}
        )
        return self.completion_params

    def accepts_attachments(self) -> bool:
        return self._model_id != ATTACHMENT_RESTRICTED_MODEL_ID
