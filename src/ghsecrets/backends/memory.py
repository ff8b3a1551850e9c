"""In-memory backup store."""

from __future__ import annotations

from ghsecrets.backends.base import KeyedBlobStoreBase
from ghsecrets.core.exceptions import SecretNotFoundError
from ghsecrets.observability.logging import get_logger

logger = get_logger(__name__)


class InMemorySecretsBackend(KeyedBlobStoreBase):
    """
    Backup store kept in a dict.

    Used as a test double and for dry runs. Slots must be created with
    ``create()`` (or ``initial``) before they can be read; ``put`` on an
    unknown slot creates it, like the real adapters' write calls do for
    provisioned slots. Errors set with ``set_error`` are raised by the
    named operation until cleared.
    """

    def __init__(self, initial: dict[str, str] | None = None, name: str = "memory") -> None:
        self._slots: dict[str, str] = dict(initial or {})
        self._name = name
        self._errors: dict[str, Exception] = {}
        self.get_calls: list[str] = []
        self.put_calls: list[tuple[str, str]] = []

    @property
    def backend_name(self) -> str:
        return self._name

    @property
    def slots(self) -> dict[str, str]:
        """Copy of the raw stored values."""
        return dict(self._slots)

    def create(self, name: str, value: str = "") -> None:
        """Provision a slot."""
        self._slots[name] = value

    def set_error(self, operation: str, error: Exception | None) -> None:
        """Make ``get`` or ``put`` raise ``error`` (None clears it)."""
        if error is None:
            self._errors.pop(operation, None)
        else:
            self._errors[operation] = error

    async def get(self, name: str) -> str:
        self.get_calls.append(name)
        if "get" in self._errors:
            raise self._errors["get"]
        if name not in self._slots:
            raise SecretNotFoundError(name, self.backend_name)
        return self._slots[name]

    async def put(self, name: str, value: str) -> None:
        self.put_calls.append((name, value))
        if "put" in self._errors:
            raise self._errors["put"]
        self._slots[name] = value
        logger.debug("Stored in-memory secret", secret_name=name)

    async def health_check(self) -> bool:
        return True
