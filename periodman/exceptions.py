"""
Exceptions for Periodman.

Admin-side errors are ScheduleError subclasses with a structured code for
programmatic handling. The checkout engine never lets any of them escape.
"""

from typing import Any


class BaseError(Exception):
    """
    Exception with a code, a human-readable message and context data.

    Usage:
        raise ScheduleError('INVALID_WINDOW', merchandise_id=vid)
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.code!r}, {self.data!r})"

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {k: str(v) for k, v in self.data.items()},
        }


class ScheduleError(BaseError):
    """
    Structured exception for schedule operations.

    Usage:
        try:
            schedule.create(shop, product_id, title, windows)
        except ScheduleError as e:
            if e.code == 'ALREADY_SCHEDULED':
                ...

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages = {
        'INVALID_WINDOW': 'Período inválido (início deve ser anterior ou igual ao fim)',
        'INVALID_MERCHANDISE': 'Variante inválida',
        'DUPLICATE_MERCHANDISE': 'Variante repetida no mesmo produto',
        'ALREADY_SCHEDULED': 'Produto já possui período de venda',
        'SCHEDULE_NOT_FOUND': 'Período de venda não encontrado',
        'STORAGE_FAILURE': 'Falha ao gravar período de venda',
        'PUBLISH_FAILED': 'Não foi possível salvar os dados na loja',
        'PUBLISH_REJECTED': 'A loja rejeitou os dados do período de venda',
        'PUBLISH_UNCONFIRMED': 'A loja não confirmou o valor gravado',
        'RETRACT_FAILED': 'Não foi possível remover os dados da loja',
        'RETRACT_REJECTED': 'A loja rejeitou a remoção dos dados',
    }

    @property
    def catalog_item_id(self) -> str | None:
        """Shortcut for data['catalog_item_id']."""
        return self.data.get('catalog_item_id')


class ValidationError(ScheduleError):
    """Malformed merchant input. Never persisted."""


class ConflictError(ScheduleError):
    """A schedule already exists for this catalog item in this scope."""


class NotFoundError(ScheduleError):
    """No schedule with this id in this scope."""


class StorageError(ScheduleError):
    """Record store unavailable or write failed."""


class PublishError(ScheduleError):
    """Writing the published document to the catalog failed."""


class RetractError(ScheduleError):
    """Removing the published document from the catalog failed."""


class DocumentError(ValueError):
    """
    A published document does not have the expected shape.

    code is the ScheduleError code the problem maps to when the same shape
    arrives as merchant input.
    """

    def __init__(self, message: str, code: str = "INVALID_WINDOW"):
        self.code = code
        super().__init__(message)
