"""BaseService — shared foundation for the fieldctl service facade.

Every service receives the resolved :class:`FieldctlSettings` and an
optional plugin manager. Services never raise for expected failures; they
return a :class:`ServiceResult` with a :class:`ServiceError`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fieldctl.config.settings import FieldctlSettings
from fieldctl.domain.errors import (
    CompileError,
    DigitOverflowError,
    FieldctlError,
    FormDefinitionError,
)
from fieldctl.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from fieldctl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

_ERROR_CODES: tuple[tuple[type[FieldctlError], str], ...] = (
    (CompileError, "INVALID_MASK"),
    (FormDefinitionError, "INVALID_DEFINITION"),
    (DigitOverflowError, "DIGIT_OVERFLOW"),
)


class BaseService:
    """Abstract base for all service-layer classes."""

    def __init__(
        self,
        settings: FieldctlSettings | None = None,
        plugins: PluginManager | None = None,
    ) -> None:
        self._settings = settings or FieldctlSettings()
        self._plugins = plugins

    @staticmethod
    def _failure(op: str, exc: FieldctlError, **detail: Any) -> ServiceResult:
        """Convert a domain error into a failed ServiceResult."""
        code = "INVALID_VALUE"
        for error_type, error_code in _ERROR_CODES:
            if isinstance(exc, error_type):
                code = error_code
                break
        if isinstance(exc, CompileError):
            detail = {**detail, "position": exc.position, "char": exc.char, "reason": exc.reason}
        logger.debug("%s failed: %s", op, exc)
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(code=code, message=str(exc), detail=detail),
        )

    def _predicates(self, warnings: list[str]) -> dict[str, Any]:
        """Named predicates contributed by plugins.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        if self._plugins is None or not self._settings.plugins.enabled:
            return {}
        try:
            return self._plugins.collect_predicates()
        except Exception:
            logger.debug("Predicate collection failed", exc_info=True)
            warnings.append("Plugin predicate collection failed")
            return {}
