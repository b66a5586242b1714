"""
Shared callback containers and logging mixins for services.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Generic, Optional, Protocol, TypeVar, runtime_checkable

TCb = TypeVar("TCb", bound="LoggingCallbacks")
TCallbacks = TypeVar("TCallbacks", bound="BaseCallbacks")

logger = logging.getLogger(__name__)


@runtime_checkable
class LoggingCallbacks(Protocol):
    on_error: Optional[Callable[[str], None]]
    on_log: Optional[Callable[[str], None]]


@dataclass
class BaseCallbacks:
    on_error: Optional[Callable[[str], None]] = None
    on_log: Optional[Callable[[str], None]] = None


def build_callbacks(callback_cls: type[TCallbacks], **kwargs) -> TCallbacks:
    return callback_cls(**kwargs)


class LoggingMixin(Generic[TCb]):
    """
    Routes log and error messages to the injected callbacks,
    falling back to the module logger when none are set.
    """

    _callbacks: TCb

    def _log(self, message: str) -> None:
        cb = getattr(self, "_callbacks", None)
        if cb and cb.on_log:
            cb.on_log(message)
        else:
            logger.info(message)

    def _emit_error(self, error: str) -> None:
        self._log(f"❌ {error}")
        cb = getattr(self, "_callbacks", None)
        if cb and cb.on_error:
            cb.on_error(error)
