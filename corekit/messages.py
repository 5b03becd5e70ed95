"""Leveled, per-domain message logging with replaceable handlers."""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Any, Callable, Optional

__all__ = [
    "LogLevelFlags",
    "FatalLogError",
    "MessageSystem",
    "LOG_LEVEL_USER_SHIFT",
    "LOG_LEVEL_MASK",
    "LOG_FATAL_MASK",
    "LOG_DOMAIN_GLIB",
    "format_default_message",
    "default_messages",
    "log",
    "warning",
]


class LogLevelFlags(IntFlag):
    """Log levels and the two flags that may accompany them."""

    FLAG_RECURSION = 1 << 0
    FLAG_FATAL = 1 << 1
    LEVEL_ERROR = 1 << 2
    LEVEL_CRITICAL = 1 << 3
    LEVEL_WARNING = 1 << 4
    LEVEL_MESSAGE = 1 << 5
    LEVEL_INFO = 1 << 6
    LEVEL_DEBUG = 1 << 7


LOG_LEVEL_USER_SHIFT = 8
LOG_LEVEL_MASK = ~int(LogLevelFlags.FLAG_RECURSION | LogLevelFlags.FLAG_FATAL)
LOG_FATAL_MASK = int(LogLevelFlags.FLAG_RECURSION | LogLevelFlags.LEVEL_ERROR)
LOG_DOMAIN_GLIB = "GLib"

_MESSAGE_LIMIT = 1024
_NULL_MESSAGE = "g_log_default_handler(): (NULL) message"

LogFunc = Callable[[Optional[str], LogLevelFlags, str, Any], None]
PrintFunc = Callable[[str], None]


class FatalLogError(Exception):
    """Raised after a message at a fatal level has been handled."""

    def __init__(self, domain: Optional[str], level: int, message: str) -> None:
        super().__init__(message)
        self.domain = domain
        self.level = LogLevelFlags(level)
        self.message = message


@dataclass
class _Handler:
    id: int
    log_levels: int
    func: LogFunc
    user_data: Any


@dataclass
class _Domain:
    fatal_mask: int = LOG_FATAL_MASK
    handlers: list[_Handler] = field(default_factory=list)

    @property
    def is_default(self) -> bool:
        return self.fatal_mask == LOG_FATAL_MASK and not self.handlers


def format_default_message(domain: Optional[str], level: int, message: Optional[str]) -> str:
    """Return the text the default handler writes for one message."""
    level = int(level)
    in_recursion = bool(level & LogLevelFlags.FLAG_RECURSION)
    is_fatal = bool(level & LogLevelFlags.FLAG_FATAL)
    level &= LOG_LEVEL_MASK
    if message is None:
        message = _NULL_MESSAGE
    ending = "\naborting...\n" if is_fatal else "\n"
    recursed = " (recursed)" if in_recursion else ""

    loud = {
        LogLevelFlags.LEVEL_ERROR: "ERROR",
        LogLevelFlags.LEVEL_CRITICAL: "CRITICAL",
        LogLevelFlags.LEVEL_WARNING: "WARNING",
    }
    quiet = {
        LogLevelFlags.LEVEL_MESSAGE: "Message",
        LogLevelFlags.LEVEL_INFO: "INFO",
        LogLevelFlags.LEVEL_DEBUG: "DEBUG",
    }
    if level in loud:
        prefix = f"\n{domain}-" if domain is not None else "\n** "
        return f"{prefix}{loud[level]}{recursed} **: {message}{ending}"
    if level in quiet:
        prefix = f"{domain}-" if domain is not None else ""
        return f"{prefix}{quiet[level]}{recursed}: {message}{ending}"

    if domain is not None:
        head = f"{domain}-LOG (recursed:" if in_recursion else f"{domain}-LOG ("
    else:
        head = "LOG (recursed:" if in_recursion else "LOG ("
    tail = f"0x{level.bit_length() - 1:02X}): " if level else "): "
    return f"{head}{tail}{message}{ending}"


class MessageSystem:
    """Per-domain handlers, fatal masks and print hooks."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._domains: dict[str, _Domain] = {}
        self._always_fatal = LOG_FATAL_MASK
        self._handler_id = 0
        self._print_func: Optional[PrintFunc] = None
        self._printerr_func: Optional[PrintFunc] = None
        self._error_func: Optional[PrintFunc] = None
        self._warning_func: Optional[PrintFunc] = None
        self._message_func: Optional[PrintFunc] = None
        self._local = threading.local()

    def _domain(self, name: str, create: bool = False) -> Optional[_Domain]:
        with self._lock:
            domain = self._domains.get(name)
            if domain is None and create:
                domain = self._domains[name] = _Domain()
            return domain

    def _drop_if_default(self, name: str) -> None:
        with self._lock:
            domain = self._domains.get(name)
            if domain is not None and domain.is_default:
                del self._domains[name]

    def set_always_fatal(self, fatal_mask: int) -> LogLevelFlags:
        """Set the levels that are fatal in every domain; return the old mask."""
        fatal_mask = int(fatal_mask) & ((1 << LOG_LEVEL_USER_SHIFT) - 1)
        fatal_mask |= LogLevelFlags.LEVEL_ERROR
        fatal_mask &= ~LogLevelFlags.FLAG_FATAL
        with self._lock:
            old, self._always_fatal = self._always_fatal, fatal_mask
        return LogLevelFlags(old)

    def set_fatal_mask(self, domain: Optional[str], fatal_mask: int) -> LogLevelFlags:
        """Set the fatal levels of one domain; return the old mask."""
        name = domain if domain is not None else ""
        fatal_mask = int(fatal_mask) | LogLevelFlags.LEVEL_ERROR
        fatal_mask &= ~LogLevelFlags.FLAG_FATAL
        with self._lock:
            record = self._domain(name, create=True)
            old, record.fatal_mask = record.fatal_mask, fatal_mask
            self._drop_if_default(name)
        return LogLevelFlags(old)

    def set_handler(
        self, domain: Optional[str], log_levels: int, func: LogFunc, user_data: Any = None
    ) -> int:
        """Install a handler for the given levels of a domain; return its id."""
        if int(log_levels) & LOG_LEVEL_MASK == 0:
            raise ValueError("log_levels must name at least one level")
        if func is None:
            raise ValueError("a handler function is required")
        name = domain if domain is not None else ""
        with self._lock:
            record = self._domain(name, create=True)
            self._handler_id += 1
            handler = _Handler(self._handler_id, int(log_levels), func, user_data)
            record.handlers.insert(0, handler)
            return handler.id

    def remove_handler(self, domain: Optional[str], handler_id: int) -> None:
        """Remove a handler; log a warning if it cannot be found."""
        if handler_id <= 0:
            raise ValueError("handler_id must be positive")
        name = domain if domain is not None else ""
        with self._lock:
            record = self._domain(name)
            if record is not None:
                for handler in record.handlers:
                    if handler.id == handler_id:
                        record.handlers.remove(handler)
                        self._drop_if_default(name)
                        return
        self.log(
            None,
            LogLevelFlags.LEVEL_WARNING,
            "g_log_remove_handler(): could not find handler with id `%d' for domain \"%s\"",
            handler_id,
            name,
        )

    def _handler_for(self, domain: Optional[_Domain], level: int) -> tuple[LogFunc, Any]:
        if domain is not None and level:
            with self._lock:
                for handler in domain.handlers:
                    if handler.log_levels & level == level:
                        return handler.func, handler.user_data
        return self.default_handler, None

    def log(self, domain: Optional[str], level: int, message: str, *args: Any) -> None:
        """Dispatch a message once per level bit, highest bit first.

        Raises FatalLogError after handling a level that is fatal.
        """
        level = int(level) & LOG_LEVEL_MASK
        if not level:
            return
        text = message % args if args else message
        text = text[:_MESSAGE_LIMIT]

        for bit in range(level.bit_length() - 1, -1, -1):
            test_level = 1 << bit
            if not level & test_level:
                continue
            record = self._domain(domain if domain is not None else "")
            depth = getattr(self._local, "depth", 0)
            if depth:
                test_level |= LogLevelFlags.FLAG_RECURSION
            with self._lock:
                fatal_mask = record.fatal_mask if record is not None else LOG_FATAL_MASK
                if (fatal_mask | self._always_fatal) & test_level:
                    test_level |= LogLevelFlags.FLAG_FATAL
            func, data = self._handler_for(record, test_level)
            self._local.depth = depth + 1
            try:
                func(domain, LogLevelFlags(test_level), text, data)
                if test_level & LogLevelFlags.FLAG_FATAL:
                    raise FatalLogError(domain, test_level, text)
            finally:
                self._local.depth = depth

    def default_handler(
        self, domain: Optional[str], level: int, message: Optional[str], user_data: Any = None
    ) -> None:
        """Write a message to stdout or stderr, or pass it to a legacy hook."""
        masked = int(level) & LOG_LEVEL_MASK
        if message is None:
            message = _NULL_MESSAGE
        with self._lock:
            legacy = {
                LogLevelFlags.LEVEL_ERROR: self._error_func,
                LogLevelFlags.LEVEL_WARNING: self._warning_func,
                LogLevelFlags.LEVEL_MESSAGE: self._message_func,
            }.get(masked)
        if domain is None and legacy is not None:
            legacy(message)
            return
        stream = sys.stdout if masked >= LogLevelFlags.LEVEL_MESSAGE else sys.stderr
        stream.write(format_default_message(domain, level, message))
        stream.flush()

    def _swap(self, attribute: str, func: Optional[PrintFunc]) -> Optional[PrintFunc]:
        with self._lock:
            old = getattr(self, attribute)
            setattr(self, attribute, func)
        return old

    def set_print_handler(self, func: Optional[PrintFunc]) -> Optional[PrintFunc]:
        """Replace the function used by print(); return the previous one."""
        return self._swap("_print_func", func)

    def print(self, message: str, *args: Any) -> None:
        """Format and write text to the print handler or stdout."""
        if message is None:
            raise ValueError("message must not be None")
        text = message % args if args else message
        with self._lock:
            func = self._print_func
        if func is not None:
            func(text)
        else:
            sys.stdout.write(text)
            sys.stdout.flush()

    def set_printerr_handler(self, func: Optional[PrintFunc]) -> Optional[PrintFunc]:
        """Replace the function used by printerr(); return the previous one."""
        return self._swap("_printerr_func", func)

    def printerr(self, message: str, *args: Any) -> None:
        """Format and write text to the printerr handler or stderr."""
        if message is None:
            raise ValueError("message must not be None")
        text = message % args if args else message
        with self._lock:
            func = self._printerr_func
        if func is not None:
            func(text)
        else:
            sys.stderr.write(text)
            sys.stderr.flush()

    def set_error_handler(self, func: Optional[PrintFunc]) -> Optional[PrintFunc]:
        """Hook for domainless errors in the default handler."""
        return self._swap("_error_func", func)

    def set_warning_handler(self, func: Optional[PrintFunc]) -> Optional[PrintFunc]:
        """Hook for domainless warnings in the default handler."""
        return self._swap("_warning_func", func)

    def set_message_handler(self, func: Optional[PrintFunc]) -> Optional[PrintFunc]:
        """Hook for domainless messages in the default handler."""
        return self._swap("_message_func", func)


_default_system: Optional[MessageSystem] = None
_default_lock = threading.Lock()


def default_messages() -> MessageSystem:
    """Return the process-wide message system."""
    global _default_system
    with _default_lock:
        if _default_system is None:
            _default_system = MessageSystem()
        return _default_system


def log(domain: Optional[str], level: int, message: str, *args: Any) -> None:
    """Log through the process-wide message system."""
    default_messages().log(domain, level, message, *args)


def warning(message: str, *args: Any) -> None:
    """Log a warning without a domain."""
    default_messages().log(None, LogLevelFlags.LEVEL_WARNING, message, *args)