"""Session logging: colored console output, plain log files, or both."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import typer


class Logger(Protocol):
    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class NullLogger:
    def info(self, message: str) -> None:
        return None

    def warning(self, message: str) -> None:
        return None

    def error(self, message: str) -> None:
        return None


class ConsoleLogger:
    def __init__(self, *, color: bool | None = None) -> None:
        self.color = color

    def info(self, message: str) -> None:
        typer.echo(message, color=self.color)

    def warning(self, message: str) -> None:
        typer.echo(typer.style(message, fg=typer.colors.YELLOW), err=True, color=self.color)

    def error(self, message: str) -> None:
        typer.echo(typer.style(message, fg=typer.colors.RED), err=True, color=self.color)


class FileLogger:
    """Appends one plain line per message to ``path``."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _write(self, level: str, message: str) -> None:
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(f"[{level}] {message}\n")

    def info(self, message: str) -> None:
        self._write("info", message)

    def warning(self, message: str) -> None:
        self._write("warning", message)

    def error(self, message: str) -> None:
        self._write("error", message)


class TeeLogger:
    def __init__(self, *loggers: Logger) -> None:
        self.loggers = loggers

    def info(self, message: str) -> None:
        for logger in self.loggers:
            logger.info(message)

    def warning(self, message: str) -> None:
        for logger in self.loggers:
            logger.warning(message)

    def error(self, message: str) -> None:
        for logger in self.loggers:
            logger.error(message)


def build_logger(log_path: Path | None = None, *, console: bool = True) -> Logger:
    loggers: list[Logger] = []
    if console:
        loggers.append(ConsoleLogger())
    if log_path is not None:
        loggers.append(FileLogger(log_path))
    if not loggers:
        return NullLogger()
    if len(loggers) == 1:
        return loggers[0]
    return TeeLogger(*loggers)
