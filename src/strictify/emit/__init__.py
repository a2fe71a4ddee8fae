from strictify.emit.emitter import Emitter, InPlaceEmitter, OutOfPlaceEmitter
from strictify.emit.formatting import format_code, format_module

__all__ = [
    "Emitter",
    "InPlaceEmitter",
    "OutOfPlaceEmitter",
    "format_code",
    "format_module",
]
