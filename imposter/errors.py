"""Exceptions shared by the game runtime and the HTTP routers."""
from __future__ import annotations


class CommandError(Exception):
    """A websocket command was rejected; nothing was mutated.

    The message is sent back to the originating connection as an ``error``
    event.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SettingsError(CommandError):
    pass


class AuthError(Exception):
    pass


class WeakCredentials(AuthError):
    pass


class DuplicateUsername(AuthError):
    pass


class InvalidCredentials(AuthError):
    pass


class InvalidToken(AuthError):
    pass


__all__ = [
    "CommandError",
    "SettingsError",
    "AuthError",
    "WeakCredentials",
    "DuplicateUsername",
    "InvalidCredentials",
    "InvalidToken",
]
