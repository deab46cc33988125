"""Enumerations used by the command line entry point."""
from enum import Enum


class Command(Enum):
    """Top-level commands selected by the first positional argument."""
    GET_REFRESH_TOKEN = "get-refresh-token"
    REPORT = "report"

    @classmethod
    def from_argv(cls, argv: list[str]) -> "Command":
        """Anything other than ``get-refresh-token`` runs the report."""
        if argv and argv[0] == cls.GET_REFRESH_TOKEN.value:
            return cls.GET_REFRESH_TOKEN
        return cls.REPORT
