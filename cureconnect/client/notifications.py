"""Dismissable, human-readable outcomes of dashboard actions."""

from dataclasses import dataclass

DEFAULT = "default"
DESTRUCTIVE = "destructive"


@dataclass
class Notification:
    title: str
    description: str
    variant: str = DEFAULT
    dismissed: bool = False

    @classmethod
    def success(cls, title: str, description: str) -> "Notification":
        return cls(title=title, description=description)

    @classmethod
    def error(cls, title: str, description: str) -> "Notification":
        return cls(title=title, description=description, variant=DESTRUCTIVE)

    @property
    def is_error(self) -> bool:
        return self.variant == DESTRUCTIVE

    def dismiss(self) -> None:
        self.dismissed = True
