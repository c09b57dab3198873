"""
Sigil tokens that can appear anywhere in an entry:

    %status   %todo, %doing, %done, %backlog (and short forms)
    @type     @event, @block, @reminder, @task (or .event, ...)
    #tag      any number of tags

Each extractor removes every token it recognises and leaves everything
else, including unknown `%word` or `@word` tokens, in the text.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from natcal.shared import collapse_spaces, log_msg

# a token begins the text or follows whitespace
TOKEN_START = r"(?:(?<=\s)|^)"

STATUS_REGEX = re.compile(rf"{TOKEN_START}%(?P<word>[A-Za-z]+)\b")
TYPE_REGEX = re.compile(rf"{TOKEN_START}[@.](?P<word>[A-Za-z]+)\b")
TAG_REGEX = re.compile(rf"{TOKEN_START}#(?P<tag>\w+)")


class ItemStatus(Enum):
    BACKLOG = "backlog"
    TODO = "todo"
    IN_PROGRESS = "doing"
    DONE = "done"

    def to_input(self) -> str:
        return f"%{self.value}"

    @classmethod
    def from_alias(cls, word: str) -> "ItemStatus | None":
        return STATUS_ALIASES.get(word.lower())


STATUS_ALIASES = {
    "back": ItemStatus.BACKLOG,
    "backlog": ItemStatus.BACKLOG,
    "todo": ItemStatus.TODO,
    "t": ItemStatus.TODO,
    "doing": ItemStatus.IN_PROGRESS,
    "inprogress": ItemStatus.IN_PROGRESS,
    "i": ItemStatus.IN_PROGRESS,
    "done": ItemStatus.DONE,
    "d": ItemStatus.DONE,
}


class ItemType(Enum):
    EVENT = "event"
    BLOCK = "block"
    REMINDER = "reminder"
    TASK = "task"

    def to_input(self) -> str:
        return f"@{self.value}"

    @property
    def requires_date(self) -> bool:
        return self != ItemType.TASK

    @classmethod
    def from_alias(cls, word: str) -> "ItemType | None":
        return TYPE_ALIASES.get(word.lower())


TYPE_ALIASES = {
    "event": ItemType.EVENT,
    "e": ItemType.EVENT,
    "block": ItemType.BLOCK,
    "b": ItemType.BLOCK,
    "reminder": ItemType.REMINDER,
    "r": ItemType.REMINDER,
    "task": ItemType.TASK,
    "t": ItemType.TASK,
}


@dataclass(frozen=True)
class TagSet:
    """Tags in the order they were first seen, without repeats."""

    tags: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "tags", tuple(dict.fromkeys(self.tags)))

    def __iter__(self):
        return iter(self.tags)

    def __len__(self):
        return len(self.tags)

    def __contains__(self, tag):
        return tag in self.tags

    def to_input(self) -> str:
        return " ".join(f"#{tag}" for tag in self.tags)

    def to_property(self) -> str:
        return ",".join(self.tags)

    @classmethod
    def from_property(cls, value: str) -> "TagSet":
        return cls(tuple(t.strip() for t in value.split(",") if t.strip()))


def _extract_sigil(regex: re.Pattern, lookup, kind: str, default, text: str):
    found = []

    def replace(m: re.Match) -> str:
        value = lookup(m.group("word"))
        if value is None:
            log_msg(f"unknown {kind} {m.group(0)!r} left in the text")
            return m.group(0)
        found.append(value)
        return ""

    residual = regex.sub(replace, text)
    if not found:
        return default, text
    return found[0], collapse_spaces(residual)


def extract_status(reference: datetime, text: str) -> tuple[ItemStatus, str]:
    return _extract_sigil(
        STATUS_REGEX, ItemStatus.from_alias, "status", ItemStatus.TODO, text
    )


def extract_type(reference: datetime, text: str) -> tuple[ItemType, str]:
    return _extract_sigil(TYPE_REGEX, ItemType.from_alias, "type", ItemType.EVENT, text)


def extract_tags(reference: datetime, text: str) -> tuple[TagSet, str]:
    tags = [m.group("tag") for m in TAG_REGEX.finditer(text)]
    if not tags:
        return TagSet(), text
    return TagSet(tuple(tags)), collapse_spaces(TAG_REGEX.sub("", text))
