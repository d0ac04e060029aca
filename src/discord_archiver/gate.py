from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Protocol, runtime_checkable

import click

AFFIRMATIVE_TOKEN = "y"
_LEADING_INT_RE = re.compile(r"[+-]?[0-9]+")


class DecisionKind(str, Enum):
    YES = "yes"
    NO = "no"
    LIMIT = "limit"


@dataclass(frozen=True)
class Decision:
    kind: DecisionKind
    limit: int | None = None

    @classmethod
    def yes(cls) -> "Decision":
        return cls(DecisionKind.YES)

    @classmethod
    def no(cls) -> "Decision":
        return cls(DecisionKind.NO)

    @classmethod
    def with_limit(cls, limit: int) -> "Decision":
        if limit <= 0:
            raise ValueError("limit must be a positive integer")
        return cls(DecisionKind.LIMIT, limit)

    @property
    def proceeds(self) -> bool:
        """True for ``Yes`` and ``Limit``; only ``No`` declines."""
        return self.kind is not DecisionKind.NO


def parse_answer(raw: str | None) -> Decision:
    normalized = (raw or "").strip().lower()
    # a leading integer counts, so "12abc" and "1.5" are limits of 12 and 1
    match = _LEADING_INT_RE.match(normalized)
    number = int(match.group()) if match else 0
    if number > 0:
        return Decision.with_limit(number)
    if normalized == AFFIRMATIVE_TOKEN:
        return Decision.yes()
    return Decision.no()


@runtime_checkable
class InteractiveGate(Protocol):
    def ask(self, prompt: str) -> Decision: ...


class ConsoleGate:
    """Blocks on one line of operator input per question."""

    def ask(self, prompt: str) -> Decision:
        answer = click.prompt(
            prompt,
            default="",
            show_default=False,
            prompt_suffix="",
            type=str,
        )
        return parse_answer(answer)


class ScriptedGate:
    def __init__(self, answers: Iterable[str | Decision] = ()):
        self._answers = list(answers)
        self.prompts: list[str] = []

    def ask(self, prompt: str) -> Decision:
        self.prompts.append(prompt)
        if not self._answers:
            return Decision.no()
        answer = self._answers.pop(0)
        if isinstance(answer, Decision):
            return answer
        return parse_answer(answer)
