"""
Interactive prompts — question model and the Prompter contract.

Engines describe what they need to ask as a list of Questions. A
Prompter walks the list in order, skipping questions whose ``when``
predicate rejects the answers collected so far, and returns the answer
hash. Rendering is left to subclasses.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Union

Answers = dict[str, Any]
MessageSource = Union[str, Callable[[Answers], str]]

QuestionType = Literal["list", "checkbox", "confirm"]


@dataclass
class Choice:
    """One selectable entry of a list or checkbox question."""

    name: str
    value: Any = None
    short: str = ""
    checked: bool = False

    def __post_init__(self) -> None:
        if self.value is None:
            self.value = self.name
        if not self.short:
            self.short = self.name


@dataclass
class Question:
    type: QuestionType
    name: str
    message: MessageSource
    choices: list[Choice] = field(default_factory=list)
    default: Any = None
    when: Callable[[Answers], bool] | None = None

    def render_message(self, answers: Answers) -> str:
        if callable(self.message):
            return self.message(answers)
        return self.message

    def is_visible(self, answers: Answers) -> bool:
        return self.when is None or bool(self.when(answers))


class Prompter(ABC):
    """Asks questions and collects answers.

    Subclasses implement one method per question type; ``prompt`` owns
    ordering, ``when`` gating and message rendering.
    """

    async def prompt(self, questions: list[Question]) -> Answers:
        answers: Answers = {}
        for question in questions:
            if not question.is_visible(answers):
                continue
            message = question.render_message(answers)
            if question.type == "list":
                answers[question.name] = await self.ask_list(question, message)
            elif question.type == "checkbox":
                answers[question.name] = await self.ask_checkbox(question, message)
            elif question.type == "confirm":
                answers[question.name] = await self.ask_confirm(question, message)
            else:
                raise ValueError(f"Unsupported question type: {question.type!r}")
        return answers

    @abstractmethod
    async def ask_list(self, question: Question, message: str) -> Any:
        """Return the ``value`` of exactly one chosen Choice."""

    @abstractmethod
    async def ask_checkbox(self, question: Question, message: str) -> list[Any]:
        """Return the ``value`` of every checked Choice."""

    @abstractmethod
    async def ask_confirm(self, question: Question, message: str) -> bool:
        ...
