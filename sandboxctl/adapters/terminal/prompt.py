"""
Click prompter — asks engine questions on the terminal.

List questions show a numbered menu; checkbox questions take a
comma-separated list of numbers (empty keeps the pre-checked entries).
"""

from __future__ import annotations

from typing import Any

import click

from sandboxctl.core.prompt import Prompter, Question


class ClickPrompter(Prompter):
    async def ask_list(self, question: Question, message: str) -> Any:
        click.echo()
        click.secho(message, bold=True)
        for i, choice in enumerate(question.choices, start=1):
            click.echo(f"  {i}) {choice.name}")
        index = click.prompt(
            "Choice",
            type=click.IntRange(1, len(question.choices)),
            default=1,
        )
        return question.choices[index - 1].value

    async def ask_checkbox(self, question: Question, message: str) -> list[Any]:
        click.echo()
        click.secho(message, bold=True)
        for i, choice in enumerate(question.choices, start=1):
            mark = "x" if choice.checked else " "
            click.echo(f"  [{mark}] {i}) {choice.name}")

        while True:
            raw = click.prompt(
                "Numbers to select (comma-separated, empty keeps defaults)",
                default="",
                show_default=False,
            )
            if not raw.strip():
                return [c.value for c in question.choices if c.checked]
            try:
                picked = parse_selection(raw, len(question.choices))
            except ValueError as e:
                click.secho(f"  {e}", fg="red")
                continue
            return [question.choices[i - 1].value for i in picked]

    async def ask_confirm(self, question: Question, message: str) -> bool:
        return click.confirm(message, default=bool(question.default))


def parse_selection(raw: str, upper: int) -> list[int]:
    """Parse '1, 3,4' into sorted unique 1-based indexes within range."""
    picked: set[int] = set()
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit():
            raise ValueError(f"'{part}' is not a number")
        value = int(part)
        if not 1 <= value <= upper:
            raise ValueError(f"{value} is out of range 1-{upper}")
        picked.add(value)
    return sorted(picked)
