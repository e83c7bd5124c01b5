"""Deterministic button suggestions used when no language model is available."""

from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, Field

MAX_SUGGESTIONS = 5


class ButtonInput(BaseModel):
    """A placeholder the user fills in before the command runs."""

    placeholder: str
    variable: str


class ButtonSuggestion(BaseModel):
    """A suggested one-click command."""

    name: str = Field(..., description="Short label shown on the button.")
    cmd: str = Field(..., description="Command line executed by the button.")
    description: str = Field(default="", description="What the button does.")
    inputs: list[ButtonInput] = Field(default_factory=list)


_COMMIT = ButtonSuggestion(
    name="Git Commit",
    cmd="git add . && git commit -m '{message}'",
    description="Stage all changes and commit with a custom message",
    inputs=[ButtonInput(placeholder="Enter commit message", variable="{message}")],
)
_PUSH = ButtonSuggestion(name="Git Push", cmd="git push", description="Push commits to remote repository")
_BUILD = ButtonSuggestion(name="Build", cmd="npm run build", description="Build the project using npm")
_TEST = ButtonSuggestion(name="Run Tests", cmd="npm test", description="Run all tests in the project")
_SAVE = ButtonSuggestion(
    name="Save All",
    cmd="workbench.action.files.saveAll",
    description="Save all open files",
)


def fallback_suggestions(top_activities: Iterable[str]) -> list[ButtonSuggestion]:
    """Keyword-driven suggestions derived from the most frequent activities."""

    haystack = " ".join(top_activities).lower()
    buttons: list[ButtonSuggestion] = []

    if "git" in haystack or "commit" in haystack:
        buttons.extend([_COMMIT, _PUSH])
    if "npm" in haystack or "build" in haystack:
        buttons.append(_BUILD)
    if "test" in haystack:
        buttons.append(_TEST)
    if "save" in haystack:
        buttons.append(_SAVE)

    if not buttons:
        buttons = [_BUILD, _TEST, _COMMIT]

    return [button.model_copy(deep=True) for button in buttons[:MAX_SUGGESTIONS]]


__all__ = ["ButtonInput", "ButtonSuggestion", "fallback_suggestions"]
