"""The parsed contents of a workflow file."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class WorkflowDefinition:
    """Front-matter configuration and the prompt template that follows it."""

    config: dict[str, Any] = field(default_factory=dict)
    prompt_template: str = ""

    @classmethod
    def empty(cls) -> WorkflowDefinition:
        """Return a workflow with no configuration and an empty prompt."""
        return cls(config={}, prompt_template="")