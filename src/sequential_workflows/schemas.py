# schemas.py

import json
from pathlib import Path

from langgraph.graph import END
from pydantic import BaseModel, ConfigDict, Field

END_MARKER = END


class EdgeSpec(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    source: str
    target: str


class WorkflowSpec(BaseModel):
    """Declarative description of a workflow's topology."""

    model_config = ConfigDict(extra="forbid")

    name: str = "workflow"
    nodes: list[str] = Field(default_factory=list)
    entry_point: str | None = None
    edges: list[EdgeSpec] = Field(default_factory=list)

    @classmethod
    def linear(cls, name: str, nodes: list[str]) -> "WorkflowSpec":
        """Chain the nodes in order, the last one pointing at the end marker."""
        targets = list(nodes[1:]) + [END_MARKER]
        return cls(
            name=name,
            nodes=list(nodes),
            entry_point=nodes[0] if nodes else None,
            edges=[EdgeSpec(source=src, target=dst) for src, dst in zip(nodes, targets)],
        )

    @classmethod
    def from_json_file(cls, path: str | Path) -> "WorkflowSpec":
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if isinstance(raw, list):
            # Shorthand: a bare list of step names is a linear pipeline.
            return cls.linear(Path(path).stem, [str(item) for item in raw])
        return cls.model_validate(raw)
