# errors.py

class WorkflowError(Exception):
    """Base class for workflow-related errors."""
    pass


# ----- Graph Construction Errors -----

class GraphValidationError(WorkflowError):
    """The declared topology is not a runnable sequential workflow."""

    def __init__(self, issues: list[str]) -> None:
        self.issues = list(issues)
        super().__init__("Invalid workflow graph: " + "; ".join(self.issues))


class WorkflowFrozenError(WorkflowError):
    """Raised when a builder is modified after compile()."""
    pass


class UnknownNodeError(WorkflowError):
    """A workflow definition names a step that is not in the registry."""
    pass


# ----- Execution Errors -----

class NodeExecutionError(WorkflowError):
    """A step function raised while the workflow was running."""

    def __init__(self, node: str, message: str) -> None:
        self.node = node
        super().__init__(f"Node '{node}' failed: {message}")


class InvalidNodeOutputError(NodeExecutionError):
    pass


# ----- Provider Errors -----

class ProviderError(WorkflowError):
    pass
