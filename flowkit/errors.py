"""Exceptions raised by the FlowKit engine."""


class FlowkitError(Exception):
    """Base class for FlowKit errors."""


class FlowNotFoundError(FlowkitError):
    """Raised when the requested flow is not defined in the flow document."""

    def __init__(self, flow_name: str, flow_file: str = "flow.yaml"):
        self.flow_name = flow_name
        self.flow_file = flow_file
        super().__init__(f"Flow '{flow_name}' not found in {flow_file}")


class BackendConstructionError(FlowkitError):
    """Raised by a backend constructor that cannot build a usable client."""
