"""Sequential LangGraph workflows: state, steps, edges, compile, invoke."""

__version__ = "0.1.0"
