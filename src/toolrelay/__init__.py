"""toolrelay - tool-augmented streaming completions."""

from .core import ActiveResources, TurnContext, run_turn
from .types import SamplingParams, TurnResult

__version__ = "0.1.0"

__all__ = ["ActiveResources", "SamplingParams", "TurnContext", "TurnResult", "run_turn"]
