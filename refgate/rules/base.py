import abc
from typing import ClassVar

from refgate.config import Config
from refgate.model import Commit, RuleCategory, RuleOutcome
from refgate.render import RenderContext, Renderer


class RuleEvaluator(abc.ABC):
    """
    Checks one concern of a commit. A violation is returned as a failing outcome;
    an evaluator only raises when it cannot decide (configuration or host errors).
    """
    category: ClassVar[RuleCategory]

    def __init__(self, renderer: Renderer | None = None) -> None:
        self.renderer = renderer or Renderer()

    @abc.abstractmethod
    def evaluate(self, config: Config, commit: Commit, ctx: RenderContext) -> RuleOutcome:
        raise NotImplementedError()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.category.name})"
