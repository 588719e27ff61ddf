from dataclasses import dataclass
import re
from typing import Any, Dict, Tuple

import jinja2

from refgate.errors import ConfigError
from refgate.model import Commit, Identity


@dataclass(frozen=True)
class RenderContext:
    """
    What a message template may refer to while one commit is being evaluated.
    Built fresh for each commit and passed explicitly to every evaluator.
    """
    ref_id: str
    pusher: Identity | None = None
    commit: Commit | None = None

    def for_commit(self, commit: Commit) -> 'RenderContext':
        return RenderContext(ref_id=self.ref_id, pusher=self.pusher, commit=commit)

    def variables(self) -> Dict[str, Any]:
        return {'ref_id': self.ref_id, 'pusher': self.pusher, 'commit': self.commit}


def _escape_for_pattern(value: Any) -> str:
    return '' if value is None else re.escape(str(value))


class Renderer:
    def __init__(self) -> None:
        self.env = jinja2.Environment(autoescape=False, keep_trailing_newline=False)
        # Every {{ }} expression in a pattern template is inserted as a literal
        self.pattern_env = jinja2.Environment(autoescape=False, keep_trailing_newline=False,
                                              finalize=_escape_for_pattern)
        self._templates: Dict[Tuple[str, bool], jinja2.Template] = {}

    def template(self, source: str, pattern: bool = False) -> jinja2.Template:
        template = self._templates.get((source, pattern))
        if template is None:
            env = self.pattern_env if pattern else self.env
            try:
                template = env.from_string(source)
            except jinja2.TemplateSyntaxError as e:
                raise ConfigError(f"Invalid message template {source!r}: {e}") from e
            self._templates[(source, pattern)] = template
        return template

    def render(self, source: str | None, ctx: RenderContext | None = None, **extra: Any) -> str:
        if not source:
            return ''
        variables = ctx.variables() if ctx is not None else {}
        variables.update(extra)
        try:
            return self.template(source).render(**variables)
        except jinja2.TemplateError as e:
            raise ConfigError(f"Could not render message template {source!r}: {e}") from e

    def render_pattern(self, source: str, ctx: RenderContext | None = None, **extra: Any) -> str:
        """
        Renders a regexp template. Substituted values are escaped, so `{{ pusher.email }}`
        matches that address literally; anchors are up to the pattern itself.
        """
        variables = ctx.variables() if ctx is not None else {}
        variables.update(extra)
        try:
            return self.template(source, pattern=True).render(**variables)
        except jinja2.TemplateError as e:
            raise ConfigError(f"Could not render pattern template {source!r}: {e}") from e
