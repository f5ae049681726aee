"""
Template Expansion
==================

Expand Jinja2 placeholders in caller-supplied HTML.

Templates come from untrusted callers, so they run in Jinja2's immutable
sandbox with HTML auto-escaping and strict undefined variables.
"""

from pathlib import Path
from typing import Any, Mapping

import jinja2
from jinja2.sandbox import ImmutableSandboxedEnvironment

from html_to_image.core.errors import ApiError


def create_environment() -> ImmutableSandboxedEnvironment:
    """Create the sandboxed environment used for every expansion."""
    return ImmutableSandboxedEnvironment(
        autoescape=True,
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )


def render_template(template: str, context: Mapping[str, Any]) -> str:
    """
    Expand ``template`` with ``context``.

    Raises:
        ApiError: ``validation`` if the template does not compile or fails
            while rendering (undefined variable, sandbox violation, bad
            expression)
    """
    env = create_environment()
    try:
        compiled = env.from_string(template)
    except jinja2.TemplateSyntaxError as e:
        raise ApiError.validation(
            f"failed to register template: {e.message} (line {e.lineno})"
        ) from e

    try:
        return compiled.render(context)
    except Exception as e:
        # Any failure here comes from the caller's template or data.
        raise ApiError.validation(f"failed to render template: {_describe(e)}") from e


def load_template(path: Path) -> str:
    """
    Load an HTML template from disk.

    Raises:
        ApiError: ``validation`` if the file cannot be read
    """
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ApiError.validation(f"failed to read template file: {path}") from e


def _describe(error: Exception) -> str:
    if isinstance(error, jinja2.TemplateError) and error.message:
        return error.message
    return f"{type(error).__name__}: {error}"
