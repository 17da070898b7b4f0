"""Attribute value interpolation.

Attribute values may embed ``{{ key }}`` expressions, so data-driven pages
can build links and ids from their datarow (``href="/posts/{{ slug }}"``).
Only attribute values are interpolated; text is filled through slots.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import StrictUndefined, Template, TemplateSyntaxError, UndefinedError
from jinja2.sandbox import SandboxedEnvironment
from lxml import etree

from ..core.errors import MissingContextError, RenderError

_UNDEFINED_RE = re.compile(r"'([^']+)' is undefined")

_env = SandboxedEnvironment(
    undefined=StrictUndefined,
    autoescape=False,
    keep_trailing_newline=True,
)


def has_expression(value: str) -> bool:
    return "{{" in value


@lru_cache(maxsize=512)
def _compile(value: str) -> Template:
    return _env.from_string(value)


def plain_value(value: Any) -> Any:
    """Reduce a context value to text or nested mappings of text."""
    if isinstance(value, etree._Element):
        return str(value.xpath("string()"))
    if isinstance(value, Mapping):
        return {key: plain_value(item) for key, item in value.items()}
    return value


def interpolation_context(context: Mapping[str, Any]) -> dict[str, Any]:
    return {key: plain_value(value) for key, value in context.items()}


def interpolate(value: str, variables: Mapping[str, Any], source: Path | str) -> str:
    """Render the expressions in an attribute value.

    Args:
        value: Raw attribute value
        variables: Output of :func:`interpolation_context`
        source: Page being rendered, for error messages

    Returns:
        The value with every expression substituted
    """
    if not has_expression(value):
        return value
    try:
        return _compile(value).render(**variables)
    except UndefinedError as e:
        match = _UNDEFINED_RE.search(str(e))
        key = match.group(1) if match else value
        raise MissingContextError(source, key, f"in attribute value {value!r}") from e
    except TemplateSyntaxError as e:
        raise RenderError(source, f"invalid expression in attribute value {value!r}: {e}") from e
