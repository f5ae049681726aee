"""Template rendering context."""

from typing import Any, Dict, Optional


def build_context(width: int, height: int, data: Optional[Any] = None) -> Dict[str, Any]:
    """
    Build the variables available to a template.

    Starts from ``width`` and ``height``. A mapping in ``data`` is merged on
    top and may overwrite them; any other value is kept whole under ``data``.
    """
    context: Dict[str, Any] = {"width": width, "height": height}
    if isinstance(data, dict):
        context.update(data)
    elif data is not None:
        context["data"] = data
    return context
