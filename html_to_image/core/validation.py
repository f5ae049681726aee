"""Request limit checks."""

import math

from html_to_image.config.settings import RenderLimits
from html_to_image.core.errors import ApiError
from html_to_image.models.schemas import RenderRequest


def validate_dimensions(
    width: int,
    height: int,
    scale: float,
    animation_time: float,
    limits: RenderLimits,
) -> None:
    """
    Check render parameters against the configured limits.

    Checks run in a fixed order (width, height, scale, animation time) so the
    first violated bound determines the reported message.

    Raises:
        ApiError: ``validation`` naming the violated bound
    """
    if width < 1 or width > limits.max_dimension:
        raise ApiError.validation(f"width must be between 1 and {limits.max_dimension}")
    if height < 1 or height > limits.max_dimension:
        raise ApiError.validation(f"height must be between 1 and {limits.max_dimension}")
    if not (math.isfinite(scale) and 0.0 < scale <= limits.max_scale):
        raise ApiError.validation(f"scale must be within (0, {limits.max_scale}]")
    if not (math.isfinite(animation_time) and 0.0 <= animation_time <= limits.max_animation_time):
        raise ApiError.validation(
            f"animation_time must be between 0 and {limits.max_animation_time} seconds"
        )


def validate_request(request: RenderRequest, limits: RenderLimits) -> None:
    """Validate a ``RenderRequest`` against ``limits``."""
    validate_dimensions(
        request.width, request.height, request.scale, request.animation_time, limits
    )
