"""
Validation decorators for cinegrade.

Provides reusable argument checking for the session, engine and surface APIs.
Grading values themselves are never range-checked: out-of-range parameters
pass through to the transform, which stays well-defined for any input.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeAlias

F: TypeAlias = Callable[..., Any]


def _extract(
    args: tuple,
    kwargs: dict,
    param_name: str,
    param_index: int,
    none_is_missing: bool = True,
) -> tuple[bool, Any]:
    """Locate an argument by position or keyword. None counts as not supplied by default."""
    if len(args) > param_index:
        value = args[param_index]
    elif param_name in kwargs:
        value = kwargs[param_name]
    else:
        return False, None
    return not (none_is_missing and value is None), value


def validate_range(
    min_val: float,
    max_val: float,
    param_name: str = "value",
    param_index: int = 1,
) -> Callable[[F], F]:
    """
    Decorator for validating numeric parameter ranges.

    Args:
        min_val: Minimum allowed value (inclusive)
        max_val: Maximum allowed value (inclusive)
        param_name: Name of parameter for error messages
        param_index: Position of parameter in function signature (default: 1 = first arg after self)

    Returns:
        Decorated function with range validation

    Example:
        >>> @validate_range(0, 2, "component", param_index=3)
        ... def update_field(self, name, value, component=None): ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            supplied, value = _extract(args, kwargs, param_name, param_index)
            if not supplied:
                return func(*args, **kwargs)

            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError(
                    f"{param_name} must be a number, got {type(value).__name__}. "
                    f"Provide a numeric value (int or float)."
                )

            if not min_val <= value <= max_val:
                suggestion = ""
                if param_name == "component":
                    suggestion = " Use 0 for red, 1 for green, 2 for blue."
                raise ValueError(
                    f"{param_name}={value} is outside valid range [{min_val}, {max_val}].{suggestion}"
                )

            return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator


def validate_positive(param_name: str = "value", param_index: int = 1) -> Callable[[F], F]:
    """
    Decorator for validating positive numeric parameters.

    Args:
        param_name: Name of parameter for error messages
        param_index: Position of parameter in function signature

    Returns:
        Decorated function with positive validation

    Example:
        >>> @validate_positive("width")
        ... def resize(self, width: int, height: int) -> None:
        ...     ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            supplied, value = _extract(args, kwargs, param_name, param_index)
            if not supplied:
                return func(*args, **kwargs)

            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError(
                    f"{param_name} must be a number, got {type(value).__name__}. "
                    f"Provide a numeric value (int or float)."
                )

            if value <= 0:
                suggestion = ""
                if param_name in ("width", "height", "max_width", "max_height"):
                    suggestion = " Surface dimensions are pixel counts and must be at least 1."
                raise ValueError(f"{param_name}={value} must be positive (> 0).{suggestion}")

            return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator


def validate_type(
    expected_type: type | tuple[type, ...],
    param_name: str = "value",
    param_index: int = 1,
    allow_none: bool = False,
) -> Callable[[F], F]:
    """
    Decorator for validating parameter types.

    Args:
        expected_type: Expected type or tuple of types
        param_name: Name of parameter for error messages
        param_index: Position of parameter in function signature
        allow_none: Let an explicit None through unchecked

    Returns:
        Decorated function with type validation

    Example:
        >>> @validate_type(str, "preset_id")
        ... def apply_preset(self, preset_id: str) -> None:
        ...     ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            supplied, value = _extract(args, kwargs, param_name, param_index, allow_none)
            if not supplied:
                return func(*args, **kwargs)

            if not isinstance(value, expected_type):
                if isinstance(expected_type, tuple):
                    type_names = ", ".join(t.__name__ for t in expected_type)
                    raise TypeError(
                        f"{param_name} must be one of ({type_names}), got {type(value).__name__}"
                    )
                raise TypeError(
                    f"{param_name} must be {expected_type.__name__}, got {type(value).__name__}"
                )

            return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator


def validate_choices(
    valid_choices: set[str] | frozenset[str],
    param_name: str = "value",
    param_index: int = 1,
) -> Callable[[F], F]:
    """
    Decorator for validating parameter choices.

    Args:
        valid_choices: Set of valid string choices
        param_name: Name of parameter for error messages
        param_index: Position of parameter in function signature

    Returns:
        Decorated function with choice validation

    Example:
        >>> @validate_choices({"exposure", "contrast"}, "name")
        ... def update_field(self, name: str, value: float) -> None:
        ...     ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            supplied, value = _extract(args, kwargs, param_name, param_index)
            if not supplied:
                return func(*args, **kwargs)

            if value not in valid_choices:
                choices_str = ", ".join(sorted(valid_choices))
                raise ValueError(
                    f"{param_name}='{value}' is not valid. Valid options are: {choices_str}"
                )

            return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator
