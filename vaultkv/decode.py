from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from .errors import DecodeError

T = TypeVar("T")


def decode(target: type[T], payload: Any, path: str) -> T:
    """Validate a raw secret payload against the caller's target type."""
    try:
        return TypeAdapter(target).validate_python(payload)
    except ValidationError as exc:
        raise DecodeError(f"Secret does not match {getattr(target, '__name__', target)}: {exc}", path=path) from exc
