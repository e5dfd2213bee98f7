# apps/utils/results.py
"""
Result objects returned by the service layer.

Services never raise for expected business-rule violations. They hand back
an OperationResult carrying either the payload or a list of OperationError
entries; the API boundary decides how to render them.
"""
from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, Optional, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class OperationError:
    """
    A single structured failure.
    - code: stable machine-readable key (see ErrorCodes)
    - field: the input the error is attached to, if any
    - params: interpolation values for caller-side rendering (e.g. flavor name)
    """
    code: str
    field: Optional[str] = None
    params: Tuple[Any, ...] = ()

    def as_dict(self) -> dict:
        return {
            "code": self.code,
            "field": self.field,
            "params": [str(p) for p in self.params],
        }


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    succeeded: bool
    value: Optional[T] = None
    errors: Tuple[OperationError, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls, value: Optional[T] = None) -> "OperationResult[T]":
        return cls(succeeded=True, value=value)

    @classmethod
    def failure(cls, *errors: OperationError) -> "OperationResult[T]":
        return cls(succeeded=False, errors=tuple(errors))

    @classmethod
    def failures(cls, errors: Iterable[OperationError]) -> "OperationResult[T]":
        return cls(succeeded=False, errors=tuple(errors))

    def has_error(self, *codes: str) -> bool:
        return any(e.code in codes for e in self.errors)

    def __bool__(self):
        return self.succeeded
