"""
Codec protocols — payload models convert to domain values and back.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel

DomainT_co = TypeVar("DomainT_co", covariant=True)
DomainT_contra = TypeVar("DomainT_contra", contravariant=True)


class ToDomain(Protocol[DomainT_co]):
    def to_domain(self) -> DomainT_co: ...


class FromDomain(Protocol[DomainT_contra]):
    @classmethod
    def from_domain(cls, dom: DomainT_contra) -> "FromDomain[DomainT_contra]": ...


def decode[D](payload: type[BaseModel], data: Mapping[str, Any]) -> D:
    """
    Validate a JSON object with a payload model and convert it.

    Example:
        order = decode(OrderPayload, response_json)

    Raises:
        pydantic.ValidationError: data does not fit the payload model.
        ValueError: data fits the model but not the domain (unknown status, ...).
    """
    model = payload.model_validate(data)
    return model.to_domain()  # type: ignore[attr-defined,no-any-return]


def encode(payload: type[BaseModel], dom: object) -> dict[str, Any]:
    """Convert a domain value to a JSON-ready dict through a payload model."""
    model = payload.from_domain(dom)  # type: ignore[attr-defined]
    return model.model_dump(mode="json", exclude_none=True)  # type: ignore[no-any-return]


__all__ = (
    "ToDomain",
    "FromDomain",
    "decode",
    "encode",
)
