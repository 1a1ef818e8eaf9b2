from dataclasses import dataclass
from typing import Any, Protocol, TypeVar


DomainT_co = TypeVar("DomainT_co", covariant=True)
DomainT_contra = TypeVar("DomainT_contra", contravariant=True)


class ToDomain(Protocol[DomainT_co]):
    def to_domain(self) -> DomainT_co: ...


class FromDomain(Protocol[DomainT_contra]):
    @classmethod
    def from_domain(cls, dom: DomainT_contra) -> "FromDomain[DomainT_contra]": ...


@dataclass(frozen=True, slots=True)
class RequestResponseCodec:
    """
    request=None: the route takes no parameters and the handler gets None.
    """

    request: type[ToDomain[Any]] | None
    response: type[FromDomain[Any]]
