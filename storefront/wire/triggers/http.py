from dataclasses import dataclass, field
from typing import Literal


type Method = Literal["GET", "POST", "PUT", "DELETE", "PATCH"]
type Path = str
type Header = str
type Headers = frozenset[str]
type Auth = Literal["none", "optional", "required"]


@dataclass(frozen=True, slots=True)
class HTTPRouteTrigger:
    """
    auth: "required" answers 401 without a valid bearer token; "optional" passes
    None as the caller instead.
    """

    method: Method
    path: str
    auth: Auth = "required"
    status_code: int = 200
    headers: frozenset[str] = field(default_factory=lambda: frozenset())

    @property
    def reads_query(self) -> bool:
        """GET and DELETE take their parameters from the query string."""
        return self.method in ("GET", "DELETE")
