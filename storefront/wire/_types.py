from collections.abc import Awaitable, Callable
from typing import Any

from kungfu import Result

from storefront._errors import ShopError
from storefront.identity import Identity
from storefront.wire.codecs.rrc import RequestResponseCodec
from storefront.wire.triggers.http import HTTPRouteTrigger


# compiler can support any possible pairs
type Trigger = HTTPRouteTrigger | Any
type Codec = RequestResponseCodec | Any
type Exposure = tuple[Trigger, Codec]

type Handler = Callable[[Any, Identity | None], Awaitable[Result[Any, ShopError]]]
"""(command, caller) -> Result. command is whatever the request codec's to_domain() built."""
