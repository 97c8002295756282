"""
Result values returned by the relayer service.

Services never raise across the network-call boundary; they return either a
ChainSuccess carrying the transaction signature or a ChainFailure describing
what went wrong, and the routers decide how to answer.
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from domain.enums import FailureKind


@dataclass(frozen=True)
class ChainSuccess:
    signature: str


@dataclass(frozen=True)
class ChainFailure:
    kind: FailureKind
    message: str
    logs: Tuple[str, ...] = field(default_factory=tuple)
    code: Optional[int] = None


ChainResult = Union[ChainSuccess, ChainFailure]
