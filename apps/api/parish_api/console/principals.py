"""Principals produced by the two identity schemes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from parish_api.schemas.auth import BackendRole
from parish_api.schemas.roles import AppRole


class Scheme(str, Enum):
    HOSTED = "hosted"
    BEARER = "bearer"


@dataclass(frozen=True, slots=True)
class HostedPrincipal:
    """Hosted-provider identity; roles come only from the role-assignment rows."""

    scheme: ClassVar[Scheme] = Scheme.HOSTED

    user_id: str
    email: str
    roles: frozenset[AppRole] = frozenset()


@dataclass(frozen=True, slots=True)
class BearerPrincipal:
    """Ancillary API identity; role as embedded in the token at issuance."""

    scheme: ClassVar[Scheme] = Scheme.BEARER

    user_id: str
    email: str
    role: BackendRole


Principal = Union[HostedPrincipal, BearerPrincipal]

__all__ = ["BearerPrincipal", "HostedPrincipal", "Principal", "Scheme"]
