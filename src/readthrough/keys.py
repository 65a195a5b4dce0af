"""Key generation policies.

A key policy is any callable taking the cached operation's parameters as
keyword arguments and returning a string. Policies are pure: no I/O, no
side effects, and they never raise for ``None`` or blank inputs.

Usage:
    weather_key = ParameterizedKey("lat", "lon")
    weather_key(lat=37.56649, lon=126.97799)  # "v1:37.567_126.978_metric"

    notice_list_key = SingletonKey("notice_list")
    notice_list_key()  # "v1:notice_list_metric"

Bump ``version`` (or ``unit``) whenever rounding, units or the payload shape
change so entries written by an older deploy can never be read back.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Callable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

KeyPolicy = Callable[..., str]


def round_half_up(value: Any, places: int = 3) -> str:
    """Round a number half-up and render it with exactly ``places`` decimals.

    ``Decimal(str(value))`` is used rather than the float itself so that
    ``0.0005`` rounds to ``0.001`` instead of falling to binary error.
    """
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return str(value).strip()
    if not number.is_finite():
        return str(value).strip()
    quantum = Decimal(1).scaleb(-places)
    try:
        return str(number.quantize(quantum, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # Too many digits for the decimal context.
        return str(number)


def _round_key_number(value: Any, places: int) -> str:
    """Round half-up through one guard digit, then to ``places``.

    This is deliberately not plain half-up: ``37.56649`` goes to ``37.5665``
    and then ``37.567``, the same key as ``37.56651``. Plain half-up would
    give ``37.566``. Likewise ``0.00045`` keys as ``0.001``, not ``0.000``.
    """
    return round_half_up(round_half_up(value, places + 1), places)


def _normalize(value: Any, places: int) -> str:
    if value is None or isinstance(value, bool):
        return "" if value is None else str(value).lower()
    if isinstance(value, (int, float, Decimal)):
        return _round_key_number(value, places)
    text = str(value).strip()
    if not text:
        return ""
    try:
        Decimal(text)
    except InvalidOperation:
        return text
    return _round_key_number(text, places)


class ParameterizedKey:
    """Key from named parameters, with numbers rounded to a fixed precision."""

    __slots__ = ("_fields", "_places", "_unit", "_version")

    def __init__(
        self,
        *fields: str,
        version: str = "v1",
        unit: str = "metric",
        places: int = 3,
    ) -> None:
        if not fields:
            raise ValueError("ParameterizedKey needs at least one field")
        if places < 0:
            raise ValueError("places must be >= 0")
        self._fields = fields
        self._version = version
        self._unit = unit
        self._places = places

    def __call__(self, **params: Any) -> str:
        parts = [_normalize(params.get(name), self._places) for name in self._fields]
        parts.append(self._unit)
        return f"{self._version}:{'_'.join(parts)}"

    def __repr__(self) -> str:
        return (
            f"ParameterizedKey({', '.join(map(repr, self._fields))}, "
            f"version={self._version!r}, unit={self._unit!r}, places={self._places})"
        )


class SingletonKey:
    """One fixed key per operation, whatever the parameters."""

    __slots__ = ("_key",)

    def __init__(self, name: str, *, version: str = "v1", unit: str = "metric") -> None:
        self._key = f"{version}:{name}_{unit}"

    def __call__(self, **params: Any) -> str:
        return self._key

    def __repr__(self) -> str:
        return f"SingletonKey({self._key!r})"


class HashedKey:
    """Fallback policy: a short hash of every parameter, under a prefix."""

    __slots__ = ("_prefix",)

    def __init__(self, prefix: str) -> None:
        self._prefix = prefix

    def __call__(self, **params: Any) -> str:
        params_hash = hashlib.sha256(
            json.dumps(params, sort_keys=True, default=str).encode()
        ).hexdigest()[:16]
        return f"{self._prefix}:{params_hash}"

    def __repr__(self) -> str:
        return f"HashedKey({self._prefix!r})"


__all__ = ["HashedKey", "KeyPolicy", "ParameterizedKey", "SingletonKey", "round_half_up"]
