"""
Clés d'ordre fractionnaires (base 62).

Une clé = partie entière (tête ``a``-``z`` / ``A``-``Z`` qui en code la
longueur, puis des chiffres) suivie d'une partie fractionnaire sans ``0``
final. Les clés se comparent en ordre lexicographique simple, ce qui permet
toujours d'en générer une strictement entre deux autres sans renuméroter.

    >>> key_between(None, None)
    'a0'
    >>> key_between("a0", None)
    'a1'
    >>> key_between("a0", "a1")
    'a0V'
"""
from collections.abc import Sequence

BASE_62_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
_ZERO = BASE_62_DIGITS[0]
_SMALLEST_INTEGER = "A" + _ZERO * 26


class OrderKeyError(ValueError):
    pass


def _midpoint(a: str, b: str | None) -> str:
    """Fraction strictement entre ``a`` et ``b`` (``b=None`` = 1)."""
    if b is not None and a >= b:
        raise OrderKeyError(f"{a!r} >= {b!r}")
    if a[-1:] == _ZERO or (b and b[-1:] == _ZERO):
        raise OrderKeyError("trailing zero")
    if b:
        # préfixe commun (a complété par des zéros)
        n = 0
        while n < len(b) and (a[n] if n < len(a) else _ZERO) == b[n]:
            n += 1
        if n > 0:
            return b[:n] + _midpoint(a[n:], b[n:])
    digit_a = BASE_62_DIGITS.index(a[0]) if a else 0
    digit_b = BASE_62_DIGITS.index(b[0]) if b is not None else len(BASE_62_DIGITS)
    if digit_b - digit_a > 1:
        return BASE_62_DIGITS[(digit_a + digit_b + 1) // 2]
    if b and len(b) > 1:
        return b[:1]
    return BASE_62_DIGITS[digit_a] + _midpoint(a[1:], None)


def _integer_length(head: str) -> int:
    if "a" <= head <= "z":
        return ord(head) - ord("a") + 2
    if "A" <= head <= "Z":
        return ord("Z") - ord(head) + 2
    raise OrderKeyError(f"invalid order key head: {head!r}")


def _integer_part(key: str) -> str:
    length = _integer_length(key[0])
    if length > len(key):
        raise OrderKeyError(f"invalid order key: {key!r}")
    return key[:length]


def validate_key(key: str) -> None:
    if not key or key == _SMALLEST_INTEGER:
        raise OrderKeyError(f"invalid order key: {key!r}")
    integer = _integer_part(key)
    if any(c not in BASE_62_DIGITS for c in key[1:]):
        raise OrderKeyError(f"invalid order key: {key!r}")
    if key[len(integer):][-1:] == _ZERO:
        raise OrderKeyError(f"invalid order key: {key!r}")


def _increment_integer(x: str) -> str | None:
    head, digits = x[0], list(x[1:])
    carry = True
    i = len(digits) - 1
    while carry and i >= 0:
        d = BASE_62_DIGITS.index(digits[i]) + 1
        if d == len(BASE_62_DIGITS):
            digits[i] = _ZERO
        else:
            digits[i] = BASE_62_DIGITS[d]
            carry = False
        i -= 1
    if not carry:
        return head + "".join(digits)
    if head == "Z":
        return "a" + _ZERO
    if head == "z":
        return None
    new_head = chr(ord(head) + 1)
    if new_head > "a":
        digits.append(_ZERO)
    else:
        digits.pop()
    return new_head + "".join(digits)


def _decrement_integer(x: str) -> str | None:
    head, digits = x[0], list(x[1:])
    borrow = True
    i = len(digits) - 1
    while borrow and i >= 0:
        d = BASE_62_DIGITS.index(digits[i]) - 1
        if d == -1:
            digits[i] = BASE_62_DIGITS[-1]
        else:
            digits[i] = BASE_62_DIGITS[d]
            borrow = False
        i -= 1
    if not borrow:
        return head + "".join(digits)
    if head == "a":
        return "Z" + BASE_62_DIGITS[-1]
    if head == "A":
        return None
    new_head = chr(ord(head) - 1)
    if new_head < "Z":
        digits.append(BASE_62_DIGITS[-1])
    else:
        digits.pop()
    return new_head + "".join(digits)


def key_between(a: str | None, b: str | None) -> str:
    """Clé strictement entre ``a`` et ``b``; ``None`` = borne ouverte."""
    if a is not None:
        validate_key(a)
    if b is not None:
        validate_key(b)
    if a is not None and b is not None and a >= b:
        raise OrderKeyError(f"{a!r} >= {b!r}")

    if a is None:
        if b is None:
            return "a" + _ZERO
        ib = _integer_part(b)
        fb = b[len(ib):]
        if ib == _SMALLEST_INTEGER:
            return ib + _midpoint("", fb)
        if ib < b:
            return ib
        res = _decrement_integer(ib)
        if res is None:
            raise OrderKeyError("cannot decrement any more")
        return res

    if b is None:
        ia = _integer_part(a)
        fa = a[len(ia):]
        i = _increment_integer(ia)
        return ia + _midpoint(fa, None) if i is None else i

    ia = _integer_part(a)
    fa = a[len(ia):]
    ib = _integer_part(b)
    fb = b[len(ib):]
    if ia == ib:
        return ia + _midpoint(fa, fb)
    i = _increment_integer(ia)
    if i is None:
        raise OrderKeyError("cannot increment any more")
    if i < b:
        return i
    return ia + _midpoint(fa, None)


def insert_key(keys: Sequence[str], after: int | None) -> str:
    """
    Clé pour une insertion dans une séquence triée de clés.

    ``after=None``: en fin; ``after=-1``: en tête; ``after=i``: juste après
    l'élément ``i``. Deux éléments peuvent partager une clé (insertions
    concurrentes au même endroit): la borne haute est alors la première clé
    strictement supérieure.
    """
    if not keys:
        return key_between(None, None)
    if after is None or after == len(keys) - 1:
        return key_between(keys[-1], None)
    if after == -1:
        return key_between(None, keys[0])
    if not 0 <= after < len(keys):
        raise IndexError(after)
    lower = keys[after]
    upper = next((k for k in keys[after + 1:] if k > lower), None)
    return key_between(lower, upper)
