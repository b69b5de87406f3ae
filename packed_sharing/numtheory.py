"""
Packed Sharing: prime field arithmetic and Newton interpolation.

All results are normalized representatives in [0, p). Python integers are
arbitrary precision, so products of two field elements are exact before
reduction no matter how large the prime is.

Newton interpolation works over arbitrary distinct points. It is what
reconstruction uses, since the subset of shares handed back by the caller
has no radix structure the transforms could exploit.
"""

import logging
from typing import NamedTuple

from .errors import NotInvertibleError

logger = logging.getLogger(__name__)


# Deterministic Miller-Rabin witnesses for every n < 3.3 * 10^24
_MR_BASES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41)


def mod_add(a: int, b: int, prime: int) -> int:
    return (a + b) % prime


def mod_sub(a: int, b: int, prime: int) -> int:
    return (a - b) % prime


def mod_mul(a: int, b: int, prime: int) -> int:
    return (a * b) % prime


def mod_pow(base: int, exponent: int, prime: int) -> int:
    """Square-and-multiply exponentiation in GF(prime)."""
    if exponent < 0:
        raise ValueError(f"Exponent must be >= 0, got {exponent}")
    result = 1 % prime
    base = base % prime
    while exponent > 0:
        if exponent & 1:
            result = (result * base) % prime
        base = (base * base) % prime
        exponent >>= 1
    return result


def _extended_gcd(a: int, b: int) -> tuple:
    """Extended Euclidean Algorithm. Returns (gcd, x, y) where ax + by = gcd."""
    if a == 0:
        return b, 0, 1
    g, x, y = _extended_gcd(b % a, a)
    return g, y - (b // a) * x, x


def mod_inverse(a: int, prime: int) -> int:
    """
    Modular multiplicative inverse using the extended Euclidean algorithm.

    Raises:
        NotInvertibleError: If a is congruent to zero (or shares a factor
            with the modulus).
    """
    a = a % prime
    if a == 0:
        raise NotInvertibleError(f"No modular inverse for 0 mod {prime}")
    g, x, _ = _extended_gcd(a, prime)
    if g != 1:
        raise NotInvertibleError(f"No modular inverse for {a} mod {prime}")
    return x % prime


def is_prime(n: int) -> bool:
    """Miller-Rabin primality test, deterministic below 3.3 * 10^24."""
    if n < 2:
        return False
    for small in _MR_BASES:
        if n % small == 0:
            return n == small

    d = n - 1
    s = 0
    while d % 2 == 0:
        d //= 2
        s += 1

    for a in _MR_BASES:
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(s - 1):
            x = (x * x) % n
            if x == n - 1:
                break
        else:
            return False
    return True


def mod_evaluate_polynomial(coefficients: list, x: int, prime: int) -> int:
    """Evaluate a polynomial (lowest degree first) at x using Horner's method."""
    result = 0
    for coeff in reversed(coefficients):
        result = (result * x + coeff) % prime
    return result


class NewtonPolynomial(NamedTuple):
    """
    Polynomial in Newton basis.

    p(x) = c0 + c1 (x - x0) + c2 (x - x0)(x - x1) + ...
    """
    points: tuple
    coefficients: tuple


def newton_interpolation_general(points: list, values: list, prime: int) -> NewtonPolynomial:
    """
    Interpolate the unique polynomial of degree < m through m points.

    Builds the divided-difference table in place, O(m^2) field operations.

    Args:
        points: Distinct evaluation points
        values: Values at those points (same length as points)
        prime: The prime field modulus

    Returns:
        NewtonPolynomial holding the points and the divided differences

    Raises:
        ValueError: If the inputs are empty or of different lengths
        NotInvertibleError: If two points coincide modulo prime
    """
    if len(points) != len(values):
        raise ValueError(
            f"Got {len(points)} points but {len(values)} values"
        )
    if not points:
        raise ValueError("Need at least one point to interpolate")

    xs = [x % prime for x in points]
    coeffs = [y % prime for y in values]
    m = len(xs)

    for level in range(1, m):
        # Walk downwards so coeffs[i - 1] still holds the previous level
        for i in range(m - 1, level - 1, -1):
            numerator = coeffs[i] - coeffs[i - 1]
            denominator = xs[i] - xs[i - level]
            coeffs[i] = (numerator * mod_inverse(denominator, prime)) % prime

    logger.debug("Interpolated %d points in Newton basis", m)
    return NewtonPolynomial(tuple(xs), tuple(coeffs))


def newton_evaluate(poly: NewtonPolynomial, x: int, prime: int) -> int:
    """Evaluate a Newton-basis polynomial at x by nested multiplication."""
    coeffs = poly.coefficients
    points = poly.points
    result = coeffs[-1]
    for i in range(len(coeffs) - 2, -1, -1):
        result = (result * (x - points[i]) + coeffs[i]) % prime
    return result % prime
