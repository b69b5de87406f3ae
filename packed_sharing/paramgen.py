"""
Packed Sharing: parameter generation.

Finds a prime field and the two roots of unity a packed scheme needs.
Only used when building a configuration, never while sharing or
reconstructing.
"""

import logging

from .errors import ParameterError
from .fft import is_power_of
from .numtheory import is_prime, mod_pow
from .packed import PackedSecretSharing

logger = logging.getLogger(__name__)


def check_prime_form(min_p: int, n: int, m: int, p: int) -> bool:
    """True if p >= min_p and p - 1 = n * m * q with q divisible by neither n nor m."""
    if p < min_p:
        return False

    q = p - 1
    if q % n != 0 or q % m != 0:
        return False

    q = q // (n * m)
    if q % n == 0 or q % m == 0:
        return False

    return True


def prime_factors(n: int) -> list:
    """Distinct prime factors of n, by trial division."""
    factors = []
    f = 2
    while f * f <= n:
        if n % f == 0:
            factors.append(f)
            while n % f == 0:
                n //= f
        f += 1
    if n > 1:
        factors.append(n)
    return factors


def find_field(min_p: int, n: int, m: int) -> tuple:
    """
    Smallest prime of the right form and its smallest generator.

    Args:
        min_p: Lower bound for the prime
        n: Order needed for the secrets domain (a power of 2)
        m: Order needed for the shares domain (a power of 3)

    Returns:
        (prime, generator)
    """
    step = n * m
    # every candidate must satisfy p = 1 mod n*m
    p = max(1, -(-(min_p - 1) // step)) * step + 1
    while not (check_prime_form(min_p, n, m, p) and is_prime(p)):
        p += step
    logger.debug("Found prime %d for orders %d and %d", p, n, m)

    factors = prime_factors(p - 1)
    for g in range(2, p):
        if all(mod_pow(g, (p - 1) // f, p) != 1 for f in factors):
            return p, g

    raise ParameterError(f"No generator found for GF({p})")


def find_roots(n: int, m: int, p: int, g: int) -> tuple:
    """(omega_secrets, omega_shares) derived from generator g of GF(p)."""
    omega_secrets = mod_pow(g, (p - 1) // n, p)
    omega_shares = mod_pow(g, (p - 1) // m, p)
    return omega_secrets, omega_shares


def generate_parameters(min_size: int, n: int, m: int) -> tuple:
    """Return (prime, omega_secrets, omega_shares) for orders n and m."""
    prime, g = find_field(min_size, n, m)
    omega_secrets, omega_shares = find_roots(n, m, prime, g)
    return prime, omega_secrets, omega_shares


def new_scheme(threshold: int, secret_count: int, share_count: int,
               min_size: int = None) -> PackedSecretSharing:
    """
    Build a scheme for the given sizes, searching for a suitable field.

    Args:
        threshold: Security threshold
        secret_count: Secrets per share vector
        share_count: Shares to produce
        min_size: Lower bound for the prime
            (default: share_count + secret_count + threshold + 1)

    Raises:
        ParameterError: If the sizes violate the power-of-2 / power-of-3
            constraints or min_size is too small
    """
    n = threshold + secret_count + 1
    m = share_count + 1

    if not is_power_of(n, 2):
        raise ParameterError(
            f"secret_count + threshold + 1 must be a power of 2, got {n}"
        )
    if not is_power_of(m, 3):
        raise ParameterError(f"share_count + 1 must be a power of 3, got {m}")

    if min_size is None:
        min_size = share_count + secret_count + threshold + 1
    if min_size < share_count + secret_count + 1:
        raise ParameterError(
            f"min_size must be >= {share_count + secret_count + 1}, got {min_size}"
        )

    prime, omega_secrets, omega_shares = generate_parameters(min_size, n, m)
    return PackedSecretSharing(
        threshold=threshold,
        share_count=share_count,
        secret_count=secret_count,
        prime=prime,
        omega_secrets=omega_secrets,
        omega_shares=omega_shares,
    )
