"""
Packed Sharing: packed (multi-secret) threshold secret sharing.

In Shamir's scheme a single secret is the constant term of a random
polynomial. The packed variant fixes several evaluations of one polynomial
to several secrets, so a single share vector carries them all:

* secrets sit on the 2^a roots of unity (generated by omega_secrets)
* shares are read off the 3^b roots of unity (generated by omega_shares)

The two sets meet only at 1, which carries neither a secret nor a share,
so no share ever exposes a secret directly. Placing both sets on roots of
unity lets sharing run as one inverse radix-2 transform followed by one
radix-3 transform, O(n log n) instead of O(n^2).

Constraints tying the parameters together:

* secret_count + threshold + 1 (the reconstruct limit) is a power of 2
* share_count + 1 is a power of 3
* omega_secrets is a primitive reconstruct_limit-th root of unity mod prime
* omega_shares is a primitive (share_count + 1)-th root of unity mod prime

Sharing is linear, so shares add: the pointwise sum of two share vectors
reconstructs to the pointwise sum of the secrets. Pointwise products
reconstruct to the products of the secrets, but the product polynomial has
twice the degree, so 2 * reconstruct_limit - 1 shares are needed.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType

from .errors import ParameterError, ShareError
from .fft import fft2_inverse, fft3, is_power_of
from .numtheory import is_prime, mod_pow, newton_evaluate, newton_interpolation_general
from .randomness import SystemRandomSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackedSecretSharing:
    """
    Immutable configuration of a packed sharing scheme.

    Every invariant is checked at construction; an instance that exists is
    valid. Instances hold no other state and may be shared across threads.
    """

    # security threshold
    threshold: int
    # number of shares to generate
    share_count: int
    # number of secrets in each share vector
    secret_count: int
    # prime field to use
    prime: int
    # reconstruct_limit-th principal root of unity in Z_p
    omega_secrets: int
    # (share_count + 1)-th principal root of unity in Z_p
    omega_shares: int

    def __post_init__(self):
        for name in ('threshold', 'share_count', 'secret_count',
                     'prime', 'omega_secrets', 'omega_shares'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ParameterError(f"{name} must be an integer, got {value!r}")

        if self.threshold < 0:
            raise ParameterError("threshold must be >= 0")
        if self.secret_count < 1:
            raise ParameterError("secret_count must be >= 1")

        limit = self.reconstruct_limit
        if self.share_count < limit:
            raise ParameterError(
                f"share_count {self.share_count} is below the reconstruct limit {limit}"
            )
        if not is_power_of(limit, 2):
            raise ParameterError(
                f"secret_count + threshold + 1 must be a power of 2, got {limit}"
            )
        if not is_power_of(self.share_count + 1, 3):
            raise ParameterError(
                f"share_count + 1 must be a power of 3, got {self.share_count + 1}"
            )

        if not is_prime(self.prime):
            raise ParameterError(f"{self.prime} is not prime")
        if self.prime <= self.share_count + 1:
            raise ParameterError(
                f"prime {self.prime} too small for {self.share_count} shares"
            )

        _check_primitive_root(self.omega_secrets, limit, 2, self.prime, 'omega_secrets')
        _check_primitive_root(self.omega_shares, self.share_count + 1, 3,
                              self.prime, 'omega_shares')
        self._check_domains_disjoint()

    def _check_domains_disjoint(self):
        """Secret and share points may only coincide at 1."""
        secret_points = set()
        point = 1
        for _ in range(1, self.reconstruct_limit):
            point = (point * self.omega_secrets) % self.prime
            secret_points.add(point)

        point = 1
        for _ in range(1, self.share_count + 1):
            point = (point * self.omega_shares) % self.prime
            if point in secret_points:
                raise ParameterError(
                    f"Share point {point} coincides with a secret point"
                )

    @property
    def reconstruct_limit(self) -> int:
        """Minimum number of shares required to reconstruct (secret_count + threshold + 1)."""
        return self.secret_count + self.threshold + 1

    def share(self, secrets: list, rng=None) -> list:
        """
        Compute shares for a vector of secrets.

        Args:
            secrets: Exactly secret_count field elements in [0, prime).
                Padding unused slots with anything, zeros included, is safe.
            rng: RandomSource to draw the threshold random values from
                (default: SystemRandomSource)

        Returns:
            share_count field elements; element i is the share of rank i

        Raises:
            ShareError: If secrets has the wrong length or holds values
                outside the field
        """
        secrets = list(secrets)
        if len(secrets) != self.secret_count:
            raise ShareError(
                f"Expected {self.secret_count} secrets, got {len(secrets)}"
            )
        self._check_field_elements(secrets, 'Secret')

        rng = rng or SystemRandomSource()
        randomness = rng.field_elements(self.threshold, self.prime)

        poly = self.recover_polynomial(secrets, randomness)
        # extend to the share domain
        poly.extend([0] * (self.share_count + 1 - self.reconstruct_limit))
        shares = self.evaluate_polynomial(poly)
        # the evaluation at 1 is not a share
        del shares[0]

        logger.debug("Shared %d secrets into %d shares (threshold %d)",
                     self.secret_count, len(shares), self.threshold)
        return shares

    def recover_polynomial(self, secrets: list, randomness: list) -> list:
        """
        Coefficients of the polynomial through 0 at 1, the secrets, then
        the random values, all on consecutive powers of omega_secrets.
        """
        values = [0] + list(secrets) + list(randomness)
        if len(values) != self.reconstruct_limit:
            raise ShareError(
                f"Expected {self.threshold} random values, got {len(randomness)}"
            )
        return fft2_inverse(values, self.omega_secrets, self.prime)

    def evaluate_polynomial(self, coefficients: list) -> list:
        """Evaluate share_count + 1 coefficients at every power of omega_shares."""
        if len(coefficients) != self.share_count + 1:
            raise ShareError(
                f"Expected {self.share_count + 1} coefficients, got {len(coefficients)}"
            )
        return fft3(coefficients, self.omega_shares, self.prime)

    def reconstruct(self, indices: list, shares: list) -> list:
        """
        Reconstruct the secret vector from enough shares.

        Args:
            indices: Ranks of the known shares in the output of share()
            shares: The share values, aligned with indices

        Returns:
            secret_count recovered secrets

        Raises:
            ShareError: On length mismatch, fewer than reconstruct_limit
                shares, duplicate or out-of-range indices, or share values
                outside the field
        """
        indices = list(indices)
        shares = list(shares)
        if len(indices) != len(shares):
            raise ShareError(
                f"Got {len(indices)} indices but {len(shares)} shares"
            )
        if len(shares) < self.reconstruct_limit:
            raise ShareError(
                f"Need at least {self.reconstruct_limit} shares, got {len(shares)}"
            )
        for index in indices:
            if (not isinstance(index, int) or isinstance(index, bool)
                    or not 0 <= index < self.share_count):
                raise ShareError(
                    f"Share index {index!r} outside [0, {self.share_count})"
                )
        if len(set(indices)) != len(indices):
            raise ShareError("Duplicate share indices detected")
        self._check_field_elements(shares, 'Share')

        # rank i was read at omega_shares^(i+1); the point 1 was dropped
        points = [mod_pow(self.omega_shares, i + 1, self.prime) for i in indices]
        poly = newton_interpolation_general(points, shares, self.prime)

        secrets = []
        point = 1
        for _ in range(self.secret_count):
            point = (point * self.omega_secrets) % self.prime
            secrets.append(newton_evaluate(poly, point, self.prime))

        logger.debug("Reconstructed %d secrets from %d shares",
                     len(secrets), len(shares))
        return secrets

    def _check_field_elements(self, values: list, what: str):
        for value in values:
            if (not isinstance(value, int) or isinstance(value, bool)
                    or not 0 <= value < self.prime):
                raise ShareError(
                    f"{what} value {value!r} outside GF({self.prime})"
                )

    def to_dict(self) -> dict:
        return {
            'threshold': self.threshold,
            'share_count': self.share_count,
            'secret_count': self.secret_count,
            'prime': self.prime,
            'omega_secrets': self.omega_secrets,
            'omega_shares': self.omega_shares,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PackedSecretSharing':
        try:
            return cls(**{key: data[key] for key in (
                'threshold', 'share_count', 'secret_count',
                'prime', 'omega_secrets', 'omega_shares')})
        except KeyError as e:
            raise ParameterError(f"Missing scheme parameter: {e}") from e


def _check_primitive_root(omega: int, order: int, radix: int, prime: int, name: str):
    if mod_pow(omega, order, prime) != 1:
        raise ParameterError(
            f"{name}={omega} is not a {order}-th root of unity mod {prime}"
        )
    if mod_pow(omega, order // radix, prime) == 1:
        raise ParameterError(
            f"{name}={omega} is not a primitive {order}-th root of unity mod {prime}"
        )


# Tiny settings: 3 secrets shared 8 ways, security threshold 4.
PSS_4_8_3 = PackedSecretSharing(
    threshold=4,
    share_count=8,
    secret_count=3,
    prime=433,
    omega_secrets=354,
    omega_shares=150,
)

# Small settings: 3 secrets shared 26 ways, security threshold 4.
PSS_4_26_3 = PackedSecretSharing(
    threshold=4,
    share_count=26,
    secret_count=3,
    prime=433,
    omega_secrets=354,
    omega_shares=17,
)

# 100 secrets shared 728 ways, security threshold 155.
PSS_155_728_100 = PackedSecretSharing(
    threshold=155,
    share_count=728,
    secret_count=100,
    prime=746497,
    omega_secrets=95660,
    omega_shares=610121,
)

# 100 secrets shared 19682 ways, security threshold 155.
PSS_155_19682_100 = PackedSecretSharing(
    threshold=155,
    share_count=19682,
    secret_count=100,
    prime=5038849,
    omega_secrets=4318906,
    omega_shares=1814687,
)

PRESETS = MappingProxyType({
    'PSS_4_8_3': PSS_4_8_3,
    'PSS_4_26_3': PSS_4_26_3,
    'PSS_155_728_100': PSS_155_728_100,
    'PSS_155_19682_100': PSS_155_19682_100,
})


def get_preset(name: str) -> PackedSecretSharing:
    """Look up a preset by name (case insensitive)."""
    try:
        return PRESETS[name.upper()]
    except KeyError:
        raise ParameterError(
            f"Unknown preset {name!r}; choose from {', '.join(PRESETS)}"
        ) from None
