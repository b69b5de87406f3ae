"""
Packed Sharing: finite field Fourier transforms.

Radix-2 transforms place secrets on 2^a roots of unity, radix-3 transforms
read shares off 3^b roots of unity. Both evaluate (forward) or interpolate
(inverse) a polynomial at every power of a primitive root in O(N log N),
where the naive approach costs O(N^2).

Element i of a forward transform is the polynomial evaluated at omega^i,
so element 0 is always the evaluation at 1.
"""

from .errors import ParameterError
from .numtheory import mod_inverse, mod_pow


def is_power_of(n: int, base: int) -> bool:
    """True if n == base^e for some e >= 0."""
    if n < 1:
        return False
    while n % base == 0:
        n //= base
    return n == 1


def _check_transform_args(length: int, omega: int, prime: int, radix: int):
    if not is_power_of(length, radix):
        raise ParameterError(
            f"Transform length must be a power of {radix}, got {length}"
        )
    # omega has order dividing length; exact order iff omega^(length/radix) != 1
    if mod_pow(omega, length, prime) != 1:
        raise ParameterError(
            f"{omega} is not a {length}-th root of unity mod {prime}"
        )
    if length > 1 and mod_pow(omega, length // radix, prime) == 1:
        raise ParameterError(
            f"{omega} is not a primitive {length}-th root of unity mod {prime}"
        )


def _fft2(a_coef: list, omega: int, prime: int) -> list:
    n = len(a_coef)
    if n == 1:
        return [a_coef[0] % prime]

    omega_squared = (omega * omega) % prime
    even = _fft2(a_coef[0::2], omega_squared, prime)
    odd = _fft2(a_coef[1::2], omega_squared, prime)

    half = n // 2
    result = [0] * n
    twiddle = 1
    for i in range(half):
        t = (twiddle * odd[i]) % prime
        result[i] = (even[i] + t) % prime
        result[i + half] = (even[i] - t) % prime
        twiddle = (twiddle * omega) % prime
    return result


def _fft3(a_coef: list, omega: int, prime: int) -> list:
    n = len(a_coef)
    if n == 1:
        return [a_coef[0] % prime]

    omega_cubed = mod_pow(omega, 3, prime)
    part0 = _fft3(a_coef[0::3], omega_cubed, prime)
    part1 = _fft3(a_coef[1::3], omega_cubed, prime)
    part2 = _fft3(a_coef[2::3], omega_cubed, prime)

    third = n // 3
    # primitive cube root of unity and its square
    zeta = mod_pow(omega, third, prime)
    zeta_squared = (zeta * zeta) % prime

    result = [0] * n
    twiddle = 1
    for i in range(third):
        t1 = (twiddle * part1[i]) % prime
        t2 = (twiddle * twiddle % prime * part2[i]) % prime
        result[i] = (part0[i] + t1 + t2) % prime
        result[i + third] = (part0[i] + zeta * t1 + zeta_squared * t2) % prime
        result[i + 2 * third] = (part0[i] + zeta_squared * t1 + zeta * t2) % prime
        twiddle = (twiddle * omega) % prime
    return result


def fft2(a_coef: list, omega: int, prime: int) -> list:
    """
    Evaluate a polynomial at all powers of a primitive 2^a-th root of unity.

    Args:
        a_coef: Coefficients, lowest degree first; length must be 2^a
        omega: Primitive len(a_coef)-th root of unity mod prime
        prime: The prime field modulus

    Returns:
        [p(omega^0), p(omega^1), ..., p(omega^(N-1))]

    Raises:
        ParameterError: If the length or the order of omega is wrong
    """
    _check_transform_args(len(a_coef), omega, prime, 2)
    return _fft2(list(a_coef), omega % prime, prime)


def fft2_inverse(a_point: list, omega: int, prime: int) -> list:
    """
    Recover coefficients from evaluations at the powers of omega.

    Inverse of fft2: runs the forward transform with omega^-1 and scales
    every output by N^-1.
    """
    _check_transform_args(len(a_point), omega, prime, 2)
    omega_inv = mod_inverse(omega, prime)
    len_inv = mod_inverse(len(a_point), prime)
    return [(x * len_inv) % prime for x in _fft2(list(a_point), omega_inv, prime)]


def fft3(a_coef: list, omega: int, prime: int) -> list:
    """
    Evaluate a polynomial at all powers of a primitive 3^b-th root of unity.

    The input is split into three interleaved subsequences, each transformed
    at omega^3, and recombined with the three cube roots of unity.

    Raises:
        ParameterError: If the length is not a power of three or omega does
            not have exactly that order
    """
    _check_transform_args(len(a_coef), omega, prime, 3)
    return _fft3(list(a_coef), omega % prime, prime)


def fft3_inverse(a_point: list, omega: int, prime: int) -> list:
    """Inverse of fft3."""
    _check_transform_args(len(a_point), omega, prime, 3)
    omega_inv = mod_inverse(omega, prime)
    len_inv = mod_inverse(len(a_point), prime)
    return [(x * len_inv) % prime for x in _fft3(list(a_point), omega_inv, prime)]
