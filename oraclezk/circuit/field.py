"""
BN254 scalar field arithmetic on plain Python integers
"""

P = 21888242871839275222246405745257275088548364400416034343698204186575808495617

# Field image of -1, used to pad every fixed-capacity array
SENTINEL = P - 1

HALF = (P - 1) // 2


def inv(x: int) -> int:
    """Multiplicative inverse; maps 0 to 0 so witness hints stay total"""
    x %= P
    if x == 0:
        return 0
    return pow(x, P - 2, P)


def div(a: int, b: int) -> int:
    return a * inv(b) % P


def is_negative(x: int) -> bool:
    """Sign convention for point compression: upper half of the field is negative"""
    return x % P > HALF


def _two_adicity():
    q, s = P - 1, 0
    while q % 2 == 0:
        q //= 2
        s += 1
    return q, s


_Q, _S = _two_adicity()


def _non_residue() -> int:
    z = 2
    while pow(z, HALF, P) != P - 1:
        z += 1
    return z


_Z = _non_residue()


def sqrt(n: int):
    """
    Square root modulo P via Tonelli-Shanks

    Returns:
        A root r with r*r == n, or None when n is not a quadratic residue
    """
    n %= P
    if n == 0:
        return 0
    if pow(n, HALF, P) != 1:
        return None

    m = _S
    c = pow(_Z, _Q, P)
    t = pow(n, _Q, P)
    r = pow(n, (_Q + 1) // 2, P)
    while t != 1:
        i, t2 = 0, t
        while t2 != 1:
            t2 = t2 * t2 % P
            i += 1
        b = pow(c, 1 << (m - i - 1), P)
        m = i
        c = b * b % P
        t = t * c % P
        r = r * b % P
    return r


def int_to_bits(value: int, width: int):
    """Little-endian bit list of a non-negative integer"""
    return [(value >> i) & 1 for i in range(width)]
