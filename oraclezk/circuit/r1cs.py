"""
Rank-1 constraint system with tagged constraints and witness hints

A circuit is built once: inputs are declared, intermediate wires are created
by hints (witness-only computations), and every hint is tied down by rank-1
constraints ``a * b = c`` over linear combinations. Solving runs the input
assignments and hints in creation order; checking evaluates every constraint
against the resulting assignment.

Each constraint records the ``(group, index)`` scope active when it was
emitted, plus a free-form label, so a failing witness can be reported as
"signature[2]: final equality x" instead of a bare constraint number.
"""

import hashlib
import logging
from collections import Counter
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..errors import CircuitBuildError, ConstraintViolation, Violation, WitnessError
from .field import P

logger = logging.getLogger(__name__)

ONE = 0  # wire index of the constant 1


class LinearCombination:
    """Sparse linear combination of wires, ``{wire_index: coefficient}``"""

    __slots__ = ("terms",)

    def __init__(self, terms: Optional[Dict[int, int]] = None):
        self.terms = {}
        if terms:
            for k, v in terms.items():
                v %= P
                if v:
                    self.terms[k] = v

    @classmethod
    def constant(cls, value: int) -> "LinearCombination":
        return cls({ONE: value})

    @classmethod
    def wire(cls, index: int) -> "LinearCombination":
        lc = cls()
        lc.terms[index] = 1
        return lc

    @staticmethod
    def coerce(value: "Signal") -> "LinearCombination":
        if isinstance(value, LinearCombination):
            return value
        if isinstance(value, int):
            return LinearCombination.constant(value)
        raise TypeError(f"cannot use {type(value).__name__} as a signal")

    def is_constant(self) -> bool:
        return all(k == ONE for k in self.terms)

    @property
    def constant_value(self) -> int:
        return self.terms.get(ONE, 0)

    def evaluate(self, values: Sequence[int]) -> int:
        return sum(values[k] * v for k, v in self.terms.items()) % P

    def _merge(self, other, sign: int) -> "LinearCombination":
        other = LinearCombination.coerce(other)
        out = LinearCombination()
        terms = dict(self.terms)
        for k, v in other.terms.items():
            nv = (terms.get(k, 0) + sign * v) % P
            if nv:
                terms[k] = nv
            else:
                terms.pop(k, None)
        out.terms = terms
        return out

    def __add__(self, other):
        return self._merge(other, 1)

    __radd__ = __add__

    def __sub__(self, other):
        return self._merge(other, -1)

    def __rsub__(self, other):
        return LinearCombination.coerce(other)._merge(self, -1)

    def __neg__(self):
        return self * -1

    def __mul__(self, k):
        if isinstance(k, LinearCombination):
            if k.is_constant():
                k = k.constant_value
            elif self.is_constant():
                return k * self.constant_value
            else:
                raise TypeError("product of two wires needs ConstraintSystem.mul")
        if not isinstance(k, int):
            return NotImplemented
        k %= P
        out = LinearCombination()
        if k:
            out.terms = {i: v * k % P for i, v in self.terms.items()}
        return out

    __rmul__ = __mul__

    def __repr__(self):
        parts = []
        for k, v in sorted(self.terms.items()):
            parts.append(f"{v}" if k == ONE else f"{v}*w{k}")
        return "LC(" + " + ".join(parts or ["0"]) + ")"


Signal = Union[LinearCombination, int]


def lc_sum(items) -> LinearCombination:
    """Sum of signals, accumulated into one term dict"""
    terms: Dict[int, int] = {}
    for item in items:
        for k, v in LinearCombination.coerce(item).terms.items():
            terms[k] = terms.get(k, 0) + v
    return LinearCombination(terms)


class Constraint:
    __slots__ = ("a", "b", "c", "group", "index", "label")

    def __init__(self, a, b, c, group, index, label):
        self.a = a
        self.b = b
        self.c = c
        self.group = group
        self.index = index
        self.label = label

    def holds(self, values: Sequence[int]) -> bool:
        return (self.a.evaluate(values) * self.b.evaluate(values) - self.c.evaluate(values)) % P == 0


class Witness:
    """Full wire assignment produced by :meth:`ConstraintSystem.solve`"""

    def __init__(self, system: "ConstraintSystem", values: List[int]):
        self.system = system
        self.values = values

    def value(self, signal: Signal) -> int:
        return LinearCombination.coerce(signal).evaluate(self.values)

    def outputs(self) -> Dict[str, int]:
        return {name: self.value(lc) for name, lc in self.system.public.items()}

    def violations(self) -> List[Violation]:
        return self.system.check(self)

    @property
    def satisfied(self) -> bool:
        return not self.violations()


class ConstraintSystem:
    """
    Mutable circuit under construction

    Args:
        name: Human readable circuit name (used in logs and digests)
    """

    def __init__(self, name: str = "circuit"):
        self.name = name
        self.num_wires = 1
        self.constraints: List[Constraint] = []
        self.inputs: Dict[str, Tuple[Tuple[int, ...], List[int]]] = {}
        self.public: Dict[str, LinearCombination] = {}
        self._hints: List[Tuple[int, Callable]] = []
        self._scope: List[Tuple[str, Optional[int]]] = [("core", None)]

    # -- construction -----------------------------------------------------

    def _new_wire(self) -> int:
        idx = self.num_wires
        self.num_wires += 1
        return idx

    @contextmanager
    def scope(self, group: str, index: Optional[int] = None):
        """Tag every constraint emitted inside the block with (group, index)"""
        self._scope.append((group, index))
        try:
            yield
        finally:
            self._scope.pop()

    @property
    def current_scope(self) -> Tuple[str, Optional[int]]:
        return self._scope[-1]

    def input(self, name: str, *shape: int):
        """
        Declare a private input

        Args:
            name: Key of the value in the input mapping passed to solve()
            *shape: Array dimensions; empty for a scalar

        Returns:
            A LinearCombination for a scalar, else nested lists of them
        """
        if name in self.inputs:
            raise CircuitBuildError(f"input '{name}' declared twice")
        count = 1
        for d in shape:
            if d < 0:
                raise CircuitBuildError(f"negative dimension for '{name}'")
            count *= d
        wires = [self._new_wire() for _ in range(count)]
        self.inputs[name] = (tuple(shape), wires)
        flat = [LinearCombination.wire(w) for w in wires]
        return _reshape(flat, shape)

    def hint(self, fn: Callable[[Callable[[Signal], int]], int]) -> LinearCombination:
        """
        New wire whose value is computed from already assigned wires

        The hint receives a getter ``w(signal) -> int``. The returned wire is
        unconstrained until the caller ties it down.
        """
        idx = self._new_wire()
        self._hints.append((idx, fn))
        return LinearCombination.wire(idx)

    def enforce(self, a: Signal, b: Signal, c: Signal, label: str = "") -> None:
        a = LinearCombination.coerce(a)
        b = LinearCombination.coerce(b)
        c = LinearCombination.coerce(c)
        if a.is_constant() and b.is_constant() and c.is_constant():
            if (a.constant_value * b.constant_value - c.constant_value) % P:
                group, index = self.current_scope
                raise CircuitBuildError(f"constant constraint can never hold: {group}[{index}] {label}")
            return
        group, index = self.current_scope
        self.constraints.append(Constraint(a, b, c, group, index, label))

    def assert_equal(self, x: Signal, y: Signal, label: str = "") -> None:
        self.enforce(0, 0, LinearCombination.coerce(x) - y, label)

    def assert_zero(self, x: Signal, label: str = "") -> None:
        self.enforce(0, 0, x, label)

    def mul(self, x: Signal, y: Signal, label: str = "") -> LinearCombination:
        """Product of two signals; free when either side is constant"""
        x = LinearCombination.coerce(x)
        y = LinearCombination.coerce(y)
        if x.is_constant():
            return y * x.constant_value
        if y.is_constant():
            return x * y.constant_value
        out = self.hint(lambda w: w(x) * w(y))
        self.enforce(x, y, out, label or "product")
        return out

    def expose(self, name: str, signal: Signal) -> None:
        """Mark a signal as a public output"""
        if name in self.public:
            raise CircuitBuildError(f"public output '{name}' declared twice")
        self.public[name] = LinearCombination.coerce(signal)

    # -- evaluation -------------------------------------------------------

    def solve(self, inputs: Dict[str, object]) -> Witness:
        """
        Assign every wire from the given inputs

        Raises:
            WitnessError: an input is missing, mis-shaped or out of the field
        """
        values = [0] * self.num_wires
        values[ONE] = 1
        for name, (shape, wires) in self.inputs.items():
            if name not in inputs:
                raise WitnessError(f"missing input '{name}'")
            flat = _flatten(inputs[name], shape, name)
            for w, v in zip(wires, flat):
                if not isinstance(v, int) or isinstance(v, bool) or not 0 <= v < P:
                    raise WitnessError(f"input '{name}' holds {v!r}, not a field element")
                values[w] = v

        def getter(signal):
            if isinstance(signal, int):
                return signal % P
            return signal.evaluate(values)

        for idx, fn in self._hints:
            values[idx] = fn(getter) % P
        return Witness(self, values)

    def check(self, witness: Union[Witness, List[int]], limit: Optional[int] = None) -> List[Violation]:
        values = witness.values if isinstance(witness, Witness) else witness
        found = []
        for cid, c in enumerate(self.constraints):
            if not c.holds(values):
                found.append(Violation(cid, c.group, c.index, c.label))
                if limit is not None and len(found) >= limit:
                    break
        return found

    def prove(self, inputs: Dict[str, object]) -> Witness:
        """Solve and check; raise ConstraintViolation on the first failing constraints"""
        witness = self.solve(inputs)
        violations = self.check(witness)
        if violations:
            logger.debug("%s: %d unsatisfied constraints, first %s",
                         self.name, len(violations), violations[0].describe())
            raise ConstraintViolation(violations)
        return witness

    # -- introspection ----------------------------------------------------

    def stats(self) -> Dict[str, int]:
        """Constraint counts per group, in first-seen order"""
        counts = Counter(c.group for c in self.constraints)
        ordered = {}
        for c in self.constraints:
            if c.group not in ordered:
                ordered[c.group] = counts[c.group]
        return ordered

    def digest(self) -> str:
        """Structural fingerprint: wires, inputs, outputs and every constraint"""
        h = hashlib.sha256()
        h.update(f"{self.name}:{self.num_wires}".encode())
        for name, (shape, _) in self.inputs.items():
            h.update(f"in:{name}:{shape}".encode())
        for name, lc in self.public.items():
            h.update(f"out:{name}:{sorted(lc.terms.items())}".encode())
        for c in self.constraints:
            for lc in (c.a, c.b, c.c):
                h.update(repr(sorted(lc.terms.items())).encode())
            h.update(b";")
        return h.hexdigest()


def _reshape(flat: list, shape: Sequence[int]):
    if not shape:
        return flat[0]
    if len(shape) == 1:
        return flat
    step = len(flat) // shape[0] if shape[0] else 0
    return [_reshape(flat[i * step:(i + 1) * step], shape[1:]) for i in range(shape[0])]


def _flatten(value, shape: Sequence[int], name: str) -> list:
    if not shape:
        if isinstance(value, (list, tuple)):
            raise WitnessError(f"input '{name}' must be a scalar")
        return [value]
    if not isinstance(value, (list, tuple)) or len(value) != shape[0]:
        got = len(value) if isinstance(value, (list, tuple)) else type(value).__name__
        raise WitnessError(f"input '{name}' must have length {shape[0]}, got {got}")
    out = []
    for item in value:
        out.extend(_flatten(item, shape[1:], name))
    return out
