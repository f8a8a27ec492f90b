"""Affine transforms in the PDF ``[a b c d e f]`` convention.

A transform maps ``(x, y)`` to ``(a*x + c*y + e, b*x + d*y + f)``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Affine:
    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @classmethod
    def identity(cls) -> Affine:
        return cls()

    @classmethod
    def from_operands(cls, values: list[float]) -> Affine:
        a, b, c, d, e, f = values[:6]
        return cls(a, b, c, d, e, f)

    def as_tuple(self) -> tuple[float, float, float, float, float, float]:
        return (self.a, self.b, self.c, self.d, self.e, self.f)

    def compose(self, incoming: Affine) -> Affine:
        """Return the transform that applies ``incoming`` first, then ``self``.

        This is what ``cm`` does to the CTM: the new matrix is concatenated
        onto the existing one, so user-space points pass through ``incoming``
        before reaching the current device mapping.
        """
        return Affine(
            self.a * incoming.a + self.c * incoming.b,
            self.b * incoming.a + self.d * incoming.b,
            self.a * incoming.c + self.c * incoming.d,
            self.b * incoming.c + self.d * incoming.d,
            self.a * incoming.e + self.c * incoming.f + self.e,
            self.b * incoming.e + self.d * incoming.f + self.f,
        )

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return self.a * x + self.c * y + self.e, self.b * x + self.d * y + self.f


def identity() -> Affine:
    return Affine.identity()


def compose(current: Affine, incoming: Affine) -> Affine:
    return current.compose(incoming)


def apply(transform: Affine, x: float, y: float) -> tuple[float, float]:
    return transform.apply(x, y)


def page_flip(page_height: float) -> Affine:
    """Map a top-left origin onto PDF's bottom-left origin for a page."""
    return Affine(1.0, 0.0, 0.0, -1.0, 0.0, page_height)
