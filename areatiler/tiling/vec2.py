"""
areatiler.tiling.vec2 - Vector 2D inmutable.

Representa posiciones del puntero y desplazamientos durante un drag.
El colaborador de input traduce sus eventos a Vec2 antes de llamar
al engine; el engine nunca toca APIs de dispositivos.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Vec2:
    """
    Vector 2D inmutable (x, y) en pixeles.

    Las operaciones retornan siempre un Vec2 nuevo.
    """

    x: float
    y: float

    @classmethod
    def of(cls, value: Vec2 | tuple[float, float] | dict) -> Vec2:
        """
        Normaliza un punto externo a Vec2.

        Acepta un Vec2, una tupla (x, y), o un dict con claves
        {x, y} o {left, top}.
        """
        if isinstance(value, Vec2):
            return value
        if isinstance(value, dict):
            if "x" in value:
                return cls(value["x"], value["y"])
            return cls(value["left"], value["top"])
        x, y = value
        return cls(x, y)

    # ------------------------------------------------------------------
    # Aritmetica
    # ------------------------------------------------------------------
    def add(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def sub(self, other: Vec2) -> Vec2:
        return Vec2(self.x - other.x, self.y - other.y)

    def scale(self, factor: float, anchor: Vec2 | None = None) -> Vec2:
        """Escala el vector respecto a *anchor* (origen por defecto)."""
        return self.scale_xy(factor, factor, anchor)

    def scale_xy(self, fx: float, fy: float, anchor: Vec2 | None = None) -> Vec2:
        ax = anchor.x if anchor is not None else 0.0
        ay = anchor.y if anchor is not None else 0.0
        return Vec2(ax + (self.x - ax) * fx, ay + (self.y - ay) * fy)

    def lerp(self, other: Vec2, t: float) -> Vec2:
        """Interpolacion lineal: t=0 es self, t=1 es other."""
        return Vec2(
            self.x + (other.x - self.x) * t,
            self.y + (other.y - self.y) * t,
        )

    def round(self) -> Vec2:
        return Vec2(round(self.x), round(self.y))

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def to_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)

    def __str__(self) -> str:
        return f"({self.x:g}, {self.y:g})"
