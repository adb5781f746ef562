"""
areatiler.tiling.rect - Estructura geometrica Rect.

Define un rectangulo inmutable que representa el area de un nodo del
layout. Se usa tanto para el contenedor raiz que entrega el colaborador
de render como para los viewports calculados de cada area o row.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Sequence

from areatiler.tiling.vec2 import Vec2


@dataclass(frozen=True, slots=True)
class Rect:
    """
    Rectangulo inmutable definido por posicion (x, y) y dimensiones (w, h).

    Todas las coordenadas estan en pixeles. El origen (0, 0) es la esquina
    superior-izquierda del contenedor raiz.

    Atributos:
        x: Coordenada horizontal de la esquina superior-izquierda.
        y: Coordenada vertical de la esquina superior-izquierda.
        w: Ancho en pixeles.
        h: Alto en pixeles.
    """

    x: float
    y: float
    w: float
    h: float

    # ------------------------------------------------------------------
    # Propiedades derivadas
    # ------------------------------------------------------------------
    @property
    def left(self) -> float:
        return self.x

    @property
    def top(self) -> float:
        return self.y

    @property
    def width(self) -> float:
        return self.w

    @property
    def height(self) -> float:
        return self.h

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    @property
    def center(self) -> Vec2:
        return Vec2(self.x + self.w / 2, self.y + self.h / 2)

    @property
    def is_empty(self) -> bool:
        return self.w <= 0 or self.h <= 0

    # ------------------------------------------------------------------
    # Consultas geometricas
    # ------------------------------------------------------------------
    def contains(self, point: Vec2) -> bool:
        """True si el punto esta dentro del rectangulo (bordes incluidos)."""
        return (
            self.left <= point.x <= self.right
            and self.top <= point.y <= self.bottom
        )

    def edge_distances(self, point: Vec2) -> tuple[float, float, float, float]:
        """
        Distancias absolutas del punto a cada borde.

        Returns:
            Tupla (izquierda, derecha, arriba, abajo).
        """
        return (
            abs(point.x - self.left),
            abs(point.x - self.right),
            abs(point.y - self.top),
            abs(point.y - self.bottom),
        )

    def nearest_edge_distance(self, point: Vec2) -> float:
        return min(self.edge_distances(point))

    # ------------------------------------------------------------------
    # Operaciones geometricas
    # ------------------------------------------------------------------
    def slice_weighted(
        self, weights: Sequence[float], horizontal: bool
    ) -> list[Rect]:
        """
        Divide el rectangulo en franjas proporcionales a *weights*.

        Cada franja recibe floor(total * peso / suma); la ultima absorbe
        el sobrante, de modo que no quedan huecos ni solapamientos.

        Args:
            weights:    Pesos relativos de cada franja.
            horizontal: True para columnas (eje x), False para filas (eje y).

        Returns:
            Lista de Rect en el orden de *weights*.
        """
        count = len(weights)
        if count == 0:
            return []

        total_weight = sum(weights)
        if total_weight <= 0:
            # Sin pesos utiles: reparto equitativo
            weights = [1.0] * count
            total_weight = float(count)

        extent = self.w if horizontal else self.h
        rects: list[Rect] = []
        offset = 0

        for i, weight in enumerate(weights):
            if i < count - 1:
                span = math.floor(extent * (weight / total_weight))
            else:
                # La ultima franja absorbe los pixeles sobrantes
                span = extent - offset

            if horizontal:
                rects.append(Rect(self.x + offset, self.y, span, self.h))
            else:
                rects.append(Rect(self.x, self.y + offset, self.w, span))
            offset += span

        return rects

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, float]:
        """Forma {left, top, width, height} que usa el colaborador de render."""
        return {
            "left": self.x,
            "top": self.y,
            "width": self.w,
            "height": self.h,
        }

    @classmethod
    def of(cls, value: Rect | Mapping[str, float] | Sequence[float]) -> Rect:
        """
        Normaliza un rectangulo externo.

        Acepta un Rect, un dict {left, top, width, height} o una tupla
        (x, y, w, h). Un dict incompleto lanza KeyError y una secuencia
        de otra longitud, ValueError.
        """
        if isinstance(value, Rect):
            return value
        if isinstance(value, Mapping):
            return cls(value["left"], value["top"], value["width"], value["height"])
        x, y, w, h = value
        return cls(x, y, w, h)

    def to_ltrb(self) -> tuple[float, float, float, float]:
        """Retorna (left, top, right, bottom)."""
        return (self.left, self.top, self.right, self.bottom)

    @classmethod
    def from_ltrb(cls, left: float, top: float, right: float, bottom: float) -> Rect:
        """Crea un Rect desde coordenadas (left, top, right, bottom)."""
        return cls(left, top, right - left, bottom - top)

    # ------------------------------------------------------------------
    # Representacion
    # ------------------------------------------------------------------
    def __str__(self) -> str:
        return f"Rect({self.w:g}x{self.h:g}+{self.x:g}+{self.y:g})"
