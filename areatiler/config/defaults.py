"""
areatiler.config.defaults - Configuracion por defecto del engine.

Define las constantes de comportamiento y el dataclass EngineOptions:
    Placement:
        STACK_ZONE_RATIO     -> semi-extension (por eje) de la zona central
                                que produce un stack
        DETECTION_SIZE       -> tamano del preview de drag
        DETECTION_DIVISOR    -> el punto de prueba se desplaza
                                DETECTION_SIZE / DETECTION_DIVISOR

    Screens:
        DEFAULT_AREA_TYPE    -> tipo del area inicial de un screen nuevo
        DEFAULT_AREA_STATE   -> estado del area inicial

    Errores:
        MAX_ERRORS           -> tamano maximo del log de errores por screen

    Input continuo:
        DEBOUNCE_SECONDS     -> ventana del debounce (~60 Hz)
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from areatiler.tiling.vec2 import Vec2

log = logging.getLogger(__name__)


# ============================================================================
# Constantes
# ============================================================================
STACK_ZONE_RATIO = 0.3
DETECTION_SIZE = Vec2(300, 200)
DETECTION_DIVISOR = 15

DEFAULT_AREA_TYPE = "text-note"
DEFAULT_AREA_STATE: dict[str, Any] = {"content": "New Screen"}

SIZE_TOLERANCE = 1e-6
MAX_ERRORS = 50
DEBOUNCE_SECONDS = 0.016


# ============================================================================
# Opciones del engine
# ============================================================================
@dataclass(frozen=True, slots=True)
class EngineOptions:
    """
    Opciones inmutables de un LayoutEngine.

    Atributos:
        allow_stack_mixed_roles: Permite apilar areas de roles distintos.
        stack_zone_ratio:        Ver STACK_ZONE_RATIO.
        detection_size:          Tamano del preview de drag (None = sin offset).
        default_area_type:       Tipo del area semilla de un screen nuevo.
        default_area_state:      Estado del area semilla (se copia en cada uso).
        size_tolerance:          Tolerancia para la suma de sizes de un row.
        max_errors:              Entradas maximas del log de errores.
        debounce_seconds:        Ventana del TrailingDebouncer.
        strict_area_types:       Rechaza tipos no registrados al soltar un area.
        validate_after_commit:   Ejecuta validate_tree despues de cada commit.
    """

    allow_stack_mixed_roles: bool = True
    stack_zone_ratio: float = STACK_ZONE_RATIO
    detection_size: Vec2 | None = DETECTION_SIZE
    default_area_type: str = DEFAULT_AREA_TYPE
    default_area_state: dict[str, Any] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_AREA_STATE)
    )
    size_tolerance: float = SIZE_TOLERANCE
    max_errors: int = MAX_ERRORS
    debounce_seconds: float = DEBOUNCE_SECONDS
    strict_area_types: bool = False
    validate_after_commit: bool = False

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> EngineOptions:
        """
        Construye opciones desde un dict plano (p. ej. un archivo de config).

        Las claves desconocidas se ignoran con un warning. detection_size
        acepta cualquier forma que entienda Vec2.of().
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in values.items():
            if key not in known:
                log.warning("EngineOptions: opcion desconocida '%s' ignorada", key)
                continue
            if key == "detection_size" and value is not None:
                value = Vec2.of(value)
            kwargs[key] = value
        return cls(**kwargs)

    def new_default_state(self) -> dict[str, Any]:
        """Copia independiente del estado semilla."""
        return copy.deepcopy(self.default_area_state)
