"""
areatiler.tiling.screen_manager - Gestor de screens.

El ScreenManager mantiene la coleccion de screens independientes y sabe
cual esta activo. Cada screen es dueno exclusivo de su arbol: duplicar
o desacoplar siempre copia en profundidad, nunca comparte nodos.

Responsabilidades:
    - Crear screens (ids "1", "2", ...) con un area por defecto.
    - Cambiar el screen activo.
    - Eliminar screens, garantizando que siempre quede al menos un
      screen clasico (no desacoplado).
    - Duplicar un screen completo.
    - Crear screens desacoplados ("detached-N") a partir de un area.
    - Emitir eventos cuando cambia el screen activo.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from typing import Any, Optional

from areatiler.config.defaults import EngineOptions
from areatiler.core.errors import PolicyError, ScreenNotFoundError
from areatiler.tiling.screen import Screen, ScreenAreas, create_initial_screen
from areatiler.tiling.tree import Area, AreaNode, AreaRole

log = logging.getLogger(__name__)


# Tipo para callbacks de cambio de screen
# callback(old_screen_id, new_screen_id)
ScreenChangedCallback = Callable[[str, str], None]


DETACHED_PREFIX = "detached-"


class ScreenManager:
    """
    Gestiona todos los screens de una instancia del engine.

    Arranca con un unico screen clasico "1" activo.
    """

    def __init__(
        self,
        options: EngineOptions | None = None,
        initial_role: AreaRole = AreaRole.SELF,
    ) -> None:
        self._options = options or EngineOptions()
        self._screens: dict[str, Screen] = {}
        self._next_screen_id = 1
        self._detached_counter = 0
        self._active_screen_id = ""

        # Callbacks para cambio de screen activo
        self._on_screen_changed: list[ScreenChangedCallback] = []

        self.add_screen(role=initial_role)
        log.info("ScreenManager: screen inicial %s", self._active_screen_id)

    # ------------------------------------------------------------------
    # Propiedades
    # ------------------------------------------------------------------
    @property
    def options(self) -> EngineOptions:
        return self._options

    @property
    def screen_count(self) -> int:
        return len(self._screens)

    @property
    def classic_count(self) -> int:
        return sum(1 for s in self._screens.values() if not s.is_detached)

    @property
    def screen_ids(self) -> list[str]:
        return list(self._screens.keys())

    @property
    def active_screen_id(self) -> str:
        return self._active_screen_id

    @property
    def active_screen(self) -> Screen:
        return self._screens[self._active_screen_id]

    @property
    def next_screen_id(self) -> int:
        return self._next_screen_id

    def get_screen(self, screen_id: str) -> Optional[Screen]:
        """Obtiene un screen por ID."""
        return self._screens.get(screen_id)

    def require_screen(self, screen_id: str) -> Screen:
        screen = self._screens.get(screen_id)
        if screen is None:
            raise ScreenNotFoundError(screen_id)
        return screen

    def publish(self, screen_id: str, areas: ScreenAreas) -> None:
        """Reemplaza el estado del arbol de un screen (commit de un borrador)."""
        self.require_screen(screen_id).areas = areas

    # ------------------------------------------------------------------
    # Suscripcion a eventos de cambio de screen
    # ------------------------------------------------------------------
    def on_screen_changed(self, callback: ScreenChangedCallback) -> None:
        """
        Registra un callback que se invoca cuando cambia el screen activo.

        El callback recibe (old_screen_id, new_screen_id).
        """
        self._on_screen_changed.append(callback)

    def off_screen_changed(self, callback: ScreenChangedCallback) -> None:
        """Desregistra un callback de cambio de screen."""
        try:
            self._on_screen_changed.remove(callback)
        except ValueError:
            pass

    def _emit_screen_changed(self, old_id: str, new_id: str) -> None:
        for cb in self._on_screen_changed:
            try:
                cb(old_id, new_id)
            except Exception:
                log.exception("Error en callback on_screen_changed")

    def _activate(self, screen_id: str) -> None:
        old_id = self._active_screen_id
        self._active_screen_id = screen_id
        if old_id and old_id != screen_id:
            self._emit_screen_changed(old_id, screen_id)

    # ------------------------------------------------------------------
    # Ids
    # ------------------------------------------------------------------
    def _allocate_classic_id(self) -> str:
        while str(self._next_screen_id) in self._screens:
            self._next_screen_id += 1
        screen_id = str(self._next_screen_id)
        self._next_screen_id += 1
        return screen_id

    def _allocate_detached_id(self) -> str:
        while True:
            self._detached_counter += 1
            screen_id = f"{DETACHED_PREFIX}{self._detached_counter}"
            if screen_id not in self._screens:
                return screen_id

    def _recompute_next_id(self) -> None:
        classic = [int(i) for i, s in self._screens.items() if not s.is_detached and i.isdigit()]
        self._next_screen_id = max(classic, default=0) + 1

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    def add_screen(self, role: AreaRole = AreaRole.SELF) -> str:
        """
        Crea un screen clasico con un area por defecto y lo activa.

        Returns:
            El ID del screen nuevo.
        """
        screen_id = self._allocate_classic_id()
        self._screens[screen_id] = create_initial_screen(
            self._options.default_area_type,
            self._options.new_default_state(),
            role,
        )
        self._activate(screen_id)
        log.info("ADD screen %s", screen_id)
        return screen_id

    def switch_screen(self, screen_id: str) -> bool:
        """
        Activa un screen.

        Raises:
            ScreenNotFoundError: si el ID no existe.

        Returns:
            True si cambio, False si ya estaba activo.
        """
        self.require_screen(screen_id)
        if screen_id == self._active_screen_id:
            log.debug("switch_screen: ya en screen %s", screen_id)
            return False
        old_id = self._active_screen_id
        self._activate(screen_id)
        log.info("SWITCH screen %s -> %s", old_id, screen_id)
        return True

    def remove_screen(self, screen_id: str) -> bool:
        """
        Elimina un screen.

        Si era el activo, pasa a serlo el screen clasico de menor ID.

        Raises:
            PolicyError: si es el ultimo screen clasico.

        Returns:
            True si se elimino, False si no existia.
        """
        screen = self._screens.get(screen_id)
        if screen is None:
            log.warning("remove_screen: screen %s no existe", screen_id)
            return False
        if not screen.is_detached and self.classic_count <= 1:
            log.warning("remove_screen: %s es el ultimo screen clasico", screen_id)
            raise PolicyError("Cannot remove the last classic screen")

        del self._screens[screen_id]
        self._recompute_next_id()

        if self._active_screen_id == screen_id:
            self._activate(self._first_classic_id())

        log.info("REMOVE screen %s (quedan %d)", screen_id, len(self._screens))
        return True

    def _first_classic_id(self) -> str:
        classic = [i for i, s in self._screens.items() if not s.is_detached]
        numeric = sorted((int(i), i) for i in classic if i.isdigit())
        if numeric:
            return numeric[0][1]
        return min(classic)

    def duplicate_screen(self, screen_id: str) -> str:
        """
        Copia en profundidad un screen (arbol y datos) bajo un ID nuevo,
        conservando si es desacoplado, y activa la copia.
        """
        source = self.require_screen(screen_id)
        if source.is_detached:
            new_id = self._allocate_detached_id()
        else:
            new_id = self._allocate_classic_id()
        self._screens[new_id] = copy.deepcopy(source)
        self._activate(new_id)
        log.info("DUPLICATE screen %s -> %s", screen_id, new_id)
        return new_id

    def add_detached_screen(self, area: Area, detached_from_area_id: str) -> str:
        """
        Crea un screen desacoplado cuyo unico area es una copia de *area*
        (mismo ID). No cambia el screen activo.
        """
        screen_id = self._allocate_detached_id()
        areas = ScreenAreas()
        moved = copy.deepcopy(area)
        areas.areas[moved.id] = moved
        areas.layout[moved.id] = AreaNode(moved.id)
        areas.root_id = moved.id
        areas.active_area_id = moved.id
        if moved.role is AreaRole.LEAD:
            areas.last_lead_area_id = moved.id
        self._screens[screen_id] = Screen(
            areas=areas,
            is_detached=True,
            detached_from_area_id=detached_from_area_id,
        )
        log.info("DETACH area %s -> screen %s", area.id, screen_id)
        return screen_id

    # ------------------------------------------------------------------
    # Serializacion / debug
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        return {
            "screens": {k: s.to_dict() for k, s in self._screens.items()},
            "activeScreenId": self._active_screen_id,
            "nextScreenId": self._next_screen_id,
        }

    def dump_state(self) -> str:
        lines = [
            f"=== ScreenManager: {len(self._screens)} screens, "
            f"{self.classic_count} clasicos ===",
            "",
        ]
        for screen_id, screen in self._screens.items():
            marks = []
            if screen_id == self._active_screen_id:
                marks.append("activo")
            if screen.is_detached:
                marks.append(f"detached de {screen.detached_from_area_id}")
            suffix = f" [{', '.join(marks)}]" if marks else ""
            lines.append(f"--- Screen {screen_id}{suffix} ---")
            lines.append(screen.areas.dump_state())
            lines.append("")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"ScreenManager("
            f"screens={len(self._screens)}, "
            f"active={self._active_screen_id!r})"
        )
