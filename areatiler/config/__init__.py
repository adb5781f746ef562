"""
areatiler.config - Configuracion del engine.

    - defaults : constantes de comportamiento y EngineOptions
"""

from areatiler.config.defaults import EngineOptions

__all__ = ["EngineOptions"]
