"""
Módulos declarativos e composição de passadas.
"""

from .module import Composition, Module, compose, load_module, module_from_dict

__all__ = ["Composition", "Module", "compose", "load_module", "module_from_dict"]
