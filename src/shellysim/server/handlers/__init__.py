"""Component method handlers.

Every current-generation method is registered in ``METHOD_TABLE``, which is
shared by the envelope endpoint and the per-method compatibility paths.
"""

from typing import Dict

from shellysim.server.handlers import (
    cover,
    energy,
    input,
    light,
    radio,
    schedule,
    script,
    shelly,
    subsystems,
    switch,
    thermostat,
    virtual,
)
from shellysim.server.handlers.base import Handler, HandlerContext, MethodSpec, Params

METHOD_TABLE: Dict[str, MethodSpec] = {}
for _module in (shelly, switch, cover, light, input, script, schedule, subsystems, radio, energy, thermostat, virtual):
    METHOD_TABLE.update(_module.METHODS)
del _module

__all__ = [
    "METHOD_TABLE",
    "Handler",
    "HandlerContext",
    "MethodSpec",
    "Params",
]
