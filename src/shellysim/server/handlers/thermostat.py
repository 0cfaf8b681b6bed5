"""Thermostat handlers.

Status and configuration come from ``thermostat:<id>`` and
``thermostat:<id>_config`` when seeded. Seeding a ``thermostat_error`` key
on a device makes Thermostat.SetConfig fail, which lets callers exercise
their error path.
"""

from typing import Any, Dict

from shellysim.server.exceptions import RPC_INTERNAL_ERROR, RPCError
from shellysim.server.handlers.base import HandlerContext, MethodSpec, Params, get_id
from shellysim.server.models import component_key

ERROR_TRIGGER_KEY = "thermostat_error"


def get_status(ctx: HandlerContext, params: Params) -> Any:
    thermostat_id = get_id(params)
    return ctx.read_override(component_key("thermostat", thermostat_id), {
        "id": thermostat_id,
        "enable": True,
        "target_C": 21.0,
        "current_C": 20.5,
        "output": False,
    })


def get_config(ctx: HandlerContext, params: Params) -> Any:
    thermostat_id = get_id(params)
    key = component_key("thermostat", thermostat_id) + "_config"
    return ctx.read_override(key, {
        "id": thermostat_id,
        "type": "heating",
        "enable": True,
        "target_C": 21.0,
        "thermostat_mode": "auto",
    })


def set_config(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    if ERROR_TRIGGER_KEY in ctx.store.keys(ctx.device_name):
        raise RPCError(RPC_INTERNAL_ERROR, "thermostat config failed")
    return {"restart_required": False}


def acknowledge(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {}


METHODS = {
    "Thermostat.GetStatus": MethodSpec(get_status),
    "Thermostat.GetConfig": MethodSpec(get_config),
    "Thermostat.SetConfig": MethodSpec(set_config),
    "Thermostat.Override": MethodSpec(acknowledge),
    "Thermostat.CancelOverride": MethodSpec(acknowledge),
}
