"""Input component handlers."""

from typing import Any, Dict

from shellysim.server.handlers.base import HandlerContext, MethodSpec, Params, get_id
from shellysim.server.models import component_key


def get_status(ctx: HandlerContext, params: Params) -> Any:
    return ctx.read(component_key("input", get_id(params)))


def get_config(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    # Fixed configuration; inputs are not configurable in the simulator
    input_id = get_id(params)
    return {
        "id": input_id,
        "name": f"Input {input_id}",
        "type": "switch",
        "enable": True,
        "invert": False,
        "factory_reset": True,
    }


def set_config(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {"restart_required": False}


METHODS = {
    "Input.GetStatus": MethodSpec(get_status),
    "Input.GetConfig": MethodSpec(get_config),
    "Input.SetConfig": MethodSpec(set_config),
}
