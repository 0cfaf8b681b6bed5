"""Cover component handlers.

Covers are stubbed at the handler level: status reads come from state, but
Open/Close/Stop only acknowledge and never move the stored position.
"""

from typing import Any, Dict

from shellysim.server.handlers.base import HandlerContext, MethodSpec, Params, get_id
from shellysim.server.models import component_key


def get_status(ctx: HandlerContext, params: Params) -> Any:
    return ctx.read(component_key("cover", get_id(params)))


def acknowledge(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {}


METHODS = {
    "Cover.GetStatus": MethodSpec(get_status),
    "Cover.Open": MethodSpec(acknowledge),
    "Cover.Close": MethodSpec(acknowledge),
    "Cover.Stop": MethodSpec(acknowledge),
}
