"""Switch component handlers.

Switch.Set and Switch.Toggle return the ``output`` value held before the
call. A switch with no prior state reads as off, so the first mutation of
a fresh component always reports ``was_on: false``.
"""

from typing import Any, Dict, Tuple

from shellysim.server.handlers.base import HandlerContext, MethodSpec, Params, get_bool, get_id
from shellysim.server.models import ComponentState, as_document, component_key, read_output


def set_output(ctx: HandlerContext, key: str, on: bool) -> bool:
    """Store ``output = on`` for an output component, returning the old value."""

    def mutate(current: Any) -> Tuple[ComponentState, bool]:
        doc = as_document(current)
        was_on = read_output(doc)
        doc["output"] = on
        return doc, was_on

    return ctx.store.set(ctx.device_name, key, mutate)


def toggle_output(ctx: HandlerContext, key: str) -> bool:
    """Invert ``output`` of an output component, returning the old value."""

    def mutate(current: Any) -> Tuple[ComponentState, bool]:
        doc = as_document(current)
        was_on = read_output(doc)
        doc["output"] = not was_on
        return doc, was_on

    return ctx.store.set(ctx.device_name, key, mutate)


def get_status(ctx: HandlerContext, params: Params) -> Any:
    return ctx.read(component_key("switch", get_id(params)))


def set_switch(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    key = component_key("switch", get_id(params))
    return {"was_on": set_output(ctx, key, get_bool(params, "on"))}


def toggle(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    key = component_key("switch", get_id(params))
    return {"was_on": toggle_output(ctx, key)}


METHODS = {
    "Switch.GetStatus": MethodSpec(get_status),
    "Switch.Set": MethodSpec(set_switch, malformed_result={"was_on": False}),
    "Switch.Toggle": MethodSpec(toggle),
}
