"""Light, RGB and RGBW component handlers.

Light.Set stores ``brightness`` only when the requested value is greater
than zero. A zero brightness in the request leaves an earlier brightness in
place, which is how dimmers keep their level across off/on cycles.
"""

from typing import Any, Dict, Tuple

from shellysim.server.handlers.base import HandlerContext, MethodSpec, Params, get_bool, get_id, get_int
from shellysim.server.handlers.switch import toggle_output
from shellysim.server.models import ComponentState, as_document, component_key

# Channels accepted by RGB.Set / RGBW.Set
RGB_CHANNELS = ("red", "green", "blue", "brightness")
RGBW_CHANNELS = RGB_CHANNELS + ("white",)


def get_status(ctx: HandlerContext, params: Params) -> Any:
    return ctx.read(component_key("light", get_id(params)))


def set_light(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    key = component_key("light", get_id(params))
    on = get_bool(params, "on")
    brightness = get_int(params, "brightness") or 0

    def mutate(current: Any) -> Tuple[ComponentState, None]:
        doc = as_document(current)
        doc["output"] = on
        if brightness > 0:
            doc["brightness"] = brightness
        return doc, None

    ctx.store.set(ctx.device_name, key, mutate)
    return {}


def toggle(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    key = component_key("light", get_id(params))
    return {"was_on": toggle_output(ctx, key)}


def _color_handlers(kind: str, channels: Tuple[str, ...]) -> Dict[str, MethodSpec]:
    """Build GetStatus/Set/Toggle handlers for a colour component kind."""
    namespace = kind.upper()

    def color_status(ctx: HandlerContext, params: Params) -> Any:
        return ctx.read(component_key(kind, get_id(params)))

    def color_set(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
        key = component_key(kind, get_id(params))

        def mutate(current: Any) -> Tuple[ComponentState, None]:
            doc = as_document(current)
            doc.setdefault("output", False)
            if isinstance(params.get("on"), bool):
                doc["output"] = params["on"]
            for channel in channels:
                value = get_int(params, channel)
                if value is not None:
                    doc[channel] = value
            return doc, None

        ctx.store.set(ctx.device_name, key, mutate)
        return {}

    def color_toggle(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
        return {"was_on": toggle_output(ctx, component_key(kind, get_id(params)))}

    return {
        f"{namespace}.GetStatus": MethodSpec(color_status),
        f"{namespace}.Set": MethodSpec(color_set, malformed_result={}),
        f"{namespace}.Toggle": MethodSpec(color_toggle),
    }


METHODS = {
    "Light.GetStatus": MethodSpec(get_status),
    "Light.Set": MethodSpec(set_light, malformed_result={}),
    "Light.Toggle": MethodSpec(toggle),
    **_color_handlers("rgb", RGB_CHANNELS),
    **_color_handlers("rgbw", RGBW_CHANNELS),
}
