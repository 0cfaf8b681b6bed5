"""Virtual component handlers (Boolean, Number, Text, Enum, Button).

Virtual components live in state under ``<type>:<id>`` keys holding
``{"id", "value"}``. A component that was never seeded or set reads as its
type's zero value. Virtual.Add allocates ids from 200 upwards, as devices
do, unless the caller asks for a specific id.
"""

from typing import Any, Callable, Dict, Tuple

from shellysim.server.exceptions import RPC_INVALID_PARAMS, RPCError
from shellysim.server.handlers.base import HandlerContext, MethodSpec, Params, get_id, get_int, get_str
from shellysim.server.models import ComponentState, DeviceState, as_document, component_key, parse_component_key

FIRST_VIRTUAL_ID = 200

# Zero value and accepted value check per component type
VALUE_TYPES: Dict[str, Tuple[Any, Callable[[Any], bool]]] = {
    "boolean": (False, lambda v: isinstance(v, bool)),
    "number": (0, lambda v: isinstance(v, (int, float)) and not isinstance(v, bool)),
    "text": ("", lambda v: isinstance(v, str)),
    "enum": ("", lambda v: isinstance(v, str)),
}

VIRTUAL_TYPES = tuple(VALUE_TYPES) + ("button",)


def _status_handler(kind: str) -> Callable[[HandlerContext, Params], Any]:
    zero, _ = VALUE_TYPES[kind]

    def handler(ctx: HandlerContext, params: Params) -> Any:
        component_id = get_id(params)
        return ctx.read_override(component_key(kind, component_id), {"id": component_id, "value": zero})

    return handler


def _set_handler(kind: str) -> Callable[[HandlerContext, Params], Dict[str, Any]]:
    _, accepts = VALUE_TYPES[kind]

    def handler(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
        component_id = get_id(params)
        value = params.get("value")
        if not accepts(value):
            raise RPCError(RPC_INVALID_PARAMS, f"value must be a valid {kind}")

        def mutate(current: Any) -> Tuple[ComponentState, None]:
            doc = as_document(current)
            doc["id"] = component_id
            doc["value"] = value
            return doc, None

        ctx.store.set(ctx.device_name, component_key(kind, component_id), mutate)
        return {}

    return handler


def toggle_boolean(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    component_id = get_id(params)

    def mutate(current: Any) -> Tuple[ComponentState, None]:
        doc = as_document(current)
        doc["id"] = component_id
        doc["value"] = doc.get("value") is not True
        return doc, None

    ctx.store.set(ctx.device_name, component_key("boolean", component_id), mutate)
    return {}


def trigger_button(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {}


def add(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    kind = get_str(params, "type").lower()
    if kind not in VIRTUAL_TYPES:
        raise RPCError(RPC_INVALID_PARAMS, f"unsupported virtual component type {kind!r}")
    requested = get_int(params, "id")

    def allocate(state: DeviceState) -> int:
        if requested is not None and requested > 0:
            new_id = requested
        else:
            taken = set()
            for key in state:
                key_kind, key_id = parse_component_key(key)
                if key_kind == kind and key_id is not None:
                    taken.add(key_id)
            new_id = FIRST_VIRTUAL_ID
            while new_id in taken:
                new_id += 1
        doc: ComponentState = {"id": new_id}
        if kind in VALUE_TYPES:
            doc["value"] = VALUE_TYPES[kind][0]
        state[component_key(kind, new_id)] = doc
        return new_id

    return {"id": ctx.store.transact(ctx.device_name, allocate)}


def delete(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    # Addressed by full key, e.g. {"key": "boolean:200"}
    key = get_str(params, "key")
    kind, component_id = parse_component_key(key)
    if kind in VIRTUAL_TYPES and component_id is not None:
        ctx.store.delete(ctx.device_name, key)
    return {}


METHODS = {
    "Virtual.Add": MethodSpec(add),
    "Virtual.Delete": MethodSpec(delete),
    "Boolean.GetStatus": MethodSpec(_status_handler("boolean")),
    "Boolean.Set": MethodSpec(_set_handler("boolean")),
    "Boolean.Toggle": MethodSpec(toggle_boolean),
    "Number.GetStatus": MethodSpec(_status_handler("number")),
    "Number.Set": MethodSpec(_set_handler("number")),
    "Text.GetStatus": MethodSpec(_status_handler("text")),
    "Text.Set": MethodSpec(_set_handler("text")),
    "Enum.GetStatus": MethodSpec(_status_handler("enum")),
    "Enum.Set": MethodSpec(_set_handler("enum")),
    "Button.Trigger": MethodSpec(trigger_button),
}
