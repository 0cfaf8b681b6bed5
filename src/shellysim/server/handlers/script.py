"""Script component handlers.

Scripts live in state under ``script:<id>`` keys with ``name``, ``enable``,
``running`` and ``code`` members. Calls addressing a script that does not
exist behave like an empty script rather than failing.
"""

from typing import Any, Dict, List, Tuple

from shellysim.server.handlers.base import HandlerContext, MethodSpec, Params, get_bool, get_id, get_str
from shellysim.server.models import ComponentState, DeviceState, as_document, component_key, parse_component_key


def _script_ids(state: DeviceState) -> List[int]:
    ids = []
    for key in state:
        kind, script_id = parse_component_key(key)
        if kind == "script" and script_id is not None:
            ids.append(script_id)
    return sorted(ids)


def get_code(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    doc = as_document(ctx.read(component_key("script", get_id(params))))
    code = doc.get("code")
    return {"data": code if isinstance(code, str) else ""}


def list_scripts(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    state = ctx.store.snapshot(ctx.device_name)
    scripts = []
    for script_id in _script_ids(state):
        doc = as_document(state[component_key("script", script_id)])
        scripts.append({
            "id": script_id,
            "name": doc.get("name") or f"Script {script_id}",
            "enable": doc.get("enable", True),
            "running": doc.get("running", False),
        })
    return {"scripts": scripts}


def create(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    name = get_str(params, "name")

    def allocate(state: DeviceState) -> int:
        ids = _script_ids(state)
        new_id = ids[-1] + 1 if ids else 1
        state[component_key("script", new_id)] = {
            "id": new_id,
            "name": name or f"Script {new_id}",
            "enable": False,
            "running": False,
            "code": "",
        }
        return new_id

    return {"id": ctx.store.transact(ctx.device_name, allocate)}


def put_code(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    key = component_key("script", get_id(params))
    code = get_str(params, "code")
    append = get_bool(params, "append")

    def mutate(current: Any) -> Tuple[ComponentState, int]:
        doc = as_document(current)
        existing = doc.get("code") if append else ""
        doc["code"] = (existing if isinstance(existing, str) else "") + code
        return doc, len(doc["code"])

    return {"len": ctx.store.set(ctx.device_name, key, mutate)}


def _set_running(ctx: HandlerContext, params: Params, running: bool) -> Dict[str, Any]:
    key = component_key("script", get_id(params))

    def mutate(state: DeviceState) -> bool:
        doc = state.get(key)
        if not isinstance(doc, dict):
            return False
        was_running = bool(doc.get("running", False))
        doc["running"] = running
        return was_running

    return {"was_running": ctx.store.transact(ctx.device_name, mutate)}


def start(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return _set_running(ctx, params, True)


def stop(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return _set_running(ctx, params, False)


def set_config(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    key = component_key("script", get_id(params))
    config = as_document(params.get("config"))

    def mutate(state: DeviceState) -> None:
        doc = state.get(key)
        if not isinstance(doc, dict):
            return
        for name in ("name", "enable"):
            if name in config:
                doc[name] = config[name]

    ctx.store.transact(ctx.device_name, mutate)
    return {"restart_required": False}


def get_status(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    script_id = get_id(params)
    doc = as_document(ctx.read(component_key("script", script_id)))
    return {
        "id": script_id,
        "running": bool(doc.get("running", False)),
        "mem_usage": 1024,
        "mem_peak": 2048,
        "mem_free": 4096,
    }


def evaluate(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    # Canned evaluation result
    return {"result": 3}


def delete(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    ctx.store.delete(ctx.device_name, component_key("script", get_id(params)))
    return {}


METHODS = {
    "Script.GetCode": MethodSpec(get_code),
    "Script.List": MethodSpec(list_scripts),
    "Script.Create": MethodSpec(create),
    "Script.PutCode": MethodSpec(put_code),
    "Script.Start": MethodSpec(start),
    "Script.Stop": MethodSpec(stop),
    "Script.SetConfig": MethodSpec(set_config),
    "Script.GetStatus": MethodSpec(get_status),
    "Script.Eval": MethodSpec(evaluate),
    "Script.Delete": MethodSpec(delete),
}
