"""Schedule handlers.

Schedules are stored under ``schedule:<id>`` keys. New ids are allocated as
the highest existing id plus one, inside a single store transaction.
"""

from typing import Any, Dict, List

from shellysim.server.handlers.base import HandlerContext, MethodSpec, Params, get_id
from shellysim.server.models import DeviceState, component_key, parse_component_key


def _schedule_keys(state: DeviceState) -> List[str]:
    found = []
    for key in state:
        kind, schedule_id = parse_component_key(key)
        if kind == "schedule" and schedule_id is not None:
            found.append((schedule_id, key))
    return [key for _, key in sorted(found)]


def list_schedules(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    state = ctx.store.snapshot(ctx.device_name)
    jobs = [state[key] for key in _schedule_keys(state) if isinstance(state[key], dict)]
    return {"jobs": jobs, "rev": 0}


def create(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    enable = params.get("enable", True)
    timespec = params.get("timespec", "")
    calls = params.get("calls", [])

    def allocate(state: DeviceState) -> int:
        ids = [parse_component_key(key)[1] for key in _schedule_keys(state)]
        new_id = max(ids, default=0) + 1
        state[component_key("schedule", new_id)] = {
            "id": new_id,
            "enable": enable if isinstance(enable, bool) else True,
            "timespec": timespec if isinstance(timespec, str) else "",
            "calls": calls if isinstance(calls, list) else [],
        }
        return new_id

    return {"id": ctx.store.transact(ctx.device_name, allocate), "rev": 1}


def update(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    schedule_id = get_id(params)
    key = component_key("schedule", schedule_id)

    def mutate(current: Any):
        job = current if isinstance(current, dict) and current else {"id": schedule_id}
        if isinstance(params.get("enable"), bool):
            job["enable"] = params["enable"]
        if isinstance(params.get("timespec"), str):
            job["timespec"] = params["timespec"]
        if isinstance(params.get("calls"), list):
            job["calls"] = params["calls"]
        return job, None

    ctx.store.set(ctx.device_name, key, mutate)
    return {"rev": 1}


def delete(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    ctx.store.delete(ctx.device_name, component_key("schedule", get_id(params)))
    return {"rev": 1}


def delete_all(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    def clear(state: DeviceState) -> None:
        for key in _schedule_keys(state):
            del state[key]

    ctx.store.transact(ctx.device_name, clear)
    return {"rev": 1}


METHODS = {
    "Schedule.List": MethodSpec(list_schedules),
    "Schedule.Create": MethodSpec(create),
    "Schedule.Update": MethodSpec(update),
    "Schedule.Delete": MethodSpec(delete),
    "Schedule.DeleteAll": MethodSpec(delete_all),
}
