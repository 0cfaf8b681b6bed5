"""Energy meter handlers (EM three-phase and EM1 single-phase).

Meter readings are not simulated. A fixture seeds ``em:<id>`` or
``em1:<id>`` to control what a meter reports; otherwise a plausible
balanced load is returned. The EMData/EM1Data history calls list no
records and answer GetData with one fixed sample.
"""

from typing import Any, Dict

from shellysim.server.handlers.base import HandlerContext, MethodSpec, Params, get_id
from shellysim.server.models import component_key

# Per-phase defaults: (current, voltage, active power, apparent power, pf)
_PHASES = {
    "a": (1.5, 230.0, 345.0, 350.0, 0.98),
    "b": (1.4, 231.0, 323.0, 330.0, 0.97),
    "c": (1.6, 229.0, 367.0, 375.0, 0.97),
}

# Single sample returned by EMData/EM1Data.GetData
DATA_TIMESTAMP = 1700000000
DATA_PERIOD = 60


def em_defaults(meter_id: int) -> Dict[str, Any]:
    status: Dict[str, Any] = {"id": meter_id}
    for phase, (current, voltage, act_power, aprt_power, pf) in _PHASES.items():
        status[f"{phase}_current"] = current
        status[f"{phase}_voltage"] = voltage
        status[f"{phase}_act_power"] = act_power
        status[f"{phase}_aprt_power"] = aprt_power
        status[f"{phase}_pf"] = pf
        status[f"{phase}_freq"] = 50.0
    status.update({
        "n_current": None,
        "total_current": 4.5,
        "total_act_power": 1035.0,
        "total_aprt_power": 1055.0,
    })
    return status


def em1_defaults(meter_id: int) -> Dict[str, Any]:
    return {
        "id": meter_id,
        "current": 2.5,
        "voltage": 230.0,
        "act_power": 575.0,
        "aprt_power": 580.0,
        "pf": 0.99,
        "freq": 50.0,
    }


def em_status(ctx: HandlerContext, params: Params) -> Any:
    meter_id = get_id(params)
    return ctx.read_override(component_key("em", meter_id), em_defaults(meter_id))


def em1_status(ctx: HandlerContext, params: Params) -> Any:
    meter_id = get_id(params)
    return ctx.read_override(component_key("em1", meter_id), em1_defaults(meter_id))


def _data_block(values: Dict[str, Any]) -> Dict[str, Any]:
    return {"data": [{"ts": DATA_TIMESTAMP, "period": DATA_PERIOD, "values": [values]}]}


def em_data(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return _data_block({
        "total_act_power": 1500.0,
        "a_act_power": 500.0,
        "b_act_power": 500.0,
        "c_act_power": 500.0,
        "a_voltage": 230.0,
        "b_voltage": 230.0,
        "c_voltage": 230.0,
    })


def em1_data(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return _data_block({"act_power": 575.0, "voltage": 230.0, "current": 2.5, "pf": 0.99, "freq": 50.0})


def data_records(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    # No history is stored, so there are no record blocks to list
    return {"data_blocks": []}


def reset_counters(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {}


METHODS = {
    "EM.GetStatus": MethodSpec(em_status),
    "EM.ResetCounters": MethodSpec(reset_counters),
    "EM1.GetStatus": MethodSpec(em1_status),
    "EMData.GetRecords": MethodSpec(data_records),
    "EMData.GetData": MethodSpec(em_data),
    "EM1Data.GetRecords": MethodSpec(data_records),
    "EM1Data.GetData": MethodSpec(em1_data),
}
