"""BTHome and LoRa add-on handlers.

Neither radio is simulated. Reads return defaults unless a fixture seeds
the matching key: ``bthome`` for the gateway, ``bthomedevice:<id>`` (plus
``_config`` and ``_known_objects`` suffixes) for paired sensors, and
``lora:<id>`` / ``lora:<id>_config`` for the LoRa add-on. Writes are
acknowledged and not persisted.
"""

from typing import Any, Dict

from shellysim.server.handlers.base import HandlerContext, MethodSpec, Params, get_id
from shellysim.server.handlers.subsystems import acknowledge, overridable, restart_not_required
from shellysim.server.models import component_key

BTHOME_STATUS = {"errors": []}

# Returned by BTHome.AddDevice in place of a real bind key
MOCK_BIND_KEY = "mock-key-12345"

LORA_FREQUENCY_HZ = 868000000


def bthome_device_status(ctx: HandlerContext, params: Params) -> Any:
    device_id = get_id(params)
    return ctx.read_override(component_key("bthomedevice", device_id), {"id": device_id})


def bthome_device_config(ctx: HandlerContext, params: Params) -> Any:
    device_id = get_id(params)
    key = component_key("bthomedevice", device_id) + "_config"
    return ctx.read_override(key, {"id": device_id, "addr": "", "name": None})


def bthome_known_objects(ctx: HandlerContext, params: Params) -> Any:
    key = component_key("bthomedevice", get_id(params)) + "_known_objects"
    return ctx.read_override(key, {"objects": []})


def bthome_add_device(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {"key": MOCK_BIND_KEY}


def lora_status(ctx: HandlerContext, params: Params) -> Any:
    lora_id = get_id(params)
    return ctx.read_override(component_key("lora", lora_id), {"id": lora_id, "rssi": -65, "snr": 8.5})


def lora_config(ctx: HandlerContext, params: Params) -> Any:
    lora_id = get_id(params)
    key = component_key("lora", lora_id) + "_config"
    return ctx.read_override(key, {
        "id": lora_id,
        "freq": LORA_FREQUENCY_HZ,
        "bw": 7,
        "dr": 7,
        "txp": 14,
    })


METHODS = {
    "BTHome.GetStatus": MethodSpec(overridable("bthome", BTHOME_STATUS)),
    "BTHome.StartDeviceDiscovery": MethodSpec(acknowledge),
    "BTHome.AddDevice": MethodSpec(bthome_add_device),
    "BTHome.DeleteDevice": MethodSpec(acknowledge),
    "BTHomeDevice.GetStatus": MethodSpec(bthome_device_status),
    "BTHomeDevice.GetConfig": MethodSpec(bthome_device_config),
    "BTHomeDevice.GetKnownObjects": MethodSpec(bthome_known_objects),
    "LoRa.GetStatus": MethodSpec(lora_status),
    "LoRa.GetConfig": MethodSpec(lora_config),
    "LoRa.SetConfig": MethodSpec(restart_not_required),
    "LoRa.SendBytes": MethodSpec(acknowledge),
}
