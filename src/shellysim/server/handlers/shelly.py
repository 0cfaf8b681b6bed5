"""Device-level handlers for the Shelly and Sys namespaces."""

from typing import Any, Dict

from shellysim.server.handlers.base import HandlerContext, MethodSpec, Params
from shellysim.server.models import FIRMWARE_ID, FIRMWARE_VERSION, DeviceDescriptor, as_document, is_component_key

# Canned firmware update offer returned by Shelly.CheckForUpdate
STABLE_UPDATE = {"version": "1.5.0", "build_id": "20250101-120000/1.5.0"}


def device_info(device: DeviceDescriptor) -> Dict[str, Any]:
    """Build the Shelly.GetDeviceInfo document for a device."""
    return {
        "id": device.device_id,
        "mac": device.mac,
        "model": device.model,
        "gen": int(device.generation.effective),
        "fw_id": FIRMWARE_ID,
        "ver": FIRMWARE_VERSION,
        "app": device.device_type,
        "name": device.name,
        "auth_en": False,
        "auth_domain": None,
    }


def get_device_info(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return device_info(ctx.device)


def get_status(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return ctx.store.snapshot(ctx.device_name)


def get_config(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {"sys": {"device": {"name": ctx.device.name}}}


def get_components(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    keys = [key for key in ctx.store.keys(ctx.device_name) if is_component_key(key)]
    return {
        "components": [{"key": key} for key in keys],
        "cfg_rev": 0,
        "offset": 0,
        "total": len(keys),
    }


def list_methods(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {"methods": sorted(ctx.methods)}


def acknowledge(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {}


def restart_not_required(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {"restart_required": False}


def check_for_update(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {"stable": dict(STABLE_UPDATE)}


def put_user_ca(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {"len": 1024}


def put_tls_client_cert(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {"len": 2048}


def sys_get_config(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    device = ctx.device
    result: Dict[str, Any] = {
        "device": {
            "name": device.name,
            "mac": device.mac,
            "model": device.model,
            "fw_id": FIRMWARE_ID,
            "discoverable": True,
            "eco_mode": False,
        },
        "location": {"tz": "UTC", "lat": 0.0, "lon": 0.0},
        "debug": {"level": 2},
        "ui_data": {},
        "rpc_udp": {"dst_addr": "", "listen_port": None},
        "sntp": {"server": "time.google.com"},
        "cfg_rev": 0,
    }

    state = ctx.store.snapshot(ctx.device_name)
    coiot = as_document(state.get("coiot"))
    if coiot:
        result["coiot"] = coiot
    result["sys"] = as_document(state.get("sys")) or {"device": {"name": device.name}}
    return result


def sys_get_status(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {
        "mac": ctx.device.mac_compact,
        "restart_required": False,
        "time": "12:00",
        "unixtime": 1700000000,
        "uptime": 3600,
        "ram_size": 262144,
        "ram_free": 131072,
        "fs_size": 1048576,
        "fs_free": 524288,
        "cfg_rev": 10,
        "kvs_rev": 0,
        "schedule_rev": 0,
        "webhook_rev": 0,
        "available_updates": {
            "stable": {"version": FIRMWARE_VERSION, "build_id": FIRMWARE_ID},
        },
        "reset_reason": 1,
    }


METHODS = {
    "Shelly.GetDeviceInfo": MethodSpec(get_device_info),
    "Shelly.GetStatus": MethodSpec(get_status),
    "Shelly.GetConfig": MethodSpec(get_config),
    "Shelly.GetComponents": MethodSpec(get_components),
    "Shelly.ListMethods": MethodSpec(list_methods),
    "Shelly.SetAuth": MethodSpec(acknowledge),
    "Shelly.Reboot": MethodSpec(acknowledge),
    "Shelly.FactoryReset": MethodSpec(acknowledge),
    "Shelly.Update": MethodSpec(acknowledge),
    "Shelly.SetConfig": MethodSpec(restart_not_required),
    "Shelly.CheckForUpdate": MethodSpec(check_for_update),
    "Shelly.PutUserCA": MethodSpec(put_user_ca),
    "Shelly.PutTLSClientCert": MethodSpec(put_tls_client_cert),
    "Sys.GetConfig": MethodSpec(sys_get_config),
    "Sys.GetStatus": MethodSpec(sys_get_status),
}
