"""Canned network, cloud, radio and fieldbus subsystem handlers.

None of these subsystems are simulated. Reads return fixed documents that are
consistent with each other (the station SSID in Wifi.GetStatus matches
Wifi.GetConfig, and so on). A fixture can replace a read by seeding the
matching state key, e.g. ``mqtt: {connected: true}``. SetConfig calls are
acknowledged and not persisted.
"""

import copy
from typing import Any, Callable, Dict

from shellysim.server.handlers.base import HandlerContext, MethodSpec, Params

HOME_SSID = "HomeNetwork"

WIFI_STATUS = {
    "sta_ip": "192.168.1.100",
    "status": "got ip",
    "ssid": HOME_SSID,
    "rssi": -45,
    "ap_client_count": 0,
}

WIFI_CONFIG = {
    "ap": {"ssid": "ShellyAP", "is_open": True, "enable": True, "range_extender": {"enable": False}},
    "sta": {"ssid": HOME_SSID, "is_open": False, "enable": True, "ipv4mode": "dhcp"},
    "sta1": {"ssid": "", "is_open": False, "enable": False, "ipv4mode": "dhcp"},
    "roam": {"rssi_thr": -80, "interval": 60},
}

WIFI_SCAN = {
    "results": [
        {"ssid": HOME_SSID, "bssid": "AA:BB:CC:DD:EE:FF", "auth": 3, "channel": 6, "rssi": -45},
        {"ssid": "GuestNetwork", "bssid": "11:22:33:44:55:66", "auth": 3, "channel": 11, "rssi": -60},
        {"ssid": "NeighborWiFi", "bssid": "AA:11:BB:22:CC:33", "auth": 3, "channel": 1, "rssi": -75},
    ],
}

WIFI_AP_CLIENTS = {
    "ts": 1700000000,
    "ap_clients": [
        {"mac": "AA:BB:CC:DD:EE:01", "ip": "192.168.33.2", "ip_static": False, "mport": 0, "since": 3600},
        {"mac": "AA:BB:CC:DD:EE:02", "ip": "192.168.33.3", "ip_static": False, "mport": 0, "since": 1800},
    ],
}

ETH_STATUS = {"ip": "192.168.1.50"}
ETH_CONFIG = {"enable": True, "ipv4mode": "dhcp"}

MQTT_STATUS = {"connected": False}
MQTT_CONFIG = {
    "enable": False,
    "server": "",
    "client_id": "",
    "topic_prefix": "",
    "rpc_ntf": True,
    "status_ntf": False,
}

CLOUD_STATUS = {"connected": False}
CLOUD_CONFIG = {"enable": False, "server": "shelly-13-eu.shelly.cloud:6022/jrpc"}

WS_STATUS = {"connected": False}
WS_CONFIG = {"enable": True, "server": "", "ssl_ca": "*"}

ZIGBEE_CONFIG = {"enable": True}
ZIGBEE_STATUS = {
    "network_state": "joined",
    "eui64": "0x00124B001234ABCD",
    "pan_id": 12345,
    "channel": 15,
}

MATTER_STATUS = {"commissioning_in_progress": False, "operational": False}
MATTER_CONFIG = {"enable": False}
MATTER_COMMISSIONING_CODE = {
    "manual_code": "34970112332",
    "qr_code": "MT:Y3.13WAF00KA0648G00",
    "discriminator": 3840,
    "setup_pin_code": 20202021,
}

MODBUS_STATUS = {"enabled": False}
MODBUS_CONFIG = {"enable": False}


def fixed(document: Dict[str, Any]) -> Callable[[HandlerContext, Params], Dict[str, Any]]:
    def handler(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
        return copy.deepcopy(document)

    return handler


def overridable(key: str, default: Dict[str, Any]) -> Callable[[HandlerContext, Params], Any]:
    def handler(ctx: HandlerContext, params: Params) -> Any:
        return ctx.read_override(key, copy.deepcopy(default))

    return handler


def restart_not_required(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {"restart_required": False}


def acknowledge(ctx: HandlerContext, params: Params) -> Dict[str, Any]:
    return {}


METHODS = {
    "Wifi.GetStatus": MethodSpec(fixed(WIFI_STATUS)),
    "Wifi.GetConfig": MethodSpec(fixed(WIFI_CONFIG)),
    "Wifi.SetConfig": MethodSpec(restart_not_required),
    "Wifi.Scan": MethodSpec(fixed(WIFI_SCAN)),
    "Wifi.ListAPClients": MethodSpec(fixed(WIFI_AP_CLIENTS)),
    "Eth.GetStatus": MethodSpec(overridable("eth", ETH_STATUS)),
    "Eth.GetConfig": MethodSpec(fixed(ETH_CONFIG)),
    "Eth.SetConfig": MethodSpec(restart_not_required),
    "MQTT.GetStatus": MethodSpec(overridable("mqtt", MQTT_STATUS)),
    "MQTT.GetConfig": MethodSpec(overridable("mqtt_config", MQTT_CONFIG)),
    "MQTT.SetConfig": MethodSpec(restart_not_required),
    "Cloud.GetStatus": MethodSpec(overridable("cloud", CLOUD_STATUS)),
    "Cloud.GetConfig": MethodSpec(overridable("cloud_config", CLOUD_CONFIG)),
    "Ws.GetStatus": MethodSpec(overridable("ws_status", WS_STATUS)),
    "Ws.GetConfig": MethodSpec(overridable("ws_config", WS_CONFIG)),
    "Zigbee.GetConfig": MethodSpec(fixed(ZIGBEE_CONFIG)),
    "Zigbee.SetConfig": MethodSpec(restart_not_required),
    "Zigbee.GetStatus": MethodSpec(fixed(ZIGBEE_STATUS)),
    "Zigbee.StartNetworkSteering": MethodSpec(acknowledge),
    "Matter.GetStatus": MethodSpec(overridable("matter", MATTER_STATUS)),
    "Matter.GetConfig": MethodSpec(overridable("matter_config", MATTER_CONFIG)),
    "Matter.SetConfig": MethodSpec(restart_not_required),
    "Matter.FactoryReset": MethodSpec(acknowledge),
    "Matter.GetCommissioningCode": MethodSpec(overridable("matter_code", MATTER_COMMISSIONING_CODE)),
    "Modbus.GetStatus": MethodSpec(overridable("modbus", MODBUS_STATUS)),
    "Modbus.GetConfig": MethodSpec(overridable("modbus_config", MODBUS_CONFIG)),
    "Modbus.SetConfig": MethodSpec(restart_not_required),
}
