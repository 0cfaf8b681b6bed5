"""Tests for component method handlers, invoked through Gen2Dispatcher.call()."""

import pytest

from shellysim.server import RPC_INTERNAL_ERROR, RPC_INVALID_PARAMS, MethodNotFoundError, RPCError
from shellysim.server.gen2_dispatcher import Gen2Dispatcher
from shellysim.server.handlers import METHOD_TABLE
from shellysim.server.models import FIRMWARE_ID


@pytest.fixture
def rpc(store):
    """Create a dispatcher over the sample fleet store."""
    return Gen2Dispatcher(store)


@pytest.fixture
def kitchen(registry):
    return registry.lookup("Kitchen Light")


@pytest.fixture
def dimmer(registry):
    return registry.lookup("Living Room Dimmer")


@pytest.fixture
def hallway(registry):
    return registry.lookup("Hallway")


class TestMethodTable:
    """Tests for the method table contents."""

    @pytest.mark.parametrize("method", [
        "Shelly.GetDeviceInfo",
        "Switch.Toggle",
        "Light.Set",
        "RGBW.Set",
        "Cover.Open",
        "Input.GetConfig",
        "Script.Create",
        "Schedule.DeleteAll",
        "Wifi.Scan",
        "MQTT.GetStatus",
        "EM.GetStatus",
        "EM1.GetStatus",
        "Thermostat.SetConfig",
        "Sys.GetStatus",
        "Modbus.GetConfig",
        "Matter.GetCommissioningCode",
        "EMData.GetRecords",
        "EM1Data.GetData",
        "BTHome.AddDevice",
        "BTHomeDevice.GetKnownObjects",
        "LoRa.SendBytes",
        "Virtual.Add",
        "Boolean.Toggle",
        "Enum.Set",
        "Button.Trigger",
    ])
    def test_method_registered(self, method):
        """Test a representative method of every namespace is registered."""
        assert method in METHOD_TABLE

    def test_unknown_method(self, rpc, kitchen):
        """Test unknown methods raise MethodNotFoundError."""
        with pytest.raises(MethodNotFoundError):
            rpc.call(kitchen, "Switch.Explode")


class TestShellyHandlers:
    """Tests for Shelly.* and Sys.* handlers."""

    def test_device_info(self, rpc, kitchen):
        """Test device info reflects the descriptor."""
        info = rpc.call(kitchen, "Shelly.GetDeviceInfo")

        assert info["id"] == "shellyshellyplus1pm-AABBCCDDEE01"
        assert info["mac"] == "AA:BB:CC:DD:EE:01"
        assert info["gen"] == 2
        assert info["fw_id"] == FIRMWARE_ID
        assert info["app"] == "SNSW-001P16EU"

    def test_unset_generation_reports_gen2(self, rpc, hallway):
        """Test devices without a generation report gen 2."""
        assert rpc.call(hallway, "Shelly.GetDeviceInfo")["gen"] == 2

    def test_get_status_is_full_state(self, rpc, kitchen):
        """Test Shelly.GetStatus returns every state key."""
        status = rpc.call(kitchen, "Shelly.GetStatus")
        assert status["switch:0"]["output"] is True
        assert "script:1" in status

    def test_get_components(self, rpc, hallway):
        """Test only id-suffixed keys are listed as components."""
        result = rpc.call(hallway, "Shelly.GetComponents")
        assert result["components"] == []
        assert result["total"] == 0

    def test_list_methods(self, rpc, kitchen):
        """Test ListMethods returns the sorted method table."""
        methods = rpc.call(kitchen, "Shelly.ListMethods")["methods"]
        assert methods == sorted(METHOD_TABLE)

    def test_sys_get_status_mac(self, rpc, kitchen):
        """Test Sys.GetStatus reports the compact MAC."""
        assert rpc.call(kitchen, "Sys.GetStatus")["mac"] == "AABBCCDDEE01"


class TestSwitchHandlers:
    """Tests for Switch.* handlers."""

    def test_set_reports_previous_output(self, rpc, kitchen, store):
        """Test Switch.Set returns was_on and stores the new output."""
        assert rpc.call(kitchen, "Switch.Set", {"id": 0, "on": False}) == {"was_on": True}
        assert store.get("Kitchen Light", "switch:0")["output"] is False
        assert store.get("Kitchen Light", "switch:0")["apower"] == 45.2

    def test_toggle_fresh_component(self, rpc, kitchen, store):
        """Test toggling a never-seen switch reports was_on False."""
        assert rpc.call(kitchen, "Switch.Toggle", {"id": 5}) == {"was_on": False}
        assert store.get("Kitchen Light", "switch:5") == {"output": True}

    def test_toggle_twice_restores(self, rpc, kitchen):
        """Test two toggles restore the starting output."""
        rpc.call(kitchen, "Switch.Toggle", {"id": 0})
        rpc.call(kitchen, "Switch.Toggle", {"id": 0})
        assert rpc.call(kitchen, "Switch.GetStatus", {"id": 0})["output"] is True

    def test_missing_id_defaults_to_zero(self, rpc, kitchen):
        """Test an absent id addresses component 0."""
        assert rpc.call(kitchen, "Switch.GetStatus")["output"] is True

    def test_status_of_missing_component(self, rpc, kitchen):
        """Test a missing component reads as an empty document."""
        assert rpc.call(kitchen, "Switch.GetStatus", {"id": 9}) == {}


class TestLightHandlers:
    """Tests for Light.*, RGB.* and RGBW.* handlers."""

    def test_set_stores_brightness(self, rpc, dimmer, store):
        """Test a positive brightness is stored."""
        assert rpc.call(dimmer, "Light.Set", {"id": 0, "on": True, "brightness": 75}) == {}
        assert store.get("Living Room Dimmer", "light:0") == {"output": True, "brightness": 75}

    def test_zero_brightness_keeps_previous(self, rpc, dimmer, store):
        """Test brightness 0 leaves the stored brightness in place."""
        rpc.call(dimmer, "Light.Set", {"id": 0, "on": False, "brightness": 0})
        rpc.call(dimmer, "Light.Set", {"id": 0, "on": True})

        assert store.get("Living Room Dimmer", "light:0") == {"output": True, "brightness": 40}

    def test_light_toggle(self, rpc, dimmer):
        """Test Light.Toggle reports the previous output."""
        assert rpc.call(dimmer, "Light.Toggle", {"id": 0}) == {"was_on": False}
        assert rpc.call(dimmer, "Light.GetStatus", {"id": 0})["output"] is True

    def test_rgbw_set_channels(self, rpc, dimmer, store):
        """Test RGBW.Set stores colour channels."""
        rpc.call(dimmer, "RGBW.Set", {"id": 0, "on": True, "red": 255, "white": 10})
        assert store.get("Living Room Dimmer", "rgbw:0") == {"output": True, "red": 255, "white": 10}

    def test_rgb_ignores_white(self, rpc, dimmer, store):
        """Test RGB.Set has no white channel."""
        rpc.call(dimmer, "RGB.Set", {"id": 0, "white": 10, "blue": 3})
        assert store.get("Living Room Dimmer", "rgb:0") == {"output": False, "blue": 3}


class TestCoverAndInputHandlers:
    """Tests for Cover.* and Input.* handlers."""

    def test_cover_commands_acknowledge(self, rpc, kitchen, store):
        """Test cover commands do not change state."""
        before = store.snapshot("Kitchen Light")
        for method in ("Cover.Open", "Cover.Close", "Cover.Stop"):
            assert rpc.call(kitchen, method, {"id": 0}) == {}
        assert store.snapshot("Kitchen Light") == before

    def test_input_status(self, rpc, kitchen):
        """Test Input.GetStatus reads state."""
        assert rpc.call(kitchen, "Input.GetStatus", {"id": 0}) == {"state": False}

    def test_input_config(self, rpc, kitchen):
        """Test Input.GetConfig is canned per id."""
        config = rpc.call(kitchen, "Input.GetConfig", {"id": 2})
        assert config["id"] == 2
        assert config["name"] == "Input 2"


class TestScriptHandlers:
    """Tests for Script.* handlers."""

    def test_list(self, rpc, kitchen):
        """Test seeded scripts are listed."""
        scripts = rpc.call(kitchen, "Script.List")["scripts"]
        assert scripts == [{"id": 1, "name": "Night Mode", "enable": True, "running": False}]

    def test_create_allocates_next_id(self, rpc, kitchen, store):
        """Test Script.Create uses the highest id plus one."""
        assert rpc.call(kitchen, "Script.Create", {"name": "Away"}) == {"id": 2}
        assert store.get("Kitchen Light", "script:2")["name"] == "Away"

    def test_create_first_script_is_one(self, rpc, dimmer):
        """Test the first script on a device gets id 1."""
        assert rpc.call(dimmer, "Script.Create", {}) == {"id": 1}

    def test_put_code_append(self, rpc, kitchen):
        """Test appended code is concatenated."""
        assert rpc.call(kitchen, "Script.PutCode", {"id": 1, "code": "abc"}) == {"len": 3}
        assert rpc.call(kitchen, "Script.PutCode", {"id": 1, "code": "de", "append": True}) == {"len": 5}
        assert rpc.call(kitchen, "Script.GetCode", {"id": 1}) == {"data": "abcde"}

    def test_start_stop(self, rpc, kitchen):
        """Test start and stop report the previous running flag."""
        assert rpc.call(kitchen, "Script.Start", {"id": 1}) == {"was_running": False}
        assert rpc.call(kitchen, "Script.GetStatus", {"id": 1})["running"] is True
        assert rpc.call(kitchen, "Script.Stop", {"id": 1}) == {"was_running": True}

    def test_start_missing_script(self, rpc, kitchen, store):
        """Test starting a missing script creates nothing."""
        assert rpc.call(kitchen, "Script.Start", {"id": 7}) == {"was_running": False}
        assert "script:7" not in store.keys("Kitchen Light")

    def test_set_config(self, rpc, kitchen, store):
        """Test Script.SetConfig updates name and enable."""
        rpc.call(kitchen, "Script.SetConfig", {"id": 1, "config": {"name": "Late", "enable": False}})
        doc = store.get("Kitchen Light", "script:1")
        assert doc["name"] == "Late"
        assert doc["enable"] is False

    def test_delete(self, rpc, kitchen, store):
        """Test Script.Delete removes the script."""
        rpc.call(kitchen, "Script.Delete", {"id": 1})
        assert rpc.call(kitchen, "Script.List") == {"scripts": []}


class TestScheduleHandlers:
    """Tests for Schedule.* handlers."""

    def test_create_and_list(self, rpc, kitchen):
        """Test created schedules are listed in id order."""
        first = rpc.call(kitchen, "Schedule.Create", {"timespec": "0 0 7 * * *", "calls": []})
        second = rpc.call(kitchen, "Schedule.Create", {"enable": False})

        assert first == {"id": 1, "rev": 1}
        assert second == {"id": 2, "rev": 1}
        jobs = rpc.call(kitchen, "Schedule.List")["jobs"]
        assert [job["id"] for job in jobs] == [1, 2]
        assert jobs[1]["enable"] is False

    def test_update(self, rpc, kitchen):
        """Test Schedule.Update changes given members only."""
        rpc.call(kitchen, "Schedule.Create", {"timespec": "a"})
        rpc.call(kitchen, "Schedule.Update", {"id": 1, "enable": False})

        job = rpc.call(kitchen, "Schedule.List")["jobs"][0]
        assert job["enable"] is False
        assert job["timespec"] == "a"

    def test_delete_all(self, rpc, kitchen):
        """Test Schedule.DeleteAll removes every schedule only."""
        rpc.call(kitchen, "Schedule.Create", {})
        rpc.call(kitchen, "Schedule.Create", {})
        rpc.call(kitchen, "Schedule.DeleteAll")

        assert rpc.call(kitchen, "Schedule.List")["jobs"] == []
        assert rpc.call(kitchen, "Switch.GetStatus")["output"] is True


class TestSubsystemHandlers:
    """Tests for canned network and radio subsystems."""

    def test_wifi_status_matches_config(self, rpc, kitchen):
        """Test the station SSID is consistent."""
        status = rpc.call(kitchen, "Wifi.GetStatus")
        config = rpc.call(kitchen, "Wifi.GetConfig")
        assert status["ssid"] == config["sta"]["ssid"]

    def test_canned_documents_are_copies(self, rpc, kitchen):
        """Test mutating a response does not leak into the next one."""
        rpc.call(kitchen, "Wifi.Scan")["results"].clear()
        assert len(rpc.call(kitchen, "Wifi.Scan")["results"]) == 3

    def test_state_override(self, rpc, hallway, kitchen):
        """Test a seeded state key replaces the canned response."""
        assert rpc.call(hallway, "MQTT.GetStatus") == {"connected": True}
        assert rpc.call(kitchen, "MQTT.GetStatus") == {"connected": False}

    def test_set_config(self, rpc, kitchen):
        """Test SetConfig calls acknowledge."""
        assert rpc.call(kitchen, "Wifi.SetConfig", {"config": {}}) == {"restart_required": False}


class TestEnergyAndThermostatHandlers:
    """Tests for EM, EM1 and Thermostat handlers."""

    def test_em_defaults(self, rpc, hallway):
        """Test three-phase defaults include every phase."""
        status = rpc.call(hallway, "EM.GetStatus", {"id": 0})
        for phase in ("a", "b", "c"):
            assert f"{phase}_act_power" in status
        assert status["total_act_power"] == 1035.0

    def test_em1_defaults(self, rpc, hallway):
        """Test single-phase defaults carry the id."""
        assert rpc.call(hallway, "EM1.GetStatus", {"id": 1})["id"] == 1

    def test_thermostat_status_default(self, rpc, kitchen):
        """Test thermostat defaults."""
        assert rpc.call(kitchen, "Thermostat.GetStatus", {"id": 0})["target_C"] == 21.0

    def test_thermostat_set_config(self, rpc, kitchen):
        """Test SetConfig succeeds without the error trigger."""
        assert rpc.call(kitchen, "Thermostat.SetConfig", {"id": 0}) == {"restart_required": False}

    def test_thermostat_set_config_error(self, rpc, hallway):
        """Test SetConfig fails when the error trigger key is seeded."""
        with pytest.raises(RPCError) as exc_info:
            rpc.call(hallway, "Thermostat.SetConfig", {"id": 0})
        assert exc_info.value.code == RPC_INTERNAL_ERROR

    def test_em_data(self, rpc, hallway):
        """Test EMData returns one three-phase sample and no records."""
        assert rpc.call(hallway, "EMData.GetRecords", {"id": 0}) == {"data_blocks": []}
        sample = rpc.call(hallway, "EMData.GetData", {"id": 0})["data"][0]
        assert sample["period"] == 60
        assert sample["values"][0]["total_act_power"] == 1500.0

    def test_em1_data(self, rpc, hallway):
        """Test EM1Data returns one single-phase sample."""
        sample = rpc.call(hallway, "EM1Data.GetData", {"id": 0})["data"][0]
        assert sample["values"] == [{"act_power": 575.0, "voltage": 230.0, "current": 2.5, "pf": 0.99, "freq": 50.0}]


def _seed(store, device, key, document):
    store.set(device, key, lambda current: (document, None))


class TestFieldbusAndMatterHandlers:
    """Tests for Modbus.* and the Matter commissioning calls."""

    def test_modbus_defaults(self, rpc, kitchen):
        """Test Modbus reads are disabled by default."""
        assert rpc.call(kitchen, "Modbus.GetStatus") == {"enabled": False}
        assert rpc.call(kitchen, "Modbus.GetConfig") == {"enable": False}
        assert rpc.call(kitchen, "Modbus.SetConfig", {"config": {"enable": True}}) == {"restart_required": False}

    def test_modbus_state_override(self, rpc, kitchen, store):
        """Test a seeded modbus key replaces the default."""
        _seed(store, "Kitchen Light", "modbus", {"enabled": True})
        assert rpc.call(kitchen, "Modbus.GetStatus") == {"enabled": True}

    def test_matter_commissioning_code(self, rpc, kitchen):
        """Test the commissioning code carries the pairing fields."""
        code = rpc.call(kitchen, "Matter.GetCommissioningCode")
        assert code["discriminator"] == 3840
        assert code["setup_pin_code"] == 20202021
        assert rpc.call(kitchen, "Matter.FactoryReset") == {}


class TestRadioHandlers:
    """Tests for BTHome.*, BTHomeDevice.* and LoRa.* handlers."""

    def test_bthome_gateway(self, rpc, kitchen):
        """Test gateway status and pairing calls."""
        assert rpc.call(kitchen, "BTHome.GetStatus") == {"errors": []}
        assert rpc.call(kitchen, "BTHome.StartDeviceDiscovery") == {}
        assert rpc.call(kitchen, "BTHome.AddDevice", {"config": {"addr": "aa:bb"}}) == {"key": "mock-key-12345"}
        assert rpc.call(kitchen, "BTHome.DeleteDevice", {"id": 200}) == {}

    def test_bthome_device_defaults(self, rpc, kitchen):
        """Test sensor defaults carry the requested id."""
        assert rpc.call(kitchen, "BTHomeDevice.GetStatus", {"id": 200}) == {"id": 200}
        assert rpc.call(kitchen, "BTHomeDevice.GetConfig", {"id": 200}) == {"id": 200, "addr": "", "name": None}
        assert rpc.call(kitchen, "BTHomeDevice.GetKnownObjects", {"id": 200}) == {"objects": []}

    def test_bthome_device_override(self, rpc, kitchen, store):
        """Test a seeded sensor config is returned as-is."""
        _seed(store, "Kitchen Light", "bthomedevice:200_config", {"id": 200, "addr": "3c:2e:f5:71:d5:2a", "name": "Door"})
        assert rpc.call(kitchen, "BTHomeDevice.GetConfig", {"id": 200})["name"] == "Door"

    def test_lora_defaults(self, rpc, kitchen):
        """Test LoRa status and config defaults."""
        assert rpc.call(kitchen, "LoRa.GetStatus", {"id": 100}) == {"id": 100, "rssi": -65, "snr": 8.5}
        config = rpc.call(kitchen, "LoRa.GetConfig", {"id": 100})
        assert config["freq"] == 868000000
        assert config["id"] == 100

    def test_lora_writes_acknowledge(self, rpc, kitchen, store):
        """Test LoRa writes are acknowledged without touching state."""
        keys = store.keys("Kitchen Light")
        assert rpc.call(kitchen, "LoRa.SetConfig", {"id": 100, "config": {"txp": 10}}) == {"restart_required": False}
        assert rpc.call(kitchen, "LoRa.SendBytes", {"id": 100, "data": "AQI="}) == {}
        assert store.keys("Kitchen Light") == keys


class TestVirtualHandlers:
    """Tests for Virtual.* and the virtual component handlers."""

    @pytest.mark.parametrize("namespace,zero", [
        ("Boolean", False),
        ("Number", 0),
        ("Text", ""),
        ("Enum", ""),
    ])
    def test_status_defaults(self, rpc, kitchen, namespace, zero):
        """Test an unset component reads as its zero value."""
        assert rpc.call(kitchen, f"{namespace}.GetStatus", {"id": 200}) == {"id": 200, "value": zero}

    def test_set_persists(self, rpc, kitchen, store):
        """Test Set stores the value read back by GetStatus."""
        assert rpc.call(kitchen, "Number.Set", {"id": 201, "value": 21.5}) == {}
        assert rpc.call(kitchen, "Number.GetStatus", {"id": 201}) == {"id": 201, "value": 21.5}
        assert store.get("Kitchen Light", "number:201")["value"] == 21.5

    def test_set_rejects_wrong_type(self, rpc, kitchen):
        """Test Set with a value of the wrong type is an invalid-params error."""
        with pytest.raises(RPCError) as exc_info:
            rpc.call(kitchen, "Boolean.Set", {"id": 200, "value": "yes"})
        assert exc_info.value.code == RPC_INVALID_PARAMS

    def test_boolean_toggle(self, rpc, kitchen):
        """Test two toggles of a fresh boolean return to false."""
        rpc.call(kitchen, "Boolean.Toggle", {"id": 200})
        assert rpc.call(kitchen, "Boolean.GetStatus", {"id": 200})["value"] is True
        rpc.call(kitchen, "Boolean.Toggle", {"id": 200})
        assert rpc.call(kitchen, "Boolean.GetStatus", {"id": 200})["value"] is False

    def test_add_allocates_from_200(self, rpc, dimmer, store):
        """Test Virtual.Add picks the first free id from 200."""
        assert rpc.call(dimmer, "Virtual.Add", {"type": "boolean"}) == {"id": 200}
        assert rpc.call(dimmer, "Virtual.Add", {"type": "boolean"}) == {"id": 201}
        assert rpc.call(dimmer, "Virtual.Add", {"type": "text", "id": 205}) == {"id": 205}
        assert store.get("Living Room Dimmer", "text:205") == {"id": 205, "value": ""}

    def test_added_component_is_listed(self, rpc, hallway):
        """Test added components show up in Shelly.GetComponents."""
        rpc.call(hallway, "Virtual.Add", {"type": "button"})
        assert rpc.call(hallway, "Shelly.GetComponents")["components"] == [{"key": "button:200"}]

    def test_add_unknown_type(self, rpc, dimmer):
        """Test Virtual.Add rejects unknown component types."""
        with pytest.raises(RPCError) as exc_info:
            rpc.call(dimmer, "Virtual.Add", {"type": "gauge"})
        assert exc_info.value.code == RPC_INVALID_PARAMS

    def test_delete(self, rpc, dimmer, store):
        """Test Virtual.Delete removes the addressed component only."""
        rpc.call(dimmer, "Virtual.Add", {"type": "enum"})
        assert rpc.call(dimmer, "Virtual.Delete", {"key": "enum:200"}) == {}
        assert rpc.call(dimmer, "Virtual.Delete", {"key": "light:0"}) == {}

        keys = store.keys("Living Room Dimmer")
        assert "enum:200" not in keys
        assert "light:0" in keys

    def test_button_trigger(self, rpc, kitchen):
        """Test Button.Trigger acknowledges."""
        assert rpc.call(kitchen, "Button.Trigger", {"id": 200, "event": "single_push"}) == {}
