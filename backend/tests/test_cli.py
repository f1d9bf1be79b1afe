"""Tests for the fortistate command line interface."""

import json

import httpx
import pytest

import cli
from fortios.client import FortiOSClient


@pytest.fixture
def device(monkeypatch, fortigate):
    """Route CLI-built clients to the fake FortiGate."""

    def _client(**kwargs):
        kwargs["token"] = fortigate.token
        return FortiOSClient(**kwargs, transport=httpx.MockTransport(fortigate.handle))

    monkeypatch.setattr(cli, "FortiOSClient", _client)
    # Keep the root handlers installed by the app; CLI logging would
    # otherwise bind to a capture stream that closes after the test.
    monkeypatch.setattr(cli, "setup_logging", lambda level, stream=None: None)
    return fortigate


CREATE_ARGS = [
    "arp-table", "create",
    "--fosid", "3",
    "--interface", "port1",
    "--ip", "10.0.0.3",
    "--mac", "00:11:22:33:44:03",
]


class TestParser:

    def test_create_requires_attributes(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["arp-table", "create", "--fosid", "1"])

    def test_read_takes_id(self):
        args = cli.build_parser().parse_args(["arp-table", "read", "7"])
        assert args.action == "read"
        assert args.id == "7"


class TestCommands:

    def test_create(self, device, capsys):
        assert cli.main(CREATE_ARGS) == 0
        state = json.loads(capsys.readouterr().out)
        assert state == {
            "id": "3",
            "fosid": 3,
            "interface": "port1",
            "ip": "10.0.0.3",
            "mac": "00:11:22:33:44:03",
        }
        assert 3 in device.entries

    def test_read(self, device, capsys):
        device.entries[3] = {"id": 3, "interface": "port1", "ip": "10.0.0.3", "mac": "00:11:22:33:44:03"}
        assert cli.main(["arp-table", "read", "3"]) == 0
        assert json.loads(capsys.readouterr().out)["ip"] == "10.0.0.3"

    def test_read_missing(self, device, capsys):
        assert cli.main(["arp-table", "read", "3"]) == 1
        assert "not found" in capsys.readouterr().err

    def test_update(self, device, capsys):
        device.entries[3] = {"id": 3, "interface": "port1", "ip": "10.0.0.3", "mac": "00:11:22:33:44:03"}
        argv = ["arp-table", "update", "3"] + CREATE_ARGS[2:]
        argv[argv.index("port1")] = "port4"
        assert cli.main(argv) == 0
        assert device.entries[3]["interface"] == "port4"

    def test_delete(self, device, capsys):
        device.entries[3] = {"id": 3, "interface": "port1", "ip": "10.0.0.3", "mac": "00:11:22:33:44:03"}
        assert cli.main(["arp-table", "delete", "3"]) == 0
        assert device.entries == {}
        assert json.loads(capsys.readouterr().out)["id"] == ""

    def test_import(self, device, capsys):
        device.entries[8] = {"id": 8, "interface": "wan1", "ip": "10.9.9.9", "mac": "00:11:22:33:44:08"}
        assert cli.main(["arp-table", "import", "8"]) == 0
        assert json.loads(capsys.readouterr().out)["interface"] == "wan1"

    def test_device_error(self, device, capsys):
        assert cli.main(["arp-table", "delete", "3"]) == 1
        assert "Error deleting SystemArpTable resource" in capsys.readouterr().err

    def test_invalid_attributes(self, device, capsys):
        argv = list(CREATE_ARGS)
        argv[argv.index("port1")] = "x" * 16
        assert cli.main(argv) == 1
        assert "interface" in capsys.readouterr().err
        assert device.requests == []
