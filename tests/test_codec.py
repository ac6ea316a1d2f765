"""Tests for the inventory payload codec."""

from __future__ import annotations

from datetime import datetime

from firmware_fleet.codecs.inventory_codec import (
    decode_dashboard,
    decode_events,
    decode_firmware_inventory,
    decode_namespaces,
    decode_schedule_response,
    decode_server_firmware,
    decode_servers,
    decode_tasks,
    decode_updates,
    encode_schedule_request,
)
from firmware_fleet.codecs.sanitize import redact_text, truncate
from firmware_fleet.domain.ids import Severity
from firmware_fleet.domain.inventory import InventorySummary

NODE_PAYLOAD = {
    "name": "worker-0",
    "namespace": "ns-a",
    "bmcAddress": "10.0.0.10",
    "model": "PowerEdge R650",
    "manufacturer": "Dell Inc.",
    "serviceTag": "ABC1234",
    "lastScanned": "2024-05-01T10:00:00Z",
    "status": "Ready",
    "powerState": "On",
    "health": "OK",
    "firmwareCount": 2,
    "updatesAvailable": 1,
    "firmware": [
        {
            "id": "BIOS.Setup.1-1",
            "name": "BIOS",
            "currentVersion": "1.5.4",
            "availableVersion": "1.6.0",
            "updateable": True,
            "componentType": "BIOS",
            "severity": "Critical",
        },
        {
            "id": 7,
            "name": "NIC",
            "currentVersion": 22,
            "availableVersion": "",
            "componentType": "NIC",
            "severity": "",
        },
    ],
}


def test_decode_servers_maps_camel_case_fields() -> None:
    servers = decode_servers({"nodes": [NODE_PAYLOAD]})

    assert len(servers) == 1
    server = servers[0]
    assert server.name == "worker-0"
    assert server.bmc_address == "10.0.0.10"
    assert server.service_tag == "ABC1234"
    assert server.power_state == "On"
    assert server.updates_available == 1
    assert isinstance(server.last_scanned, datetime)
    bios, nic = server.firmware
    assert bios.has_update
    assert bios.severity is Severity.CRITICAL
    assert nic.id == "7"
    assert nic.current_version == "22"
    assert nic.available_version is None
    assert nic.severity is None
    assert not nic.has_update


def test_decode_servers_skips_invalid_items() -> None:
    servers = decode_servers({"nodes": [{"model": "nameless"}, "junk", NODE_PAYLOAD]})

    assert [server.name for server in servers] == ["worker-0"]


def test_decode_servers_handles_unexpected_shapes() -> None:
    assert decode_servers(None) == []
    assert decode_servers("oops") == []
    assert decode_servers({"nodes": None}) == []
    assert [s.name for s in decode_servers([NODE_PAYLOAD])] == ["worker-0"]


def test_decode_servers_falls_back_to_firmware_length() -> None:
    payload = dict(NODE_PAYLOAD, firmwareCount=0, lastScanned="")

    server = decode_servers({"nodes": [payload]})[0]

    assert server.firmware_count == 2
    assert server.last_scanned is None


def test_decode_server_firmware_accepts_dict_and_list() -> None:
    firmware = NODE_PAYLOAD["firmware"]

    assert [fw.id for fw in decode_server_firmware({"firmware": firmware})] == [
        "BIOS.Setup.1-1",
        "7",
    ]
    assert len(decode_server_firmware(firmware)) == 2
    assert decode_server_firmware(42) == []


def test_decode_firmware_inventory_uses_summary() -> None:
    raw = {
        "summary": {
            "total": 2,
            "updatesAvailable": 1,
            "critical": 1,
            "recommended": 0,
            "optional": 0,
        },
        "firmware": [
            {"node": "worker-0", "namespace": "ns-a", "firmware": NODE_PAYLOAD["firmware"][0]},
            {"node": "worker-0", "namespace": "ns-a", "firmware": NODE_PAYLOAD["firmware"][1]},
            {"namespace": "ns-a"},
        ],
    }

    inventory = decode_firmware_inventory(raw)

    assert [entry.key for entry in inventory.entries] == [
        "worker-0:BIOS.Setup.1-1",
        "worker-0:7",
    ]
    assert inventory.summary == InventorySummary(
        total=2, updates_available=1, critical=1
    )


def test_decode_firmware_inventory_computes_missing_summary() -> None:
    raw = {
        "firmware": [
            {"node": "worker-0", "firmware": NODE_PAYLOAD["firmware"][0]},
        ]
    }

    inventory = decode_firmware_inventory(raw)

    assert inventory.summary.total == 1
    assert inventory.summary.updates_available == 1
    assert inventory.summary.critical == 1
    assert decode_firmware_inventory([]).entries == ()


def test_decode_namespaces_strips_blanks_and_duplicates() -> None:
    raw = {"namespaces": ["ns-a", " ", "ns-b", "ns-a"]}

    assert decode_namespaces(raw) == ["ns-a", "ns-b"]
    assert decode_namespaces(None) == []


def test_decode_dashboard_defaults_on_bad_payload() -> None:
    stats = decode_dashboard(
        {
            "totalNodes": 12,
            "healthSummary": {"healthy": 10, "warning": 1, "critical": 1},
            "updatesSummary": {"total": 4, "nodesWithUpdates": 3},
        }
    )

    assert stats.total_nodes == 12
    assert stats.health_summary.warning == 1
    assert stats.updates_summary.nodes_with_updates == 3
    assert stats.power_summary.on == 0
    assert decode_dashboard("nope").total_nodes == 0
    assert decode_dashboard({"totalNodes": "many"}).total_nodes == 0


def test_decode_events_tasks_and_updates() -> None:
    events = decode_events(
        {"events": [{"id": 1, "severity": "Warning", "nodeName": "worker-0"}]}
    )
    tasks = decode_tasks(
        {
            "tasks": [
                {
                    "taskId": "JID_1",
                    "node": "worker-0",
                    "taskState": "Scheduled",
                    "percentComplete": 0,
                }
            ]
        }
    )
    updates = decode_updates(
        {
            "updates": [
                {
                    "componentType": "BIOS",
                    "availableVersion": "1.6.0",
                    "affectedNodes": ["worker-0"],
                    "nodeCount": 1,
                }
            ]
        }
    )

    assert events[0].id == "1"
    assert events[0].node_name == "worker-0"
    assert tasks[0].task_id == "JID_1"
    assert tasks[0].task_state == "Scheduled"
    assert updates[0].affected_nodes == ["worker-0"]
    assert updates[0].node_count == 1


def test_encode_schedule_request_omits_missing_components() -> None:
    assert encode_schedule_request(["worker-0"], None, "OnReboot") == {
        "servers": ["worker-0"],
        "mode": "OnReboot",
    }
    assert encode_schedule_request(["worker-0"], ["bios"], "OnReboot") == {
        "servers": ["worker-0"],
        "components": ["bios"],
        "mode": "OnReboot",
    }


def test_decode_schedule_response_variants() -> None:
    assert decode_schedule_response(None).success
    assert decode_schedule_response("  ").success
    assert decode_schedule_response({"success": True}).success
    assert not decode_schedule_response({}).success
    rejected = decode_schedule_response({"success": False, "message": "busy"})
    assert not rejected.success
    assert rejected.message == "busy"
    assert not decode_schedule_response("unexpected").success


def test_redact_text_masks_secrets() -> None:
    text = (
        "Authorization: Bearer abc.def token=xyz user@example.com "
        '"password": "hunter2"'
    )

    redacted = redact_text(text)

    assert "abc.def" not in redacted
    assert "xyz" not in redacted
    assert "user@example.com" not in redacted
    assert "hunter2" not in redacted
    assert redact_text(None) == ""


def test_truncate_limits_length() -> None:
    assert truncate("short") == "short"
    assert truncate("x" * 10, limit=4) == "xxxx..."
    assert truncate(None) == ""
