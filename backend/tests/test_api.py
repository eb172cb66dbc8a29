"""Tests for the HTTP API."""

import pytest


async def create_area(client, name="Cafeteria"):
    response = await client.post("/api/areas", json={"name": name})
    assert response.status_code == 201
    return response.json()


async def create_device(client, area_id="cafeteria", **extra):
    response = await client.post("/api/devices", json={"name": "Entrance bin", "areaId": area_id, **extra})
    assert response.status_code == 201
    return response.json()


class TestAreasApi:
    @pytest.mark.asyncio
    async def test_create_and_get_area(self, client):
        area = await create_area(client, "Main Hall")

        assert area["areaId"] == "main_hall"
        assert area["devices"] == []

        by_identity = await client.get("/api/areas/main_hall")
        by_internal_id = await client.get(f"/api/areas/{area['id']}")
        assert by_identity.json()["id"] == area["id"]
        assert by_internal_id.json()["areaId"] == "main_hall"

    @pytest.mark.asyncio
    async def test_duplicate_area_conflicts(self, client):
        await create_area(client)

        response = await client.post("/api/areas", json={"name": "cafeteria"})

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_missing_name(self, client):
        response = await client.post("/api/areas", json={})

        assert response.status_code == 400
        assert response.json() == {"detail": "name is required"}

    @pytest.mark.asyncio
    async def test_unknown_area(self, client):
        response = await client.get("/api/areas/nowhere")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_rename_area(self, client):
        await create_area(client)

        response = await client.put("/api/areas/cafeteria", json={"name": "Cafeteria North"})

        assert response.status_code == 200
        assert response.json()["name"] == "Cafeteria North"
        assert response.json()["areaId"] == "cafeteria"

    @pytest.mark.asyncio
    async def test_delete_area_reports_counts(self, client):
        await create_area(client)
        await create_device(client)
        await create_device(client, binTypes=["plastic"])

        response = await client.delete("/api/areas/cafeteria")

        assert response.status_code == 200
        assert response.json() == {
            "areaId": "cafeteria",
            "deletedDevices": 2,
            "deletedBins": 3,
            "areaDeleted": True,
            "errors": [],
        }
        assert (await client.get("/api/devices")).json() == []
        assert (await client.get("/api/bins")).json() == []


class TestDevicesApi:
    @pytest.mark.asyncio
    async def test_create_device_with_bins(self, client):
        area = await create_area(client)

        device = await create_device(client)

        assert device["areaRef"] == area["id"]
        assert device["status"] == "unknown"
        assert sorted(device["bins"]) == [f"{device['id']}-aluminum", f"{device['id']}-plastic"]
        assert {b["status"] for b in device["binsData"]} == {"available"}

        area_devices = (await client.get("/api/areas/cafeteria/devices")).json()
        assert [d["id"] for d in area_devices] == [device["id"]]

    @pytest.mark.asyncio
    async def test_create_device_in_unknown_area(self, client):
        response = await client.post("/api/devices", json={"name": "Orphan", "areaId": "nowhere"})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_register_correlation_id(self, client):
        await create_area(client)
        first = await create_device(client)
        second = await create_device(client)

        ok = await client.put(f"/api/devices/{first['id']}", json={"client_id_mqtt": "esp-001"})
        taken = await client.put(f"/api/devices/{second['id']}", json={"client_id_mqtt": "esp-001"})

        assert ok.status_code == 200
        assert ok.json()["clientIdMqtt"] == "esp-001"
        assert taken.status_code == 409

    @pytest.mark.asyncio
    async def test_status_color_proximity(self, client):
        await create_area(client)
        device = await create_device(client)
        url = f"/api/devices/{device['id']}"

        status = await client.put(f"{url}/status", json={"status": "online"})
        color = await client.put(
            f"{url}/color", json={"classification": "plastic", "confidence": 0.9, "rgb": [20, 40, 60]}
        )
        proximity = await client.put(f"{url}/proximity", json={"distance_cm": 15, "trigger": False})

        assert status.json()["status"] == "online"
        assert color.json()["lastColor"]["classification"] == "plastic"
        assert proximity.json()["lastProximity"]["trigger"] is False

    @pytest.mark.asyncio
    async def test_invalid_status(self, client):
        await create_area(client)
        device = await create_device(client)

        response = await client.put(f"/api/devices/{device['id']}/status", json={"status": "asleep"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_device(self, client):
        await create_area(client)
        device = await create_device(client)

        response = await client.delete(f"/api/devices/{device['id']}")

        assert response.json()["deletedBins"] == 2
        assert response.json()["deviceDeleted"] is True
        assert (await client.get("/api/areas/cafeteria")).json()["devices"] == []
        assert (await client.get(f"/api/devices/{device['id']}")).status_code == 404


class TestBinsApi:
    @pytest.mark.asyncio
    async def test_level_update(self, client):
        await create_area(client)
        device = await create_device(client)
        bin_id = f"{device['id']}-plastic"

        response = await client.put("/api/bins/level", json={"bin_id": bin_id, "level_percent": 85.555})

        assert response.status_code == 200
        assert response.json() == {"binId": bin_id, "levelPercent": 85.56, "status": "nearly_full"}
        assert (await client.get(f"/api/bins/{bin_id}")).json()["levelPercent"] == 85.56

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", [-1, 101])
    async def test_level_out_of_range(self, client, level):
        await create_area(client)
        device = await create_device(client)
        bin_id = f"{device['id']}-plastic"

        response = await client.put("/api/bins/level", json={"bin_id": bin_id, "level_percent": level})

        assert response.status_code == 400
        assert (await client.get(f"/api/bins/{bin_id}")).json()["levelPercent"] == 0

    @pytest.mark.asyncio
    async def test_level_unknown_bin(self, client):
        response = await client.put("/api/bins/level", json={"bin_id": "nope", "level_percent": 10})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_list_and_delete_bins(self, client):
        await create_area(client)
        device = await create_device(client)

        bins = (await client.get("/api/bins", params={"device_id": device["id"]})).json()
        assert len(bins) == 2

        response = await client.delete(f"/api/bins/{device['id']}-plastic")
        assert response.json() == {"binId": f"{device['id']}-plastic", "deviceId": device["id"]}

        remaining = (await client.get(f"/api/devices/{device['id']}/bins")).json()
        assert [b["assignedType"] for b in remaining] == ["aluminum"]


class TestMqttApi:
    @pytest.mark.asyncio
    async def test_publish_when_disconnected(self, client):
        response = await client.post("/api/mqtt/publish", json={"topic": "cmd/esp-001", "message": "ping"})

        assert response.status_code == 200
        assert response.json() == {"success": False, "topic": "cmd/esp-001", "message": "Publish failed"}

    @pytest.mark.asyncio
    async def test_publish_requires_topic_and_message(self, client):
        response = await client.post("/api/mqtt/publish", json={"topic": "cmd/esp-001"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_messages(self, client):
        response = await client.get("/api/mqtt/messages")

        assert response.json() == {"connected": False, "messages": {}}
        assert (await client.get("/api/mqtt/messages/last", params={"topic": "bins/x/level"})).status_code == 404

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/health")

        assert response.json() == {"status": "ok", "mqtt": "disconnected"}


class TestStrictInput:
    """HTTP bodies are not coerced: the same rules apply as for MQTT."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", [True, "50", "75.555", None])
    async def test_non_numeric_level_rejected(self, client, level):
        await create_area(client)
        device = await create_device(client)
        bin_id = f"{device['id']}-plastic"
        await client.put("/api/bins/level", json={"bin_id": bin_id, "level_percent": 20})

        response = await client.put("/api/bins/level", json={"bin_id": bin_id, "level_percent": level})

        assert response.status_code == 400
        assert (await client.get(f"/api/bins/{bin_id}")).json()["levelPercent"] == 20

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"distance_cm": 12, "trigger": "yes"},
            {"distance_cm": 12, "trigger": 1},
            {"distance_cm": "12", "trigger": True},
        ],
    )
    async def test_proximity_types_enforced(self, client, body):
        await create_area(client)
        device = await create_device(client)

        response = await client.put(f"/api/devices/{device['id']}/proximity", json=body)

        assert response.status_code == 400
        assert (await client.get(f"/api/devices/{device['id']}")).json()["lastProximity"] is None

    @pytest.mark.asyncio
    async def test_color_confidence_must_be_a_number(self, client):
        await create_area(client)
        device = await create_device(client)

        response = await client.put(
            f"/api/devices/{device['id']}/color",
            json={"classification": "plastic", "confidence": "0.9", "rgb": [1, 2, 3]},
        )

        assert response.status_code == 400
        assert (await client.get(f"/api/devices/{device['id']}")).json()["lastColor"] is None


@pytest.mark.asyncio
async def test_area_addressed_by_display_name(client):
    await create_area(client, "Main Hall")

    device = await create_device(client, area_id="Main Hall")

    assert (await client.get("/api/areas/Main Hall")).json()["devices"] == [device["id"]]
