"""Tests for the presence table."""

import threading

import pytest

from fitble.ftms import MachineType
from fitble.presence import DeviceIdentity, PresenceEventKind, PresenceTable


@pytest.mark.unit
def test_first_sighting_is_discovered_then_updated(treadmill_identity):
    table = PresenceTable()
    first = table.on_sighting(treadmill_identity, -60, 0.0)
    second = table.on_sighting(treadmill_identity, -50, 0.5)

    assert first.kind is PresenceEventKind.DISCOVERED
    assert second.kind is PresenceEventKind.UPDATED
    assert second.record.smoothed_rssi == pytest.approx(-57.0)
    assert second.record.median_rssi == -55.0
    assert second.record.last_seen == 0.5
    assert len(table) == 1


@pytest.mark.unit
def test_sweep_loses_only_after_timeout(treadmill_identity):
    table = PresenceTable()
    table.on_sighting(treadmill_identity, -60, 10.0)

    assert table.sweep(13.0) == []
    assert treadmill_identity.address in table

    events = table.sweep(13.01)
    assert [event.kind for event in events] == [PresenceEventKind.LOST]
    assert events[0].record.identity == treadmill_identity
    assert treadmill_identity.address not in table


@pytest.mark.unit
def test_resighting_after_loss_is_discovered_again(treadmill_identity):
    table = PresenceTable()
    table.on_sighting(treadmill_identity, -60, 0.0)
    table.sweep(5.0)

    event = table.on_sighting(treadmill_identity, -70, 6.0)
    assert event.kind is PresenceEventKind.DISCOVERED
    # Statistics start over.
    assert event.record.smoothed_rssi == -70.0


@pytest.mark.unit
def test_sweep_only_affects_stale_devices(treadmill_identity, bike_identity):
    table = PresenceTable()
    table.on_sighting(treadmill_identity, -60, 0.0)
    table.on_sighting(bike_identity, -60, 2.0)

    events = table.sweep(4.0)
    assert [event.record.address for event in events] == [treadmill_identity.address]
    assert table.get(bike_identity.address) is not None
    assert table.get(treadmill_identity.address) is None


@pytest.mark.unit
def test_machine_types_kept_when_sighting_has_none(bike_identity):
    table = PresenceTable()
    table.on_sighting(bike_identity, -60, 0.0, MachineType.INDOOR_BIKE)
    event = table.on_sighting(bike_identity, -61, 0.1)
    assert event.record.machine_types is MachineType.INDOOR_BIKE


@pytest.mark.unit
def test_late_name_replaces_empty_name():
    table = PresenceTable()
    anonymous = DeviceIdentity(0xA1B2C3D4E5F6)
    table.on_sighting(anonymous, -60, 0.0)
    event = table.on_sighting(DeviceIdentity(0xA1B2C3D4E5F6, "Rower R9"), -60, 0.1)
    assert event.record.identity.name == "Rower R9"

    # A later nameless sighting does not erase it.
    event = table.on_sighting(anonymous, -60, 0.2)
    assert event.record.identity.name == "Rower R9"


@pytest.mark.unit
def test_snapshot_and_iteration(treadmill_identity, bike_identity):
    table = PresenceTable()
    table.on_sighting(treadmill_identity, -60, 0.0)
    table.on_sighting(bike_identity, -70, 0.0)

    addresses = {record.address for record in table}
    assert addresses == {treadmill_identity.address, bike_identity.address}
    assert len(table.snapshot()) == 2


@pytest.mark.unit
def test_emit_receives_events_in_order(treadmill_identity):
    events = []
    table = PresenceTable(emit=events.append)
    table.on_sighting(treadmill_identity, -60, 0.0)
    table.on_sighting(treadmill_identity, -61, 1.0)
    table.sweep(5.0)

    assert [event.kind for event in events] == [
        PresenceEventKind.DISCOVERED,
        PresenceEventKind.UPDATED,
        PresenceEventKind.LOST,
    ]


@pytest.mark.unit
def test_emit_failure_is_logged_not_raised(treadmill_identity, caplog):
    def broken(_event):
        raise RuntimeError("boom")

    table = PresenceTable(emit=broken)
    event = table.on_sighting(treadmill_identity, -60, 0.0)

    assert event.kind is PresenceEventKind.DISCOVERED
    assert "Presence event delivery failed" in caplog.text


@pytest.mark.unit
def test_clear_forgets_without_events(treadmill_identity):
    events = []
    table = PresenceTable(emit=events.append)
    table.on_sighting(treadmill_identity, -60, 0.0)
    table.clear()

    assert len(table) == 0
    assert table.sweep(100.0) == []
    assert [event.kind for event in events] == [PresenceEventKind.DISCOVERED]


@pytest.mark.unit
def test_concurrent_sightings_discover_once(treadmill_identity):
    events = []
    table = PresenceTable(emit=events.append)
    barrier = threading.Barrier(8)

    def feed(offset):
        barrier.wait()
        for i in range(200):
            table.on_sighting(treadmill_identity, -60 - (i % 5), offset + i * 0.001)

    threads = [threading.Thread(target=feed, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    kinds = [event.kind for event in events]
    assert len(kinds) == 1600
    assert kinds.count(PresenceEventKind.DISCOVERED) == 1
    assert kinds[0] is PresenceEventKind.DISCOVERED


@pytest.mark.unit
def test_concurrent_sweep_and_sightings_stay_consistent():
    identities = [DeviceIdentity(0x100 + n) for n in range(16)]
    per_device = {identity.address: [] for identity in identities}
    table = PresenceTable(
        lost_timeout=0.5, emit=lambda e: per_device[e.record.address].append(e.kind)
    )

    def feed(identity):
        t = 0.0
        while t < 50.0:
            table.on_sighting(identity, -60, t)
            t += 0.25 if identity.address % 2 else 1.0

    def sweeper():
        for n in range(200):
            table.sweep(n * 0.25)

    workers = [threading.Thread(target=feed, args=(identity,)) for identity in identities]
    workers.append(threading.Thread(target=sweeper))
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()

    # Each device alternates strictly between present and lost.
    for kinds in per_device.values():
        present = False
        for kind in kinds:
            if kind is PresenceEventKind.DISCOVERED:
                assert not present
                present = True
            elif kind is PresenceEventKind.LOST:
                assert present
                present = False
            else:
                assert present


@pytest.mark.unit
def test_identity_mac_round_trip():
    identity = DeviceIdentity.from_mac("aa:bb:cc:00:11:22")
    assert identity.address == 0xAABBCC001122
    assert identity.mac == "AA:BB:CC:00:11:22"


@pytest.mark.unit
@pytest.mark.parametrize("mac", ["AA:BB:CC", "not-a-mac", "AA:BB:CC:DD:EE:FF:00"])
def test_identity_rejects_bad_mac(mac):
    with pytest.raises(ValueError):
        DeviceIdentity.from_mac(mac)


@pytest.mark.unit
def test_identity_rejects_out_of_range_address():
    with pytest.raises(ValueError):
        DeviceIdentity(1 << 48)


@pytest.mark.unit
def test_known_device_reuses_its_entry(monkeypatch, treadmill_identity):
    from fitble.presence import _table

    created = []
    entry_type = _table._Entry

    def counting_entry(*args):
        created.append(args)
        return entry_type(*args)

    monkeypatch.setattr(_table, "_Entry", counting_entry)
    table = PresenceTable()
    for at in (0.0, 0.5, 1.0):
        table.on_sighting(treadmill_identity, -60, at)

    assert len(created) == 1
