"""Tests for FTMS machine data and training status decoding."""

import pytest

from fitble.ftms import (
    CharacteristicKind,
    CrossTrainerData,
    PendingTrainingStatus,
    TrainingStatus,
    TrainingStatusData,
    TreadmillData,
    bt16,
    complete_training_status,
    decode_cross_trainer_data,
    decode_indoor_bike_data,
    decode_notification,
    decode_rower_data,
    decode_stair_climber_data,
    decode_step_climber_data,
    decode_training_status,
    decode_treadmill_data,
    kind_for_uuid,
)
from fitble.hrs import HEART_RATE_MEASUREMENT_UUID, HeartRateMeasurement


@pytest.mark.unit
def test_treadmill_speed_only():
    frame = decode_treadmill_data(bytes.fromhex("0000DC05"))
    assert frame == TreadmillData(instantaneous_speed=1500)


@pytest.mark.unit
def test_treadmill_more_data_bit_skips_speed():
    frame = decode_treadmill_data(bytes.fromhex("09006400F6FF"))
    assert frame.instantaneous_speed is None
    assert frame.inclination == 100
    assert frame.ramp_angle == -10


@pytest.mark.unit
def test_treadmill_energy_group():
    frame = decode_treadmill_data(bytes.fromhex("8000E8032C0158020A"))
    assert frame.instantaneous_speed == 1000
    assert frame.total_energy == 300
    assert frame.energy_per_hour == 600
    assert frame.energy_per_minute == 10


@pytest.mark.unit
def test_treadmill_full_walk():
    # speed, distance, HR, elapsed time, force/power
    data = bytes.fromhex("0415" "E803" "102700" "8C" "3C00" "3200" "9600")
    frame = decode_treadmill_data(data)
    assert frame.instantaneous_speed == 1000
    assert frame.total_distance == 10000
    assert frame.heart_rate == 140
    assert frame.elapsed_time == 60
    assert frame.force_on_belt == 50
    assert frame.power_output == 150
    assert frame.remaining_time is None


@pytest.mark.unit
def test_truncated_group_stops_walk():
    # Distance needs three bytes, only two remain.
    frame = decode_treadmill_data(bytes.fromhex("0400DC051027"))
    assert frame.instantaneous_speed == 1500
    assert frame.total_distance is None


@pytest.mark.unit
@pytest.mark.parametrize("data", [b"", b"\x00"])
def test_buffer_shorter_than_flags_is_empty(data):
    assert decode_treadmill_data(data) == TreadmillData()


@pytest.mark.unit
def test_cross_trainer_uses_24_bit_flags():
    frame = decode_cross_trainer_data(bytes.fromhex("800000E803F6FF"))
    assert frame.instantaneous_speed == 1000
    assert frame.resistance_level == -10
    assert decode_cross_trainer_data(bytes.fromhex("8000")) == CrossTrainerData()


@pytest.mark.unit
def test_rower_stroke_group():
    frame = decode_rower_data(bytes.fromhex("0000280A00"))
    assert frame.stroke_rate == 40
    assert frame.stroke_count == 10


@pytest.mark.unit
def test_rower_power_without_stroke_group():
    frame = decode_rower_data(bytes.fromhex("2100C800"))
    assert frame.stroke_rate is None
    assert frame.instantaneous_power == 200


@pytest.mark.unit
def test_indoor_bike_cadence_and_power():
    frame = decode_indoor_bike_data(bytes.fromhex("4400C409B400FA00"))
    assert frame.instantaneous_speed == 2500
    assert frame.instantaneous_cadence == 180
    assert frame.instantaneous_power == 250
    assert frame.average_cadence is None


@pytest.mark.unit
def test_indoor_bike_negative_resistance():
    frame = decode_indoor_bike_data(bytes.fromhex("2100F6FF"))
    assert frame.resistance_level == -10


@pytest.mark.unit
def test_step_climber_primary_group():
    frame = decode_step_climber_data(bytes.fromhex("000005006400"))
    assert frame.floors == 5
    assert frame.step_count == 100


@pytest.mark.unit
def test_stair_climber_stride_count():
    frame = decode_stair_climber_data(bytes.fromhex("100003002A00"))
    assert frame.floors == 3
    assert frame.stride_count == 42


@pytest.mark.unit
def test_training_status_with_text():
    status = decode_training_status(b"\x01\x0dManual")
    assert status == TrainingStatusData(TrainingStatus.MANUAL_MODE, "Manual")


@pytest.mark.unit
def test_training_status_without_text():
    assert decode_training_status(b"\x00\x01") == TrainingStatusData(TrainingStatus.IDLE)


@pytest.mark.unit
def test_training_status_unknown_code_is_other():
    assert decode_training_status(b"\x00\x7f").status is TrainingStatus.OTHER


@pytest.mark.unit
def test_training_status_too_short():
    assert decode_training_status(b"\x01") == TrainingStatusData()


@pytest.mark.unit
def test_extended_training_status_needs_second_read():
    pending = decode_training_status(b"\x03\x0dMan")
    assert pending == PendingTrainingStatus(TrainingStatus.MANUAL_MODE, "Man")

    done = complete_training_status(pending, b"\x01\x0dManual mode")
    assert done == TrainingStatusData(TrainingStatus.MANUAL_MODE, "Manual mode")


@pytest.mark.unit
def test_failed_extended_read_gives_empty_text():
    pending = PendingTrainingStatus(TrainingStatus.WARMING_UP, "Warm")
    assert complete_training_status(pending, None) == TrainingStatusData(
        TrainingStatus.WARMING_UP, ""
    )


@pytest.mark.unit
def test_decode_notification_dispatches():
    frame = decode_notification(CharacteristicKind.TREADMILL, bytearray.fromhex("0000DC05"))
    assert frame == TreadmillData(instantaneous_speed=1500)
    frame = decode_notification(CharacteristicKind.HEART_RATE, b"\x00\x48")
    assert frame == HeartRateMeasurement(heart_rate=72)


@pytest.mark.unit
@pytest.mark.parametrize("kind", list(CharacteristicKind))
def test_every_kind_has_a_decoder(kind):
    # Empty input never raises and gives an empty record.
    assert decode_notification(kind, b"") is not None


@pytest.mark.unit
def test_kind_for_uuid():
    assert kind_for_uuid(bt16(0x2ACD)) is CharacteristicKind.TREADMILL
    assert kind_for_uuid(bt16(0x2AD2).upper()) is CharacteristicKind.INDOOR_BIKE
    assert kind_for_uuid(HEART_RATE_MEASUREMENT_UUID) is CharacteristicKind.HEART_RATE
    assert kind_for_uuid(bt16(0x2A19)) is None


@pytest.mark.unit
def test_treadmill_pace_fields_are_one_byte():
    # speed, instantaneous pace, average pace, HR
    frame = decode_treadmill_data(bytes.fromhex("6001" "DC05" "0A" "0B" "8C"))
    assert frame.instantaneous_pace == 10
    assert frame.average_pace == 11
    assert frame.heart_rate == 140
