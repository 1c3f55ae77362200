from __future__ import annotations

from enum import IntEnum, IntFlag

from .._uuid import bt16

# FTMS Service and characteristics
FTMS_SERVICE_UUID16 = 0x1826
FTMS_SERVICE_UUID = bt16(FTMS_SERVICE_UUID16)

FITNESS_MACHINE_FEATURE_UUID = bt16(0x2ACC)
TREADMILL_DATA_UUID = bt16(0x2ACD)
CROSS_TRAINER_DATA_UUID = bt16(0x2ACE)
STEP_CLIMBER_DATA_UUID = bt16(0x2ACF)
STAIR_CLIMBER_DATA_UUID = bt16(0x2AD0)
ROWER_DATA_UUID = bt16(0x2AD1)
INDOOR_BIKE_DATA_UUID = bt16(0x2AD2)
TRAINING_STATUS_UUID = bt16(0x2AD3)
SUPPORTED_SPEED_RANGE_UUID = bt16(0x2AD4)
SUPPORTED_INCLINE_RANGE_UUID = bt16(0x2AD5)
SUPPORTED_RESISTANCE_LEVEL_RANGE_UUID = bt16(0x2AD6)
SUPPORTED_HEART_RATE_RANGE_UUID = bt16(0x2AD7)
SUPPORTED_POWER_RANGE_UUID = bt16(0x2AD8)
FITNESS_MACHINE_CONTROL_POINT_UUID = bt16(0x2AD9)
FITNESS_MACHINE_STATUS_UUID = bt16(0x2ADA)


class MachineType(IntFlag):
    """Machine types advertised in FTMS service data."""

    NONE = 0
    TREADMILL = 1 << 0
    CROSS_TRAINER = 1 << 1
    STEP_CLIMBER = 1 << 2
    STAIR_CLIMBER = 1 << 3
    ROWER = 1 << 4
    INDOOR_BIKE = 1 << 5


class FitnessMachineFeatures(IntFlag):
    """Optional telemetry fields a machine can report (Fitness Machine Feature, first u32)."""

    NONE = 0
    AVERAGE_SPEED = 1 << 0
    CADENCE = 1 << 1
    TOTAL_DISTANCE = 1 << 2
    INCLINATION = 1 << 3
    ELEVATION_GAIN = 1 << 4
    PACE = 1 << 5
    STEP_COUNT = 1 << 6
    RESISTANCE_LEVEL = 1 << 7
    STRIDE_COUNT = 1 << 8
    EXPENDED_ENERGY = 1 << 9
    HEART_RATE_MEASUREMENT = 1 << 10
    METABOLIC_EQUIVALENT = 1 << 11
    ELAPSED_TIME = 1 << 12
    REMAINING_TIME = 1 << 13
    POWER_MEASUREMENT = 1 << 14
    FORCE_ON_BELT_AND_POWER_OUTPUT = 1 << 15
    USER_DATA_RETENTION = 1 << 16


class TargetSettingFeatures(IntFlag):
    """Control point procedures a machine accepts (Fitness Machine Feature, second u32)."""

    NONE = 0
    SPEED = 1 << 0
    INCLINATION = 1 << 1
    RESISTANCE = 1 << 2
    POWER = 1 << 3
    HEART_RATE = 1 << 4
    TARGETED_EXPENDED_ENERGY = 1 << 5
    TARGETED_STEP_NUMBER = 1 << 6
    TARGETED_STRIDE_NUMBER = 1 << 7
    TARGETED_DISTANCE = 1 << 8
    TARGETED_TRAINING_TIME = 1 << 9
    TARGETED_TIME_IN_TWO_HEART_RATE_ZONES = 1 << 10
    TARGETED_TIME_IN_THREE_HEART_RATE_ZONES = 1 << 11
    TARGETED_TIME_IN_FIVE_HEART_RATE_ZONES = 1 << 12
    INDOOR_BIKE_SIMULATION = 1 << 13
    WHEEL_CIRCUMFERENCE = 1 << 14
    SPIN_DOWN_CONTROL = 1 << 15
    TARGETED_CADENCE = 1 << 16


class TrainingStatus(IntEnum):
    """Training status codes reported by the Training Status characteristic."""

    OTHER = 0x00
    IDLE = 0x01
    WARMING_UP = 0x02
    LOW_INTENSITY_INTERVAL = 0x03
    HIGH_INTENSITY_INTERVAL = 0x04
    RECOVERY_INTERVAL = 0x05
    ISOMETRIC = 0x06
    HEART_RATE_CONTROL = 0x07
    FITNESS_TEST = 0x08
    SPEED_OUTSIDE_CONTROL_REGION_LOW = 0x09
    SPEED_OUTSIDE_CONTROL_REGION_HIGH = 0x0A
    COOL_DOWN = 0x0B
    WATT_CONTROL = 0x0C
    MANUAL_MODE = 0x0D
    PRE_WORKOUT = 0x0E
    POST_WORKOUT = 0x0F
