"""FTMS (Fitness Machine Service) codecs."""

from ._advertisement import (
    AD_TYPE_SERVICE_DATA_16BIT,
    AdvertisementSection,
    extract_machine_types,
    sections_from_service_data,
)
from ._control import (
    CommandRangeError,
    ControlPointOpcode,
    ControlPointResponse,
    ControlPointResult,
    SpinDownControl,
    StopOrPauseControl,
    decode_control_point_response,
    encode_control_point_response,
    request_control,
    reset,
    set_indoor_bike_simulation_parameters,
    set_target_heart_rate,
    set_target_inclination,
    set_target_power,
    set_target_resistance_level,
    set_target_speed,
    set_targeted_cadence,
    set_targeted_distance,
    set_targeted_expended_energy,
    set_targeted_number_of_steps,
    set_targeted_number_of_strides,
    set_targeted_time_in_five_heart_rate_zones,
    set_targeted_time_in_three_heart_rate_zones,
    set_targeted_time_in_two_heart_rate_zones,
    set_targeted_training_time,
    set_wheel_circumference,
    spin_down_control,
    start_or_resume,
    stop_or_pause,
)
from ._features import (
    SupportedRange,
    decode_fitness_machine_feature,
    decode_supported_heart_rate_range,
    decode_supported_inclination_range,
    decode_supported_power_range,
    decode_supported_resistance_level_range,
    decode_supported_speed_range,
)
from ._frames import (
    CharacteristicKind,
    CrossTrainerData,
    IndoorBikeData,
    MachineTelemetryFrame,
    PendingTrainingStatus,
    RowerData,
    StairClimberData,
    StepClimberData,
    TrainingStatusData,
    TreadmillData,
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
from ._ftms import (
    FITNESS_MACHINE_CONTROL_POINT_UUID,
    FITNESS_MACHINE_FEATURE_UUID,
    FTMS_SERVICE_UUID,
    FitnessMachineFeatures,
    MachineType,
    TargetSettingFeatures,
    TrainingStatus,
    bt16,
)

__all__ = [
    "AD_TYPE_SERVICE_DATA_16BIT",
    "FITNESS_MACHINE_CONTROL_POINT_UUID",
    "FITNESS_MACHINE_FEATURE_UUID",
    "FTMS_SERVICE_UUID",
    "AdvertisementSection",
    "CharacteristicKind",
    "CommandRangeError",
    "ControlPointOpcode",
    "ControlPointResponse",
    "ControlPointResult",
    "CrossTrainerData",
    "FitnessMachineFeatures",
    "IndoorBikeData",
    "MachineTelemetryFrame",
    "MachineType",
    "PendingTrainingStatus",
    "RowerData",
    "SpinDownControl",
    "StairClimberData",
    "StepClimberData",
    "StopOrPauseControl",
    "SupportedRange",
    "TargetSettingFeatures",
    "TrainingStatus",
    "TrainingStatusData",
    "TreadmillData",
    "bt16",
    "complete_training_status",
    "decode_control_point_response",
    "decode_cross_trainer_data",
    "decode_fitness_machine_feature",
    "decode_indoor_bike_data",
    "decode_notification",
    "decode_rower_data",
    "decode_stair_climber_data",
    "decode_step_climber_data",
    "decode_supported_heart_rate_range",
    "decode_supported_inclination_range",
    "decode_supported_power_range",
    "decode_supported_resistance_level_range",
    "decode_supported_speed_range",
    "decode_training_status",
    "decode_treadmill_data",
    "encode_control_point_response",
    "extract_machine_types",
    "kind_for_uuid",
    "request_control",
    "reset",
    "sections_from_service_data",
    "set_indoor_bike_simulation_parameters",
    "set_target_heart_rate",
    "set_target_inclination",
    "set_target_power",
    "set_target_resistance_level",
    "set_target_speed",
    "set_targeted_cadence",
    "set_targeted_distance",
    "set_targeted_expended_energy",
    "set_targeted_number_of_steps",
    "set_targeted_number_of_strides",
    "set_targeted_time_in_five_heart_rate_zones",
    "set_targeted_time_in_three_heart_rate_zones",
    "set_targeted_time_in_two_heart_rate_zones",
    "set_targeted_training_time",
    "set_wheel_circumference",
    "spin_down_control",
    "start_or_resume",
    "stop_or_pause",
]
