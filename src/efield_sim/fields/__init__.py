from efield_sim.fields.arithmetic import (
    ApodizedField,
    DelayedField,
    NegatedField,
    PaddedField,
    RotatedField,
    SumField,
    WindowedField,
    delay,
    rotate,
)
from efield_sim.fields.base import CarrierlessField, Field, Polarization, WrappedField
from efield_sim.fields.carriers import (
    CARRIER_KINDS,
    EllipticalCarrier,
    FixedCarrier,
    LinearTransverseCarrier,
)
from efield_sim.fields.envelopes import (
    ENVELOPE_KINDS,
    ContinuousWaveEnvelope,
    Cos2Envelope,
    Envelope,
    GaussianEnvelope,
    TrapezoidalEnvelope,
    TruncatedGaussianEnvelope,
)
from efield_sim.fields.field_types import ConstantField, LinearField, RampField, TransverseField
from efield_sim.fields.registry import FIELD_KINDS, make_field
from efield_sim.fields.time_axis import DEFAULT_SAMPLING_FACTOR, steps, timeaxis
from efield_sim.fields.windows import (
    BLACKMAN,
    BLACKMAN_EXACT,
    BLACKMAN_HARRIS,
    BLACKMAN_NUTTALL,
    HAMMING,
    HANN,
    NUTTALL,
    RECT,
    CosineSumWindow,
    KaiserWindow,
    RectWindow,
    Window,
    build_window,
)

__all__ = [
    "BLACKMAN",
    "BLACKMAN_EXACT",
    "BLACKMAN_HARRIS",
    "BLACKMAN_NUTTALL",
    "CARRIER_KINDS",
    "DEFAULT_SAMPLING_FACTOR",
    "ENVELOPE_KINDS",
    "FIELD_KINDS",
    "HAMMING",
    "HANN",
    "NUTTALL",
    "RECT",
    "ApodizedField",
    "CarrierlessField",
    "ConstantField",
    "ContinuousWaveEnvelope",
    "Cos2Envelope",
    "CosineSumWindow",
    "DelayedField",
    "EllipticalCarrier",
    "Envelope",
    "Field",
    "FixedCarrier",
    "GaussianEnvelope",
    "KaiserWindow",
    "LinearField",
    "LinearTransverseCarrier",
    "NegatedField",
    "PaddedField",
    "Polarization",
    "RampField",
    "RectWindow",
    "RotatedField",
    "SumField",
    "TransverseField",
    "TrapezoidalEnvelope",
    "TruncatedGaussianEnvelope",
    "Window",
    "WindowedField",
    "WrappedField",
    "build_window",
    "delay",
    "make_field",
    "rotate",
    "steps",
    "timeaxis",
]
