from sampling_distribution.config import APP_VERSION, DemoConfig, PopulationKind
from sampling_distribution.session import SampleOutcome, SamplerState, Session

__all__ = [
    "APP_VERSION",
    "DemoConfig",
    "PopulationKind",
    "SampleOutcome",
    "SamplerState",
    "Session",
]
