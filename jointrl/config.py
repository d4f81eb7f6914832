from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional, Tuple
import yaml


VARIANTS = ('generative', 'posthoc', 'sequential')


class ConfigurationError(ValueError):
    """Raised for malformed input, before anything is sampled."""


class SamplingError(RuntimeError):
    """Raised when the inference engine fails to produce posterior draws."""


class EnvironmentConfig(BaseModel):
    """Drifting two-armed bandit."""
    means: Tuple[float, float] = (0., 0.)
    outcome_sd: float = Field(0.3, ge=0)
    drift_sd: float = Field(0.1, ge=0)
    decay: float = Field(0.99, ge=0, le=1)


class LearnerConfig(BaseModel):
    """Delta-rule learner with softmax choice."""
    alpha: float = Field(0.2, gt=0, lt=1)
    xi: float = Field(1., ge=0)


class ScanConfig(BaseModel):
    TR: float = Field(2., gt=0)
    min_isi: float = Field(4., gt=0)
    isi_jitter: float = Field(4., ge=0)
    tail: float = Field(32., ge=0)


class NeuralConfig(BaseModel):
    coefficient: float = 1.
    amplitude_sd: float = Field(0., ge=0)
    noise_sd: float = Field(.5, ge=0)


class SamplingConfig(BaseModel):
    chains: int = Field(4, ge=1)
    draws: int = Field(1000, ge=1)
    warmup: int = Field(1000, ge=0)
    max_retries: int = Field(0, ge=0)
    interval_alpha: float = Field(0.05, gt=0, lt=1)


class SweepConfig(BaseModel):
    variants: List[str] = Field(default_factory=lambda: list(VARIANTS))
    noise_levels: List[float] = Field(
        default_factory=lambda: [0., .25, .5, .75, 1.])
    n_iterations: int = Field(10, ge=1)
    n_trials: int = Field(100, ge=1)
    seed: Optional[int] = None
    n_jobs: int = 1
    resimulate_behavior: bool = False

    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)
    learner: LearnerConfig = Field(default_factory=LearnerConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    neural: NeuralConfig = Field(default_factory=NeuralConfig)
    sampling: SamplingConfig = Field(default_factory=SamplingConfig)

    @field_validator('variants')
    @classmethod
    def check_variants(cls, variants):
        unknown = [v for v in variants if v not in VARIANTS]
        if unknown:
            raise ValueError(f'Unknown model variant(s) {unknown}. '
                             f'Must be one of {list(VARIANTS)}')
        if len(variants) == 0:
            raise ValueError('Need at least one model variant')
        return variants

    @field_validator('noise_levels')
    @classmethod
    def check_noise_levels(cls, noise_levels):
        if len(noise_levels) == 0:
            raise ValueError('Need at least one noise level')
        if any(n < 0 for n in noise_levels):
            raise ValueError('Noise levels should be non-negative')
        if any(b <= a for a, b in zip(noise_levels[:-1], noise_levels[1:])):
            raise ValueError('Noise levels should be strictly increasing')
        return noise_levels

    @model_validator(mode='after')
    def check_n_jobs(self):
        if self.n_jobs == 0:
            raise ValueError('n_jobs=0 is not allowed, use 1 to run '
                             'sequentially or -1 to use all cores')
        return self


def load_config(path):
    """Load a YAML file into a validated `SweepConfig`."""
    with open(path, "r") as f:
        cfg_dict = yaml.safe_load(f)

    if cfg_dict is None:
        cfg_dict = {}

    return SweepConfig(**cfg_dict)
