from importlib.metadata import version

__version__ = version("jointrl")

from .config import SweepConfig, load_config
from .simulate import simulate_bandit, simulate_joint_experiment
from .recovery import run_recovery_sweep, summarize_recovery
