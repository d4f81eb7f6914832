from collections import namedtuple
import logging
import numpy as np
import pandas as pd
from scipy import stats
from .config import (ConfigurationError,
                     EnvironmentConfig,
                     LearnerConfig,
                     NeuralConfig,
                     ScanConfig)
from .hrf import generate_onsets, make_frametimes, make_design_matrix


LearnerState = namedtuple('LearnerState', ['values', 'means'])


def choice_probabilities(values, xi):
    """Softmax over `xi`-scaled values.

    The maximum is subtracted before exponentiating, so large values or
    inverse temperatures do not overflow.
    """
    z = xi * np.asarray(values, dtype=float)
    z = z - z.max()
    p = np.exp(z)
    return p / p.sum()


def delta_rule(value, outcome, alpha):
    """Returns the updated value and the prediction error `outcome - value`."""
    prediction_error = outcome - value
    return value + alpha * prediction_error, prediction_error


def initial_state(environment):
    return LearnerState(values=np.zeros(2),
                        means=np.array(environment.means, dtype=float))


def trial_step(state, trial, rng, environment, learner):
    """Simulates one trial.

    Parameters
    ----------
    state : LearnerState
        values and latent reward means before the trial

    trial : int
        trial number (1-based), only used to label the record

    Returns
    -------
    new_state : LearnerState

    record : dict
        everything that happened on this trial
    """
    p = choice_probabilities(state.values, learner.xi)
    c = rng.choice(2, p=p)

    outcome = rng.normal(state.means[c], environment.outcome_sd)

    values = state.values.copy()
    values[c], prediction_error = delta_rule(state.values[c],
                                             outcome,
                                             learner.alpha)

    means = state.means * environment.decay + \
        rng.normal(0, environment.drift_sd, size=2)

    record = {'trial': trial,
              'choice': c + 1,
              'outcome': outcome,
              'ev_1': state.values[0],
              'ev_2': state.values[1],
              'value_gap': state.values[c] - state.values[1 - c],
              'p_1': p[0],
              'p_2': p[1],
              'mean_1': state.means[0],
              'mean_2': state.means[1],
              'prediction_error': prediction_error}

    return LearnerState(values=values, means=means), record


def simulate_bandit(n_trials=100, environment=None, learner=None, seed=None,
                    rng=None):
    """Simulates a delta-rule learner on a drifting two-armed bandit.

    Returns a DataFrame with one row per trial (indexed by `trial`,
    starting at 1). `choice` is 1 or 2, `ev_1`/`ev_2` are the values
    before the choice and `prediction_error` is the difference between the
    outcome and the value of the chosen option.
    """
    if n_trials < 1:
        raise ConfigurationError(f'Need at least one trial (got {n_trials})')

    if environment is None:
        environment = EnvironmentConfig()

    if learner is None:
        learner = LearnerConfig()

    if rng is None:
        rng = np.random.default_rng(seed)

    state = initial_state(environment)
    records = []

    for trial in range(1, n_trials + 1):
        state, record = trial_step(state, trial, rng, environment, learner)
        records.append(record)

    return pd.DataFrame(records).set_index('trial')


def draw_amplitudes(prediction_errors, coefficient=1., amplitude_sd=0.,
                    rng=None):
    """Trial-wise BOLD amplitudes centered on `coefficient` x prediction error."""
    prediction_errors = np.asarray(prediction_errors, dtype=float)

    if rng is None:
        rng = np.random.default_rng()

    loc = prediction_errors * coefficient

    if amplitude_sd == 0:
        return loc

    return rng.normal(loc, amplitude_sd)


def synthesize_signal(X, amplitudes, noise_sd=1., rng=None):
    """Signal = X @ amplitudes + Gaussian measurement noise."""
    X = np.asarray(X, dtype=float)
    amplitudes = np.asarray(amplitudes, dtype=float)

    if X.shape[1] != amplitudes.shape[0]:
        raise ConfigurationError(f'Design matrix has {X.shape[1]} regressors, '
                                 f'but there are {amplitudes.shape[0]} '
                                 'amplitudes.')

    if rng is None:
        rng = np.random.default_rng()

    signal = X.dot(amplitudes)

    if noise_sd > 0:
        signal = signal + rng.normal(0, noise_sd, size=signal.shape)

    return signal


def _correlation(x, y):
    if np.std(x) == 0 or np.std(y) == 0:
        return np.nan
    return stats.pearsonr(x, y)[0]


class JointDataset(object):
    """Behavior, design and (noisy) signal of one simulated subject."""

    def __init__(self, trials, onsets, X, amplitudes, signal, noise_sd,
                 neural=None):

        if len(onsets) != len(trials):
            raise ConfigurationError(f'Got {len(trials)} trials, but '
                                     f'{len(onsets)} onsets.')

        if X.shape[1] != len(trials):
            raise ConfigurationError(f'Design matrix has {X.shape[1]} '
                                     f'regressors, but there are '
                                     f'{len(trials)} trials.')

        if X.shape[0] != len(signal):
            raise ConfigurationError(f'Design matrix has {X.shape[0]} rows, '
                                     f'but the signal has {len(signal)} '
                                     'timepoints.')

        self.trials = trials
        self.onsets = np.asarray(onsets)
        self.X = X
        self.amplitudes = np.asarray(amplitudes)
        self.signal = pd.Series(np.asarray(signal), index=X.index,
                                name='signal')
        self.noise_sd = noise_sd

        if neural is None:
            neural = NeuralConfig(noise_sd=noise_sd)
        self.neural = neural

    @property
    def n_trials(self):
        return len(self.trials)

    @property
    def n_timepoints(self):
        return len(self.signal)

    @property
    def prediction_errors(self):
        return self.trials['prediction_error'].values

    @property
    def true_correlation(self):
        return _correlation(self.amplitudes, self.prediction_errors)

    def resynthesize(self, noise_sd, amplitude_sd=None, rng=None):
        """New dataset with the same behavior and design, but freshly drawn
        amplitudes and measurement noise."""

        if rng is None:
            rng = np.random.default_rng()

        if amplitude_sd is None:
            amplitude_sd = self.neural.amplitude_sd

        neural = self.neural.model_copy(update={'noise_sd': noise_sd,
                                                'amplitude_sd': amplitude_sd})

        amplitudes = draw_amplitudes(self.prediction_errors,
                                     neural.coefficient,
                                     neural.amplitude_sd,
                                     rng)
        signal = synthesize_signal(self.X, amplitudes, noise_sd, rng)

        return JointDataset(self.trials, self.onsets, self.X, amplitudes,
                            signal, noise_sd, neural)

    def to_stan_data(self, prediction_errors=None):
        """Data dictionary for the Stan models.

        If `prediction_errors` is given, they are passed as `E_vector`, for
        models that take prediction errors as fixed input.
        """
        data = {'N': self.n_trials,
                'T': self.n_timepoints,
                'choice': self.trials['choice'].values.astype(int),
                'outcome': self.trials['outcome'].values,
                'y': self.signal.values,
                'X': self.X.values}

        if prediction_errors is not None:
            prediction_errors = np.asarray(prediction_errors, dtype=float)
            if len(prediction_errors) != self.n_trials:
                raise ConfigurationError(f'Got {len(prediction_errors)} '
                                         'prediction errors for '
                                         f'{self.n_trials} trials.')
            data['E_vector'] = prediction_errors

        return data


def simulate_joint_experiment(n_trials=100,
                              environment=None,
                              learner=None,
                              scan=None,
                              neural=None,
                              seed=None,
                              rng=None):
    """
    Simulates behavior on a drifting bandit and the fMRI signal evoked by
    its prediction errors.

    Every trial gets its own HRF regressor in the design matrix. The
    amplitude of trial t is drawn from
    N(coefficient * prediction_error_t, amplitude_sd), and measurement
    noise with sd `noise_sd` is added to the convolved signal.
    """
    if scan is None:
        scan = ScanConfig()

    if neural is None:
        neural = NeuralConfig()

    if rng is None:
        rng = np.random.default_rng(seed)

    trials = simulate_bandit(n_trials, environment, learner, rng=rng)

    onsets = generate_onsets(n_trials,
                             scan.min_isi,
                             scan.isi_jitter,
                             rng=rng)

    frametimes = make_frametimes(onsets, scan.TR, scan.tail)
    X = make_design_matrix(onsets, frametimes)

    logging.info('Simulated {} trials, {} timepoints (TR={})'.format(
        n_trials, len(frametimes), scan.TR))

    amplitudes = draw_amplitudes(trials['prediction_error'].values,
                                 neural.coefficient,
                                 neural.amplitude_sd,
                                 rng)
    signal = synthesize_signal(X, amplitudes, neural.noise_sd, rng)

    return JointDataset(trials, onsets, X, amplitudes, signal,
                        neural.noise_sd, neural)
