import numpy as np
import pandas as pd
from scipy import stats
from .config import ConfigurationError


def double_gamma(t, onset=0., a1=6, a2=16, rate=1., ratio=1. / 6):
    """Canonical double-gamma hemodynamic response.

    Difference of two gamma densities (shapes `a1` and `a2`, both with rate
    `rate`), the second one scaled by `ratio`, evaluated at `t - onset`.

    Parameters
    ----------
    t : float or np.array
        time point(s), in seconds

    onset : float
        onset time of the event, in seconds

    Returns
    -------
    y : np.array
        response amplitude, exactly 0 for all t < onset
    """
    x = np.asarray(t, dtype=float) - onset

    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        y = stats.gamma.pdf(x, a1, scale=1. / rate) - \
            ratio * stats.gamma.pdf(x, a2, scale=1. / rate)

    y = np.where(np.isfinite(y), y, 0.)
    y = np.where(x < 0, 0., y)

    if np.ndim(t) == 0:
        return float(y)

    return y


def generate_onsets(n_trials, min_isi=4., isi_jitter=4., first_onset=None,
                    rng=None):
    """Onset times built from cumulative, jittered inter-stimulus intervals.

    Every gap is `min_isi` plus an exponentially distributed jitter with mean
    `isi_jitter`, so onsets are strictly increasing.
    """
    if n_trials < 1:
        raise ConfigurationError(f'Need at least one trial (got {n_trials})')

    if min_isi <= 0:
        raise ConfigurationError('min_isi should be positive for onsets to be '
                                 f'strictly increasing (got {min_isi})')

    if rng is None:
        rng = np.random.default_rng()

    isis = min_isi + rng.exponential(isi_jitter, size=n_trials) \
        if isi_jitter > 0 else np.full(n_trials, float(min_isi))

    if first_onset is not None:
        isis[0] = first_onset

    return np.cumsum(isis)


def make_frametimes(onsets, TR=2., tail=32.):
    """Sampling times of the signal, covering all onsets plus `tail` seconds."""
    return np.arange(0, np.max(onsets) + tail, TR)


def _check_weights(onsets, weights):
    onsets = np.asarray(onsets, dtype=float)

    if weights is None:
        weights = np.ones_like(onsets)
    else:
        weights = np.asarray(weights, dtype=float)

    if weights.shape != onsets.shape:
        raise ConfigurationError(f'Got {len(onsets)} onsets, but {len(weights)} '
                                 'weights. These should be the same length.')

    return onsets, weights


def convolve_onsets(onsets, frametimes, weights=None, **kernel_pars):
    """Sum of (weighted) responses to all onsets, sampled at `frametimes`."""
    onsets, weights = _check_weights(onsets, weights)
    frametimes = np.asarray(frametimes, dtype=float)

    responses = double_gamma(frametimes[:, np.newaxis],
                             onsets[np.newaxis, :],
                             **kernel_pars)

    return responses.dot(weights)


def make_design_matrix(onsets, frametimes, weights=None, collapse=False,
                       **kernel_pars):
    """Design matrix with one HRF regressor per event.

    Parameters
    ----------
    onsets : np.array (n_events)
        strictly increasing onset times, in seconds

    frametimes : np.array (n_timepoints)
        times at which the signal is sampled

    weights : np.array (n_events), optional
        per-event amplitudes ("beta weights") to scale the regressors with

    collapse : bool
        if True, return a single column containing the sum over events

    Returns
    -------
    X : pd.DataFrame (n_timepoints, n_events) or (n_timepoints, 1)
    """
    onsets, weights = _check_weights(onsets, weights)
    frametimes = np.asarray(frametimes, dtype=float)

    index = pd.Index(frametimes, name='time')

    if collapse:
        X = convolve_onsets(onsets, frametimes, weights, **kernel_pars)
        return pd.DataFrame({'summed': X}, index=index)

    X = double_gamma(frametimes[:, np.newaxis],
                     onsets[np.newaxis, :],
                     **kernel_pars) * weights[np.newaxis, :]

    columns = pd.Index([f'trial_{i}' for i in range(1, len(onsets) + 1)],
                       name='regressor')

    return pd.DataFrame(X, index=index, columns=columns)
