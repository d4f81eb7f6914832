import numpy as np
import pandas as pd


def calc_min_interval(x, alpha):
    """Internal method to determine the minimum interval of
    a given width
    Assumes that x is sorted numpy array.
    """
    n = len(x)
    cred_mass = 1.0 - alpha

    interval_idx_inc = int(np.floor(cred_mass * n))
    n_intervals = n - interval_idx_inc
    interval_width = x[interval_idx_inc:] - x[:n_intervals]

    if len(interval_width) == 0:
        raise ValueError('Too few elements for interval calculation')

    min_idx = np.argmin(interval_width)
    hdi_min = x[min_idx]
    hdi_max = x[min_idx + interval_idx_inc]
    return hdi_min, hdi_max


def get_hpd(x, alpha=0.05):
    """Highest posterior density (HPD) interval of MCMC samples.

    The HPD is the minimum width Bayesian credible interval. Assumes the
    posterior is unimodal, so there is one interval per variable.

    Parameters
    ----------
    x : np.array (n_draws,) or (n_draws, n_variables)
        MCMC samples, draws along the first axis

    alpha : float
        1 - credible mass (defaults to 0.05)

    Returns
    -------
    hpd : np.array (2,) or (n_variables, 2)
    """
    x = np.asarray(x, dtype=float)

    if x.ndim == 1:
        return np.array(calc_min_interval(np.sort(x), alpha))

    flat = x.reshape((x.shape[0], -1))
    intervals = np.array([calc_min_interval(np.sort(flat[:, i]), alpha)
                          for i in range(flat.shape[1])])

    return intervals.reshape(x.shape[1:] + (2,))


def get_hpd_frame(traces, alpha=0.05):
    """HPD of every column of a DataFrame of traces."""
    hpd = get_hpd(traces.values, alpha=alpha)
    return pd.DataFrame(hpd, columns=[alpha, 1 - alpha],
                        index=traces.columns)
