import numpy as np
import pandas as pd
from numpy.testing import assert_allclose
from jointrl.inference.utils import calc_min_interval, get_hpd, get_hpd_frame


def test_hpd_normal():
    x = np.random.default_rng(0).normal(size=100000)
    assert_allclose(get_hpd(x, alpha=.05), [-1.96, 1.96], atol=.05)


def test_hpd_skewed():
    # the HPD of an exponential starts at its mode
    x = np.random.default_rng(0).exponential(size=100000)
    lower, upper = get_hpd(x, alpha=.05)
    assert lower < .01
    assert_allclose(upper, -np.log(.05), atol=.05)


def test_hpd_multivariate():
    rng = np.random.default_rng(1)
    x = rng.normal(size=(20000, 3)) + np.arange(3)

    hpd = get_hpd(x)

    assert hpd.shape == (3, 2)
    assert_allclose(hpd.mean(1), np.arange(3), atol=.05)


def test_hpd_frame():
    traces = pd.DataFrame(np.random.default_rng(2).normal(size=(1000, 2)),
                          columns=['a', 'b'])
    hpd = get_hpd_frame(traces, alpha=.1)

    assert list(hpd.index) == ['a', 'b']
    assert list(hpd.columns) == [.1, .9]


def test_too_few_elements():
    try:
        calc_min_interval(np.array([]), .05)
    except ValueError:
        pass
    else:
        raise AssertionError('Empty traces should raise')
