#!/usr/bin/env python3
"""
Tests for the error model, sequence length & read tracking graphs.
"""

from itertools import product
import numpy as np
import pandas as pd
import pytest
from matplotlib.colors import to_rgba
from asv_seq.graphs import (plt, plot_errors, observed_error_frequencies, nominal_error_rates,
                            length_histogram, tracking_plot, text_color_legend)

Q = [10, 20, 30, 40]
transitions = [a+'2'+b for a, b in product('ACGT', repeat=2)]


@pytest.fixture
def error_model():
    observed = pd.DataFrame(1.0, index=transitions, columns=Q)
    for nuc in 'ACGT':
        observed.loc[nuc+'2'+nuc] = 97.0
    fitted = observed_error_frequencies(observed)
    return fitted, observed


@pytest.fixture
def ax():
    fig, ax = plt.subplots()
    yield ax
    plt.close(fig)


def test_observed_error_frequencies_sum_to_one(error_model):
    fitted, observed = error_model
    freqs = observed_error_frequencies(observed)
    assert freqs.loc['A2A', 10] == pytest.approx(0.97)
    assert freqs.loc['A2C', 40] == pytest.approx(0.01)
    sums = freqs.groupby(freqs.index.str[0]).sum()
    assert np.allclose(sums.values, 1)


def test_observed_error_frequencies_without_counts():
    observed = pd.DataFrame(0.0, index=['A2A', 'A2C'], columns=[10])
    assert observed_error_frequencies(observed).isnull().all().all()


def test_nominal_error_rates():
    assert nominal_error_rates([10, 20], 'A2C') == pytest.approx([0.1/3, 0.01/3])
    assert nominal_error_rates([10, 20], 'G2G') == pytest.approx([0.9, 0.99])


def test_plot_errors(error_model):
    fig = plot_errors(*error_model)
    axes = fig.get_axes()
    assert len(axes) == 16
    assert [ax.get_title() for ax in axes] == transitions
    assert axes[1].get_yscale() == 'log'
    plt.close(fig)


def test_length_histogram(ax):
    lengths = pd.Series({240: 3, 245: 10, 253: 40}, name='ASVs')
    length_histogram(lengths, 245, ax=ax)
    legend = ax.get_legend()
    assert [t.get_text() for t in legend.get_texts()] == ['Passed Length Filter', 'Failed Length Filter']
    heights = sorted(p.get_height() for p in ax.patches)
    assert heights == [3, 10, 40]


def test_length_histogram_all_pass(ax):
    length_histogram(pd.Series({250: 2}), 245, ax=ax)
    assert [t.get_text() for t in ax.get_legend().get_texts()] == ['Passed Length Filter']


def test_tracking_plot(ax):
    tracking = pd.DataFrame({'input': [100, 50], 'merged': [80, 25], 'nonchim': [60, 20]}, index=['a', 'b'])
    tracking_plot(tracking, ax=ax)
    median = ax.get_lines()[-1]
    assert median.get_ydata().tolist() == pytest.approx([1, 0.65, 0.5])
    assert [t.get_text() for t in ax.get_xticklabels()] == ['input', 'merged', 'nonchim']


def test_text_color_legend(ax):
    ax.plot([0, 1], [0, 1], color='red', label='red line')
    legend = text_color_legend(ax)
    assert to_rgba(legend.get_texts()[0].get_color()) == to_rgba('red')
