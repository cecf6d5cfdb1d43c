import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import seaborn as sns
import numpy as np
import pandas as pd
from itertools import product
from matplotlib.container import Container
from matplotlib.lines import Line2D

nucleotides = 'ACGT'

def nominal_error_rates(Q, transition):
    """Error rate implied by the PHRED quality score alone."""
    P = np.power(10, -np.asarray(Q, dtype=float)/10)
    return 1 - P if transition[0] == transition[-1] else P/3

def observed_error_frequencies(observed):
    """Normalizes transition counts by the total counts of each original nucleotide."""
    from_nucleotide = observed.index.str[0]
    totals = observed.groupby(from_nucleotide).transform('sum')
    return observed/totals.replace(0, np.nan)

def plot_errors(fitted, observed, nominal=True, min_frequency=1e-7,
                point_kwargs=dict(color='0.4', s=8, alpha=0.6, zorder=2),
                fit_kwargs=dict(color='k', lw=1.5, zorder=3),
                nominal_kwargs=dict(color='r', lw=1, ls='--', zorder=1)):
    """Observed & fitted error frequencies of every transition (A2A, A2C, ...) vs. quality score.

Each facet is one transition. Points are observed frequencies, the black line
is DADA2's fitted error model, and the dashed red line is the error rate
expected from the quality score. A trustworthy model tracks the points and
decreases with quality score. Returns the matplotlib Figure.
"""
    frequencies = observed_error_frequencies(observed)
    Q = np.asarray(fitted.columns, dtype=float)
    with sns.axes_style('whitegrid'):
        fig, axs = plt.subplots(4, 4, sharex=True, sharey=True, figsize=(12, 12))
    for ax, (from_nuc, to_nuc) in zip(axs.flatten(), product(nucleotides, repeat=2)):
        transition = from_nuc+'2'+to_nuc
        if transition in frequencies.index:
            obs = frequencies.loc[transition]
            obs = obs.loc[obs > 0]
            ax.scatter(obs.index.values.astype(float), obs.values, **point_kwargs)
        if transition in fitted.index:
            ax.plot(Q, fitted.loc[transition].clip(lower=min_frequency).values, **fit_kwargs)
        if nominal:
            ax.plot(Q, nominal_error_rates(Q, transition).clip(min_frequency), **nominal_kwargs)
        ax.set_title(transition)
        ax.set_yscale('log')
    for ax in axs[-1]:
        ax.set_xlabel('Consensus quality score')
    for ax in axs[:, 0]:
        ax.set_ylabel('Error frequency (log10)')
    fig.tight_layout()
    return fig

def length_histogram(lengths, min_length, max_length=None, ax=None):
    """Bar graph of the number of ASVs of each length, colored by the length filter."""
    if ax is None:
        ax = plt.gca()
    X = lengths.index.values
    passed = (X >= min_length) & (X <= (max_length if max_length is not None else np.inf))
    if passed.any():
        ax.bar(X[passed], lengths.values[passed], 1, label='Passed Length Filter')
    if (~passed).any():
        ax.bar(X[~passed], lengths.values[~passed], 1, label='Failed Length Filter')
    text_color_legend(ax, bbox_to_anchor=(0, 1), loc='upper left')
    ax.set(xlabel='Sequence Length (bp)', ylabel='ASVs')
    return ax

def tracking_plot(tracking, ax=None, fraction=True):
    """Reads remaining in each sample after every stage of the pipeline.

Thin lines are samples; the thick line is the median sample."""
    if ax is None:
        ax = plt.gca()
    data = tracking.div(tracking.iloc[:, 0].replace(0, np.nan), axis=0) if fraction else tracking
    X = np.arange(len(data.columns))
    for sample, row in data.iterrows():
        ax.plot(X, row.values, color='0.6', lw=0.75, alpha=0.7)
    ax.plot(X, data.median().values, color='k', lw=3, label='Median Sample')
    ax.xaxis.set_ticks(X)
    ax.xaxis.set_ticklabels(data.columns, rotation=45, ha='right')
    if fraction:
        yticks = [0, 0.25, 0.5, 0.75, 1]
        ax.set(ylim=[0, 1.05], yticks=yticks, yticklabels=list(map('{:.0%}'.format, yticks)))
    ax.set_ylabel('Reads Remaining' + (' (Fraction of Input)' if fraction else ''))
    text_color_legend(ax, bbox_to_anchor=(1, 1), loc='upper right')
    return ax

class NullObjectHandler(object):
    def legend_artist(self, legend, orig_handle, fontsize, handlebox):
        pass

def _artist_color(artist):
    if isinstance(artist, Line2D):
        return artist.get_color()
    color = artist.get_facecolor()
    return color[0] if np.ndim(color) == 2 else color

def text_color_legend(ax, visible_handles=False, legend_prop={'weight':'semibold'}, bbox_to_anchor=(1, 1), **kargs):
    """text_color_legend() -> eliminates legend key and simply colors labels with the color of the artists."""
    handles, labels = ax.get_legend_handles_labels()
    handles = [handle[0] if isinstance(handle, Container) else handle for handle in handles]
    if not visible_handles:
        kargs['handler_map'] = {handle:NullObjectHandler() for handle in handles}
    L = ax.legend(handles, labels, prop=legend_prop, borderaxespad=0, bbox_to_anchor=bbox_to_anchor, **kargs)
    for handle, text in zip(handles, L.get_texts()):
        text.set_color(_artist_color(handle))
    return L
