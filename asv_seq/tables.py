"""Operations on sequence tables (samples x ASVs count matrices).

The sequence table is a pandas.DataFrame indexed by Sample with one column per
exact amplicon sequence. None of these functions alter counts: they measure,
subset, relabel, or write tables.
"""
import numpy as np
import pandas as pd
from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord
from asv_seq.shared import smart_open

def sequence_lengths(table):
    """-> pd.Series of the number of ASVs of each sequence length."""
    lengths = pd.Series([len(seq) for seq in table.columns], dtype=np.int64)
    return lengths.value_counts().sort_index().rename_axis('Length').rename('ASVs')

def filter_by_length(table, min_length, max_length=None):
    """Drops ASVs shorter than `min_length` (or longer than `max_length`, if given)."""
    lengths = np.array([len(seq) for seq in table.columns], dtype=np.int64)
    keep = lengths >= min_length
    if max_length is not None:
        if max_length < min_length:
            raise ValueError("max_length ({:}) is less than min_length ({:}).".format(max_length, min_length))
        keep &= lengths <= max_length
    return table.loc[:, keep]

def retained_fraction(before, after):
    """Fraction of all reads in `before` that remain in `after`."""
    total = before.values.sum()
    return after.values.sum()/total if total > 0 else np.nan

def track_reads(**stages):
    """track_reads(input=S1, denoisedF=S2, ...) -> pd.DataFrame of reads per sample at each stage.

Each stage is a pd.Series indexed by sample (or a sequence table, which is summed
across ASVs). Columns retain the keyword order. Samples absent from a later stage
(e.g. those with no merged reads) are tallied as zero.
"""
    columns = {name: stage.sum(axis=1) if isinstance(stage, pd.DataFrame) else stage for name, stage in stages.items()}
    df = pd.DataFrame(columns)
    df.index.name = 'Sample'
    return df.fillna(0).astype(np.int64)

def name_asvs(table, prefix='ASV'):
    """-> (table with ASV labels as columns, pd.Series of label -> sequence).

ASVs are numbered from 1 in decreasing total abundance; ties keep their order in `table`.
"""
    totals = table.sum()
    order = totals.sort_values(ascending=False, kind='mergesort').index
    labels = ['{:}{:}'.format(prefix, i) for i in range(1, len(order)+1)]
    sequences = pd.Series(list(order), index=labels, name='sequence')
    named = table.loc[:, order].copy()
    named.columns = labels
    return named, sequences

def write_table(frame, filename, sep='\t', **kargs):
    """Writes `frame` as delimited text. Compression is inferred from the extension."""
    with smart_open(filename, 'wt', makedirs=True) as f:
        frame.to_csv(f, sep=sep, **kargs)

def write_fasta(sequences, filename):
    """Writes pd.Series of label -> sequence as a FASTA file."""
    records = (SeqRecord(Seq(seq), id=label, description='') for label, seq in sequences.items())
    with smart_open(filename, 'wt', makedirs=True) as f:
        return SeqIO.write(records, f, 'fasta')
