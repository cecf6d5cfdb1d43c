"""Discovery & bookkeeping of paired-end FASTQ files.

DADA2 processes each read direction separately and then mates denoised reads
by their position in the per-sample lists, so the forward & reverse file lists
must be in the same sample order. find_paired_fastqs() guarantees this by
keying every file on its sample name.
"""
import os
from collections import namedtuple
from pathlib import Path
from Bio.SeqIO.QualityIO import FastqGeneralIterator
from asv_seq.shared import smart_open

PairedFastqs = namedtuple('PairedFastqs', ['samples', 'forward', 'reverse', 'forward_only', 'reverse_only'])

def sample_name(filename, pattern):
    """sample_name('data/F3D0_F_filt.fastq.gz', '_F_filt.fastq.gz') -> 'F3D0'

If `pattern` isn't found in the basename, the sample name is everything before
the first underscore (the convention of the DADA2 tutorial)."""
    base = os.path.basename(str(filename))
    if pattern and base.endswith(pattern):
        return base[:-len(pattern)]
    return base.split('_')[0]

def _by_sample(directory, pattern):
    return {sample_name(f, pattern):str(f) for f in sorted(Path(directory).glob('*'+pattern))}

def find_paired_fastqs(directory, forward_pattern, reverse_pattern):
    """Returns PairedFastqs of all mated forward/reverse FASTQ files in `directory`.

Samples are sorted by name. Files lacking a mate are listed in `forward_only`
& `reverse_only` and excluded from `samples`, `forward` and `reverse`.
"""
    if not os.path.isdir(str(directory)):
        raise LookupError("Input directory `{:}` does not exist.".format(directory))
    forward = _by_sample(directory, forward_pattern)
    if not forward:
        raise LookupError("No files matching *{:} in {:}.".format(forward_pattern, directory))
    reverse = _by_sample(directory, reverse_pattern)
    samples = sorted(forward.keys() & reverse.keys())
    return PairedFastqs(samples=samples,
                        forward=[forward[s] for s in samples],
                        reverse=[reverse[s] for s in samples],
                        forward_only=sorted(forward.keys() - reverse.keys()),
                        reverse_only=sorted(reverse.keys() - forward.keys()))

def filtered_paths(samples, directory, forward_suffix, reverse_suffix):
    """Output paths for filterAndTrim(), in the order of `samples`."""
    directory = Path(directory)
    return ([str(directory / (s + forward_suffix)) for s in samples],
            [str(directory / (s + reverse_suffix)) for s in samples])

def count_reads(filename):
    with smart_open(filename, 'rt') as f:
        return sum(1 for _ in FastqGeneralIterator(f))

def read_lengths(filename, max_reads=None):
    """Histogram (dict) of read lengths in a FASTQ file, optionally of the first `max_reads`."""
    lengths = {}
    with smart_open(filename, 'rt') as f:
        for i, (title, seq, qual) in enumerate(FastqGeneralIterator(f)):
            if max_reads is not None and i >= max_reads:
                break
            lengths[len(seq)] = lengths.get(len(seq), 0) + 1
    return lengths

def longest_read(filename, max_reads=None):
    """Length of the longest read (of the first `max_reads`), or None for an empty file."""
    return max(read_lengths(filename, max_reads=max_reads), default=None)
