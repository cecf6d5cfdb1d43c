#!/usr/bin/env python3
import argparse, sys
import pandas as pd
from pathlib import Path
from asv_seq import params, dada, tables
from asv_seq.fastq import find_paired_fastqs, filtered_paths, longest_read
from asv_seq.shared import logPrint

############################ Input Parameters #################################
parser = argparse.ArgumentParser(description="Quality-filter & truncate raw paired-end fastq files with DADA2's filterAndTrim, in preparation for asv_pipeline.py.",
                                 formatter_class=argparse.ArgumentDefaultsHelpFormatter)

parser.add_argument('input_dir', type=Path, help='Directory with raw (demultiplexed, primer-free) forward & reverse fastq files.')
parser.add_argument('-o', '--output_dir', type=Path, default=params.filtered_dir, help='Directory to save filtered fastq files.')
parser.add_argument('--forward_pattern', default=params.raw_forward_pattern, help='Filename suffix of raw forward reads.')
parser.add_argument('--reverse_pattern', default=params.raw_reverse_pattern, help='Filename suffix of raw reverse reads.')
parser.add_argument('--filtered_forward', default=params.forward_pattern, help='Filename suffix for filtered forward reads.')
parser.add_argument('--filtered_reverse', default=params.reverse_pattern, help='Filename suffix for filtered reverse reads.')
parser.add_argument('--summary', type=Path, default=params.filter_summary_file, help='Tab-separated table of reads in & out of each sample.')
parser.add_argument('-l', '--trunc_len', type=int, nargs=2, default=params.trunc_len, help='Truncate forward & reverse reads to these lengths (0 = no truncation).')
parser.add_argument('-e', '--max_EE', type=float, nargs=2, default=params.max_EE, help='Maximum expected errors of forward & reverse reads.')
parser.add_argument('-q', '--trunc_Q', type=int, default=params.trunc_Q, help='Truncate reads at the first instance of this quality score or lower.')
parser.add_argument('-n', '--max_N', type=int, default=params.max_N, help='Maximum ambiguous bases.')
parser.add_argument('--keep_phix', action='store_true', help='Do not discard reads matching the PhiX genome.')
parser.add_argument('-j', '--threads', type=int, default=params.threads, help='Threads to use within DADA2 (1 disables multithreading).')
parser.add_argument("-v", "--verbose", help='Output more', action="store_true")
###############################################################################
args = parser.parse_args()
Log = logPrint(args)

fastqs = find_paired_fastqs(args.input_dir, args.forward_pattern, args.reverse_pattern)
for direction, unmatched in (('reverse', fastqs.forward_only), ('forward', fastqs.reverse_only)):
    if unmatched:
        Log("Could not find a {:} fastq file for: {:}".format(direction, ', '.join(unmatched)), True)

samples = fastqs.samples
if not samples:
    Log("No samples in {:} have both forward & reverse reads.".format(args.input_dir), True)
    sys.exit(1)
Log('Filtering {:} samples found in {:}.'.format(len(samples), args.input_dir), True)

# filterAndTrim discards every read shorter than truncLen, so truncating beyond
# the sequenced read length silently discards the entire sample. Empty files
# (e.g. blank controls) have nothing to lose.
too_short = []
for files, trunc_len, direction in zip((fastqs.forward, fastqs.reverse), args.trunc_len, ('forward', 'reverse')):
    for f in files:
        longest = longest_read(f, max_reads=10000)
        if longest is not None and trunc_len > longest:
            too_short.append(f)
            Log("Truncation length of {:} reads ({:}) exceeds their length ({:} in {:}).".format(
                direction, trunc_len, longest, f), True)
if too_short:
    sys.exit(1)

filtered_forward, filtered_reverse = filtered_paths(samples, args.output_dir, args.filtered_forward, args.filtered_reverse)
args.output_dir.mkdir(parents=True, exist_ok=True)

summary = dada.filter_and_trim(fastqs.forward, filtered_forward, fastqs.reverse, filtered_reverse,
                               trunc_len=args.trunc_len, max_N=args.max_N, max_EE=args.max_EE, trunc_Q=args.trunc_Q,
                               rm_phix=not args.keep_phix, multithread=args.threads if args.threads > 1 else False)
summary.index = pd.Index(samples, name='Sample')
summary['fraction'] = summary['reads.out']/summary['reads.in']
tables.write_table(summary, args.summary, float_format='%.4f')

for sample, row in summary.iterrows():
    Log('Sample {:} ({:.2f}M Reads): {:.1%} passed.'.format(sample, row['reads.in']*1e-6, row['fraction']))

empty = summary.query('`reads.out` == 0').index
if len(empty) > 0:
    Log("No reads passed the filter in: {:}. These samples have no filtered output.".format(', '.join(empty)), True)

totals = summary[['reads.in', 'reads.out']].sum()
Log("Summary of the {:.2f}M read pairs in {:}:".format(totals['reads.in']*1e-6, args.input_dir), True, header=True)
Log("{:.2%} of read pairs passed the quality filter.".format(totals['reads.out']/totals['reads.in']), True)
