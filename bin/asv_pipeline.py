#!/usr/bin/env python3
import argparse, os, sys
import pandas as pd
from pathlib import Path
from asv_seq import params, dada, tables
from asv_seq.fastq import find_paired_fastqs, count_reads
from asv_seq.shared import logPrint

############################ Input Parameters #################################
parser = argparse.ArgumentParser(description="""Infers Amplicon Sequence Variants (ASVs) from filtered paired-end FASTQ files with DADA2:
learns error models, denoises, merges mates, builds a sequence table, filters it by length, removes chimeras & (optionally) assigns taxonomy.""",
                                 formatter_class=argparse.ArgumentDefaultsHelpFormatter)

parser.add_argument('input_dir', type=Path, help='Directory with filtered forward & reverse fastq files (see filter_reads.py).')
IO_group = parser.add_argument_group('IO', 'Input/Output Optional Arguments')
IO_group.add_argument('--forward_pattern', default=params.forward_pattern, help='Filename suffix of forward reads; the sample name precedes it.')
IO_group.add_argument('--reverse_pattern', default=params.reverse_pattern, help='Filename suffix of reverse reads.')
IO_group.add_argument('-o', '--out_file', type=Path, default=params.out_file, help='Tab-separated table of chimera-free ASV counts (Samples x Sequences). Relative paths are placed in --out_dir.')
IO_group.add_argument('--out_dir', type=Path, default=Path('.'), help='Directory for all other output tables.')
IO_group.add_argument('--plot_dir', type=Path, default=params.plot_dir, help='Directory for graphs.')
IO_group.add_argument('--no_plots', action='store_true', help='Do not graph error models, sequence lengths or read tracking.')
IO_group.add_argument("-v", "--verbose", help='Output more', action="store_true")

OP_group = parser.add_argument_group('OP', 'Optional arguments affecting operation')
OP_group.add_argument('-s', '--seed', type=int, default=params.seed, help='Random seed (in R) for subsampling reads during error learning.')
OP_group.add_argument('-j', '--threads', type=int, default=params.threads, help='Threads to use within DADA2 (1 disables multithreading).')
OP_group.add_argument('-p', '--parallel', action='store_true', help='Count input reads of every sample in parallel.')
OP_group.add_argument('--nbases', type=float, default=params.error_nbases, help='Minimum number of bases used to learn each error model.')
OP_group.add_argument('--pool', action='store_true', default=params.pool, help='Pool all samples for denoising.')
OP_group.add_argument('--min_overlap', type=int, default=params.min_overlap, help='Minimum overlap of mates to merge.')
OP_group.add_argument('--max_mismatch', type=int, default=params.max_mismatch, help='Mismatches tolerated in the overlap of mates.')
OP_group.add_argument('-m', '--min_length', type=int, default=params.min_length, help='Shortest ASV (bp) to keep.')
OP_group.add_argument('-M', '--max_length', type=int, default=params.max_length, help='Longest ASV (bp) to keep (default: no limit).')
OP_group.add_argument('--chimera_method', default=params.chimera_method, choices=params.chimera_methods, help='Bimera detection method of removeBimeraDenovo.')
OP_group.add_argument('-t', '--taxonomy_db', type=Path, help='Training FASTA for taxonomic assignment (e.g. silva_nr99_v138.1_train_set.fa.gz). Skipped if absent.')
OP_group.add_argument('--species_db', type=Path, help='Species assignment FASTA (e.g. silva_species_assignment_v138.1.fa.gz), requires --taxonomy_db.')
OP_group.add_argument('--min_boot', type=int, default=params.min_boot, help='Minimum bootstrap confidence to assign a taxonomic rank.')
###############################################################################
args = parser.parse_args()
Log = logPrint(args)

multithread = args.threads if args.threads > 1 else False

def output(filename):
    return args.out_dir / filename

out_file = args.out_file if args.out_file.is_absolute() else output(args.out_file)

############################## File Discovery #################################

fastqs = find_paired_fastqs(args.input_dir, args.forward_pattern, args.reverse_pattern)
for direction, unmatched in (('reverse', fastqs.forward_only), ('forward', fastqs.reverse_only)):
    if unmatched:
        Log("Could not find a {:} fastq file for: {:}".format(direction, ', '.join(unmatched)), True)

samples = fastqs.samples
if not samples:
    Log("No samples in {:} have both forward & reverse reads.".format(args.input_dir), True)
    sys.exit(1)
Log('Processing {:} samples found in {:}.'.format(len(samples), args.input_dir), True)

if args.parallel:
    from asv_seq.pmap import large_iter_pmap as map
input_reads = pd.Series(list(map(count_reads, fastqs.forward)), index=samples)
Log('{:.2f}M read pairs in total.'.format(input_reads.sum()*1e-6))

############################## Error Models ###################################

dada.set_seed(args.seed)
error_models = {}
for direction, files in (('F', fastqs.forward), ('R', fastqs.reverse)):
    Log("Learning the {:} read error model...".format('forward' if direction == 'F' else 'reverse'), True)
    error_models[direction] = dada.learn_errors(files, multithread=multithread, nbases=args.nbases, verbose=args.verbose)

if not args.no_plots:
    try:
        from asv_seq.graphs import plt, plot_errors
        os.makedirs(args.plot_dir, exist_ok=True)
        for direction, error_model in error_models.items():
            fig = plot_errors(*dada.error_rates(error_model))
            fig.savefig(str(args.plot_dir / 'errors_{:}.pdf'.format(direction)), bbox_inches='tight')
            plt.close(fig)
    except Exception as e:
        print("Couldn't graph the error models, perhaps you need to configure the matplotlib backend?")
        print(e)

############################ Sample Inference #################################

Log("Denoising forward reads...", True)
dada_F = dada.denoise(fastqs.forward, samples, error_models['F'], multithread=multithread, pool=args.pool, verbose=args.verbose)
Log("Denoising reverse reads...", True)
dada_R = dada.denoise(fastqs.reverse, samples, error_models['R'], multithread=multithread, pool=args.pool, verbose=args.verbose)

Log("Merging mates...", True)
mergers = dada.merge_pairs(dada_F, fastqs.forward, dada_R, fastqs.reverse, samples,
                           min_overlap=args.min_overlap, max_mismatch=args.max_mismatch, verbose=args.verbose)

########################### Sequence Table ####################################

seqtab = dada.make_sequence_table(mergers)
Log("Sequence table: {:} samples x {:} ASVs.".format(*seqtab.shape), True)

lengths = tables.sequence_lengths(seqtab)
Log("Distribution of ASV lengths:")
Log(lengths.to_string())

length_filtered = tables.filter_by_length(seqtab, args.min_length, args.max_length)
Log("{:} of {:} ASVs ({:.2%} of reads) passed the length filter.".format(
    length_filtered.shape[1], seqtab.shape[1], tables.retained_fraction(seqtab, length_filtered)), True)
if length_filtered.shape[1] == 0:
    Log("No ASVs are at least {:} bp long. Nothing more to do.".format(args.min_length), True)
    sys.exit(1)

Log("Removing chimeras ({:} method)...".format(args.chimera_method), True)
seqtab_nochim = dada.remove_chimeras(length_filtered, method=args.chimera_method, multithread=multithread, verbose=args.verbose)
Log("{:} of {:} ASVs were chimeric, comprising {:.2%} of reads.".format(
    length_filtered.shape[1] - seqtab_nochim.shape[1], length_filtered.shape[1],
    1 - tables.retained_fraction(length_filtered, seqtab_nochim)), True)

tables.write_table(seqtab_nochim, out_file)
Log("Saved chimera-free sequence table to {:}.".format(out_file))

asv_table, asv_sequences = tables.name_asvs(seqtab_nochim)
tables.write_table(asv_table, output(params.asv_table_file))
tables.write_fasta(asv_sequences, output(params.asv_fasta_file))

############################### Taxonomy ######################################

if args.taxonomy_db is not None:
    Log("Assigning taxonomy with {:}...".format(args.taxonomy_db), True)
    taxonomy = dada.assign_taxonomy(seqtab_nochim.columns, args.taxonomy_db, multithread=multithread,
                                    min_boot=args.min_boot, verbose=args.verbose)
    if args.species_db is not None:
        taxonomy = dada.add_species(taxonomy, args.species_db, verbose=args.verbose)
    taxonomy.insert(0, 'ASV', pd.Series(asv_sequences.index, index=asv_sequences.values).reindex(taxonomy.index).values)
    tables.write_table(taxonomy, output(params.taxonomy_file))
    Log("Fraction of ASVs assigned at each rank:")
    Log(taxonomy.drop(columns='ASV').notnull().mean().to_string(float_format='{:.2%}'.format))
else:
    if args.species_db is not None:
        Log("--species_db requires --taxonomy_db; skipping species assignment.", True)
    Log("No taxonomy database given; skipping taxonomic assignment.")

############################### Read Tracking ##################################

tracking = tables.track_reads(input=input_reads,
                              denoisedF=dada.denoised_reads(dada_F),
                              denoisedR=dada.denoised_reads(dada_R),
                              merged=dada.merged_reads(mergers),
                              length_filtered=length_filtered,
                              nonchim=seqtab_nochim).reindex(samples, fill_value=0)
tables.write_table(tracking, output(params.tracking_file))

if not args.no_plots:
    try:
        from asv_seq.graphs import plt, length_histogram, tracking_plot
        fig, ax = plt.subplots()
        length_histogram(lengths, args.min_length, args.max_length, ax=ax)
        fig.savefig(str(args.plot_dir / 'sequence_lengths.pdf'), bbox_inches='tight')
        plt.close(fig)
        fig, ax = plt.subplots()
        tracking_plot(tracking, ax=ax)
        fig.savefig(str(args.plot_dir / 'track_reads.pdf'), bbox_inches='tight')
        plt.close(fig)
    except Exception as e:
        print("Couldn't graph sequence lengths & read tracking, perhaps you need to configure the matplotlib backend?")
        print(e)

totals = tracking.sum()
Log("Summary of the {:.2f}M read pairs in {:}:".format(totals.iloc[0]*1e-6, args.input_dir), True, header=True)
Log((totals/totals.iloc[0]).to_string(float_format='{:.2%}'.format), True)
