from asv_seq.pmap import CPUs

############################### File Layout ###################################
#
# Raw reads are paired, gzip-compressed FASTQ files named as the Illumina
# bcl2fastq software names them, e.g. SAMPLE_S1_L001_R1_001.fastq.gz. After
# quality filtering each sample has one forward & one reverse filtered file,
# SAMPLE_F_filt.fastq.gz & SAMPLE_R_filt.fastq.gz. Sample names are everything
# in the basename before these suffixes.
#
###############################################################################

raw_forward_pattern = '_R1_001.fastq.gz'
raw_reverse_pattern = '_R2_001.fastq.gz'
forward_pattern = '_F_filt.fastq.gz'
reverse_pattern = '_R_filt.fastq.gz'

raw_dir = 'raw'
filtered_dir = 'filtered'

########################## Filtering Parameters ###############################

trunc_len = (240, 160)          # Forward reads keep higher quality for longer
max_N = 0                       # DADA2 does not tolerate ambiguous bases
max_EE = (2, 2)                 # Maximum expected errors (sum of 10^(-Q/10))
trunc_Q = 2
rm_phix = True

######################### Inference Parameters ################################

seed = 100                      # learnErrors draws a random subset of reads
threads = CPUs
error_nbases = int(1e8)         # Bases used to learn the error model
pool = False                    # Pooled inference detects rarer variants, but is slower

########################### Merging Parameters ################################

min_overlap = 12
max_mismatch = 0

######################## Sequence Table Parameters ############################

# Merged sequences shorter than this are non-specific priming or truncated
# merges. The V4 amplicon of 16S rRNA is ~253 bp after primer removal.
min_length = 245
max_length = None

chimera_method = 'consensus'
chimera_methods = ('consensus', 'pooled', 'per-sample')

######################### Taxonomy Parameters #################################

min_boot = 50                   # Minimum bootstrap confidence for a rank assignment
taxonomic_ranks = ('Kingdom', 'Phylum', 'Class', 'Order', 'Family', 'Genus', 'Species')

############################# Output Files ####################################

out_file = 'seqtab_nochim.tsv'
asv_table_file = 'asv_table.tsv'
asv_fasta_file = 'asv_sequences.fasta'
taxonomy_file = 'taxonomy.tsv'
tracking_file = 'track_reads.tsv'
filter_summary_file = 'filter_summary.tsv'
plot_dir = 'plots'
