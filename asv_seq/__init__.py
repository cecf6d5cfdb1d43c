"""Tools for inferring Amplicon Sequence Variants from paired-end reads with DADA2."""
