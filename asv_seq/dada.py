"""Python interface to the DADA2 R package via rpy2.

Every statistical step of the pipeline (error learning, denoising, merging,
chimera detection & taxonomic classification) is performed by DADA2. These
functions only choose arguments and convert DADA2's outputs into pandas
objects. R packages are imported on first use, so this module imports without
an R installation; failures within R propagate as rpy2 RRuntimeErrors.

R matrices are stored column-major; R_matrix_to_frame() and frame_to_R_matrix()
preserve this ordering.
"""
import functools
import numpy as np
import pandas as pd

@functools.lru_cache(maxsize=None)
def R_packages():
    """-> (dada2, base) R packages."""
    from rpy2.robjects.packages import importr
    return importr('dada2'), importr('base')

def _robjects():
    import rpy2.robjects as robjects
    return robjects

def _names(R_names):
    if R_names is None or not R_names:     # R NULL
        return None
    return [str(name) for name in R_names]

def _rpy2py(obj):
    """R object -> numpy/pandas with rpy2's pandas2ri (and numpy2ri) converters."""
    from rpy2.robjects import default_converter, pandas2ri
    from rpy2.robjects.conversion import localconverter
    with localconverter(default_converter + pandas2ri.converter) as cv:
        return cv.rpy2py(obj)

def _py2rpy(obj):
    """numpy/pandas object -> R object with rpy2's pandas2ri (and numpy2ri) converters."""
    from rpy2.robjects import default_converter, pandas2ri
    from rpy2.robjects.conversion import localconverter
    with localconverter(default_converter + pandas2ri.converter) as cv:
        return cv.py2rpy(obj)

def R_matrix_to_frame(matrix, dtype=None):
    """Converts an R matrix (with dimnames) into a pandas.DataFrame."""
    values = np.asarray(_rpy2py(matrix), dtype=dtype)
    if values.ndim != 2:    # character matrices convert to flat, column-major arrays
        values = values.reshape((matrix.nrow, matrix.ncol), order='F')
    return pd.DataFrame(values, index=_names(matrix.rownames), columns=_names(matrix.colnames))

def frame_to_R_matrix(frame):
    """Converts an integer count pandas.DataFrame into an R integer matrix with dimnames."""
    if not np.issubdtype(frame.values.dtype, np.integer):
        raise ValueError("Only integer count tables can be handed to DADA2, got dtype {:}.".format(frame.values.dtype))
    ro = _robjects()
    values = _py2rpy(np.asarray(frame.values, dtype=np.int32))
    dimnames = ro.r['list'](ro.StrVector([str(ix) for ix in frame.index]),
                            ro.StrVector([str(col) for col in frame.columns]))
    return ro.r['matrix'](values, nrow=frame.shape[0], ncol=frame.shape[1], dimnames=dimnames)

def named_vector(values, names):
    """Named R character vector, e.g. file paths named by sample."""
    ro = _robjects()
    vector = ro.StrVector([str(v) for v in values])
    vector.names = ro.StrVector(list(names))
    return vector

def set_seed(seed):
    dada2, base = R_packages()
    base.set_seed(int(seed))

def filter_and_trim(forward, filtered_forward, reverse, filtered_reverse, trunc_len=(240, 160),
                    max_N=0, max_EE=(2, 2), trunc_Q=2, rm_phix=True, compress=True, multithread=True):
    """Quality-filters paired FASTQ files with DADA2's filterAndTrim.

Returns pandas.DataFrame of `reads.in` & `reads.out` indexed by forward input file.
Read pairs are kept only if both mates pass; pairs shorter than `trunc_len`
are discarded.
"""
    ro = _robjects()
    dada2, base = R_packages()
    out = dada2.filterAndTrim(
        ro.StrVector(list(forward)), ro.StrVector(list(filtered_forward)),
        ro.StrVector(list(reverse)), ro.StrVector(list(filtered_reverse)),
        truncLen=ro.IntVector(list(trunc_len)),
        maxN=max_N,
        maxEE=ro.FloatVector(list(max_EE)),
        truncQ=trunc_Q,
        rm_phix=rm_phix,
        compress=compress,
        multithread=multithread)
    return R_matrix_to_frame(out, dtype=np.int64)

def learn_errors(files, multithread=True, nbases=int(1e8), randomize=False, verbose=False):
    """Learns the error rates of each (quality score, substitution) pair from `files`.

Returns the R error-model list (err_out, err_in, trans). learnErrors() alternates
sample inference with error rate estimation until the two agree.
"""
    ro = _robjects()
    dada2, base = R_packages()
    return dada2.learnErrors(ro.StrVector(list(files)), nbases=float(nbases), multithread=multithread,
                             randomize=randomize, verbose=verbose)

def error_rates(error_model):
    """-> (fitted, observed) pandas.DataFrames of error-model transitions.

`fitted` are the learned error frequencies (err_out); `observed` are the raw
transition counts (trans). Rows are the 16 transitions ('A2A', 'A2C', ...),
columns are quality scores."""
    dada2, base = R_packages()
    fitted = R_matrix_to_frame(dada2.getErrors(error_model), dtype=float)
    observed = R_matrix_to_frame(error_model.rx2('trans'), dtype=float)
    for df in (fitted, observed):
        df.columns = df.columns.astype(int)
        df.columns.name = 'Quality Score'
        df.index.name = 'Transition'
    return fitted, observed

def denoise(files, samples, error_model, multithread=True, pool=False, verbose=False):
    """Runs the DADA2 sample inference on every file.

Returns an R list of dada-class objects named by sample. DADA2 returns a bare
object (rather than a list) when given a single file, so a one-element list is
constructed in this case.
"""
    ro = _robjects()
    dada2, base = R_packages()
    named_files = named_vector(files, samples)
    dadas = dada2.dada(named_files, err=error_model, multithread=multithread, pool=pool, verbose=verbose)
    if len(files) == 1:
        dadas = ro.r['list'](dadas)
        dadas.names = ro.StrVector(list(samples))
    return dadas

def merge_pairs(dada_forward, forward, dada_reverse, reverse, samples, min_overlap=12, max_mismatch=0, verbose=False):
    """Merges denoised forward & reverse reads of each sample.

Mates that do not overlap by at least `min_overlap` identical bases (allowing
`max_mismatch` mismatches) are rejected. Returns an R list of data.frames.
"""
    ro = _robjects()
    dada2, base = R_packages()
    mergers = dada2.mergePairs(dada_forward, named_vector(forward, samples),
                               dada_reverse, named_vector(reverse, samples),
                               minOverlap=min_overlap, maxMismatch=max_mismatch, verbose=verbose)
    if len(samples) == 1:
        mergers = ro.r['list'](mergers)
        mergers.names = ro.StrVector(list(samples))
    return mergers

def make_sequence_table(mergers):
    """-> pandas.DataFrame of abundances, indexed by Sample with sequences as columns."""
    dada2, base = R_packages()
    table = R_matrix_to_frame(dada2.makeSequenceTable(mergers), dtype=np.int64)
    table.index.name = 'Sample'
    return table

def remove_chimeras(table, method='consensus', multithread=True, verbose=False):
    """Removes bimeric sequences (de novo) from the sequence table.

A bimera is a sequence that can be exactly reconstructed by combining a left
segment and a right segment from two more abundant sequences in the table.
"""
    dada2, base = R_packages()
    nochim = dada2.removeBimeraDenovo(frame_to_R_matrix(table), method=method, multithread=multithread, verbose=verbose)
    out = R_matrix_to_frame(nochim, dtype=np.int64)
    out.index.name = table.index.name
    return out

def _taxonomy_frame(taxa):
    dada2, base = R_packages()
    frame = R_matrix_to_frame(taxa, dtype=object)
    missing = R_matrix_to_frame(base.is_na(taxa), dtype=bool)
    frame = frame.mask(missing.values)
    frame.index.name = 'sequence'
    return frame

def assign_taxonomy(sequences, reference, multithread=True, min_boot=50, try_RC=False, verbose=False):
    """Naive Bayesian classification of `sequences` against a training FASTA, e.g. SILVA.

Returns pandas.DataFrame indexed by sequence with a column per rank. Ranks
with bootstrap confidence below `min_boot` are left unassigned (NaN).
"""
    ro = _robjects()
    dada2, base = R_packages()
    taxa = dada2.assignTaxonomy(ro.StrVector(list(sequences)), str(reference), multithread=multithread,
                                minBoot=min_boot, tryRC=try_RC, verbose=verbose)
    return _taxonomy_frame(taxa)

def add_species(taxonomy, reference, verbose=False):
    """Exact-match species assignment, appended as a `Species` column."""
    dada2, base = R_packages()
    # None becomes NA_character_; the index becomes the row names
    frame = _py2rpy(taxonomy.astype(object).where(taxonomy.notnull(), None))
    taxa = base.as_matrix(frame)
    return _taxonomy_frame(dada2.addSpecies(taxa, str(reference), verbose=verbose))

def _total_uniques(obj):
    dada2, base = R_packages()
    return int(sum(dada2.getUniques(obj)))

def denoised_reads(dadas):
    """Number of reads in each sample after denoising."""
    names = _names(dadas.names)
    return pd.Series([_total_uniques(d) for d in dadas], index=names, dtype=np.int64)

def merged_reads(mergers):
    """Number of read pairs in each sample successfully merged."""
    names = _names(mergers.names)
    return pd.Series([_total_uniques(m) for m in mergers], index=names, dtype=np.int64)
