#!/usr/bin/env python3
"""
Tests for the DADA2 interface. The R packages are replaced with mocks, so these
tests exercise argument handling & the conversion of R objects into pandas.
"""

import numpy as np
import pandas as pd
import pytest
from unittest.mock import MagicMock, patch
from asv_seq import dada


class FakeMatrix(list):
    """Column-major stand-in for an rpy2 Matrix."""

    def __init__(self, rows, rownames=None, colnames=None):
        rows = [list(row) for row in rows]
        super().__init__(value for col in zip(*rows) for value in col)
        self.nrow = len(rows)
        self.ncol = len(rows[0]) if rows else 0
        self.rownames = rownames
        self.colnames = colnames


class FakeList(list):
    def __init__(self, items, names):
        super().__init__(items)
        self.names = names


@pytest.fixture
def R():
    dada2, base, ro = MagicMock(name='dada2'), MagicMock(name='base'), MagicMock(name='robjects')
    # rpy2 hands character matrices back flat & column-major, like list(FakeMatrix)
    with patch('asv_seq.dada.R_packages', return_value=(dada2, base)), \
         patch('asv_seq.dada._robjects', return_value=ro), \
         patch('asv_seq.dada._rpy2py', side_effect=list), \
         patch('asv_seq.dada._py2rpy') as to_R:
        ro.py2rpy = to_R
        yield dada2, base, ro


def test_R_matrix_to_frame_is_column_major(R):
    m = FakeMatrix([[1, 2, 3], [4, 5, 6]], rownames=['s1', 's2'], colnames=['AC', 'GT', 'TT'])
    assert list(m) == [1, 4, 2, 5, 3, 6]
    df = dada.R_matrix_to_frame(m, dtype=np.int64)
    assert df.values.tolist() == [[1, 2, 3], [4, 5, 6]]
    assert list(df.index) == ['s1', 's2']
    assert list(df.columns) == ['AC', 'GT', 'TT']


def test_R_matrix_to_frame_without_dimnames(R):
    df = dada.R_matrix_to_frame(FakeMatrix([[1.5], [2.5]]))
    assert df.shape == (2, 1)
    assert list(df.index) == [0, 1]


def test_frame_to_R_matrix_requires_integers():
    with pytest.raises(ValueError):
        dada.frame_to_R_matrix(pd.DataFrame([[0.5]], index=['s1'], columns=['ACGT']))


def test_frame_to_R_matrix_column_major(R):
    dada2, base, ro = R
    df = pd.DataFrame([[1, 2], [3, 4]], index=['s1', 's2'], columns=['AAA', 'CCC'])
    dada.frame_to_R_matrix(df)
    values = ro.py2rpy.call_args[0][0]
    assert values.dtype == np.int32 and values.tolist() == [[1, 2], [3, 4]]
    args, kwargs = ro.r['matrix'].call_args
    assert args[0] is ro.py2rpy.return_value
    assert kwargs['nrow'] == 2 and kwargs['ncol'] == 2


def test_set_seed(R):
    dada2, base, ro = R
    dada.set_seed(100)
    base.set_seed.assert_called_once_with(100)


def test_filter_and_trim(R):
    dada2, base, ro = R
    dada2.filterAndTrim.return_value = FakeMatrix([[100, 80], [50, 0]], rownames=['a_R1.fastq.gz', 'b_R1.fastq.gz'],
                                                  colnames=['reads.in', 'reads.out'])
    out = dada.filter_and_trim(['a_R1.fastq.gz', 'b_R1.fastq.gz'], ['a_F'], ['a_R2.fastq.gz'], ['a_R'], multithread=4)
    assert out['reads.out'].tolist() == [80, 0]
    kwargs = dada2.filterAndTrim.call_args[1]
    assert kwargs['multithread'] == 4 and kwargs['maxN'] == 0 and kwargs['rm_phix'] is True
    ro.IntVector.assert_any_call([240, 160])


def test_learn_errors(R):
    dada2, base, ro = R
    model = dada.learn_errors(['a_F.fastq.gz'], multithread=False, nbases=1e6)
    assert model is dada2.learnErrors.return_value
    assert dada2.learnErrors.call_args[1]['nbases'] == 1e6


def test_error_rates(R):
    dada2, base, ro = R
    transitions = ['A2A', 'A2C']
    dada2.getErrors.return_value = FakeMatrix([[0.99, 0.999], [0.003, 0.0003]], transitions, ['20', '30'])
    model = MagicMock()
    model.rx2.return_value = FakeMatrix([[990, 999], [3, 1]], transitions, ['20', '30'])
    fitted, observed = dada.error_rates(model)
    model.rx2.assert_called_once_with('trans')
    assert list(fitted.columns) == [20, 30]
    assert fitted.index.name == 'Transition'
    assert observed.loc['A2C', 30] == 1.0


def test_denoise_single_sample_is_listed(R):
    dada2, base, ro = R
    dadas = dada.denoise(['a_F.fastq.gz'], ['a'], MagicMock())
    ro.r['list'].assert_called_once_with(dada2.dada.return_value)
    assert dadas is ro.r['list'].return_value


def test_denoise_names_files_by_sample(R):
    dada2, base, ro = R
    dadas = dada.denoise(['a_F.fastq.gz', 'b_F.fastq.gz'], ['a', 'b'], MagicMock(), pool=True)
    assert dadas is dada2.dada.return_value
    ro.StrVector.assert_any_call(['a', 'b'])
    assert dada2.dada.call_args[1]['pool'] is True


def test_merge_pairs_arguments(R):
    dada2, base, ro = R
    dada.merge_pairs('dF', ['a_F', 'b_F'], 'dR', ['a_R', 'b_R'], ['a', 'b'], min_overlap=20, max_mismatch=1)
    args, kwargs = dada2.mergePairs.call_args
    assert args[0] == 'dF' and args[2] == 'dR'
    assert kwargs['minOverlap'] == 20 and kwargs['maxMismatch'] == 1


def test_make_sequence_table(R):
    dada2, base, ro = R
    dada2.makeSequenceTable.return_value = FakeMatrix([[3, 0], [1, 2]], ['a', 'b'], ['ACGT', 'ACGA'])
    table = dada.make_sequence_table(MagicMock())
    assert table.index.name == 'Sample'
    assert table.loc['b', 'ACGA'] == 2
    assert table.dtypes.eq(np.int64).all()


def test_remove_chimeras(R):
    dada2, base, ro = R
    table = pd.DataFrame([[3, 1], [1, 2]], index=pd.Index(['a', 'b'], name='Sample'), columns=['ACGT', 'ACGA'])
    dada2.removeBimeraDenovo.return_value = FakeMatrix([[3], [1]], ['a', 'b'], ['ACGT'])
    with patch('asv_seq.dada.frame_to_R_matrix') as to_R:
        out = dada.remove_chimeras(table, method='pooled', multithread=2)
    to_R.assert_called_once_with(table)
    assert dada2.removeBimeraDenovo.call_args[1]['method'] == 'pooled'
    assert list(out.columns) == ['ACGT']
    assert out.index.name == 'Sample'


def test_assign_taxonomy_masks_NA(R):
    dada2, base, ro = R
    seqs = ['ACGT', 'ACGA']
    dada2.assignTaxonomy.return_value = FakeMatrix([['Bacteria', 'Bacteroidota'], ['Bacteria', 'NA']], seqs, ['Kingdom', 'Phylum'])
    base.is_na.return_value = FakeMatrix([[False, False], [False, True]], seqs, ['Kingdom', 'Phylum'])
    taxa = dada.assign_taxonomy(seqs, 'silva_train_set.fa.gz', min_boot=80)
    assert taxa.loc['ACGT', 'Phylum'] == 'Bacteroidota'
    assert pd.isnull(taxa.loc['ACGA', 'Phylum'])
    assert taxa.index.name == 'sequence'
    assert dada2.assignTaxonomy.call_args[1]['minBoot'] == 80


def test_add_species(R):
    dada2, base, ro = R
    taxa = pd.DataFrame({'Kingdom': ['Bacteria'], 'Genus': [np.nan]}, index=['ACGT'])
    dada2.addSpecies.return_value = FakeMatrix([['Bacteria', 'NA', 'NA']], ['ACGT'], ['Kingdom', 'Genus', 'Species'])
    base.is_na.return_value = FakeMatrix([[False, True, True]], ['ACGT'], ['Kingdom', 'Genus', 'Species'])
    out = dada.add_species(taxa, 'silva_species.fa.gz')
    frame = ro.py2rpy.call_args[0][0]
    assert frame.loc['ACGT', 'Kingdom'] == 'Bacteria' and frame.loc['ACGT', 'Genus'] is None
    base.as_matrix.assert_called_once_with(ro.py2rpy.return_value)
    assert dada2.addSpecies.call_args[0][0] is base.as_matrix.return_value
    assert list(out.columns) == ['Kingdom', 'Genus', 'Species']
    assert out.isnull().sum().sum() == 2


def test_denoised_and_merged_reads(R):
    dada2, base, ro = R
    dada2.getUniques.side_effect = lambda obj: obj
    dadas = FakeList([[5, 3], [10]], names=['a', 'b'])
    reads = dada.denoised_reads(dadas)
    assert reads.to_dict() == {'a': 8, 'b': 10}
    assert dada.merged_reads(FakeList([[4]], names=['a'])).to_dict() == {'a': 4}
