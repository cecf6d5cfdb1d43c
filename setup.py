#!/usr/bin/env python3
from setuptools import setup

setup(  name='asv_seq',
        description='Amplicon Sequence Variant (ASV) inference from paired-end reads with DADA2',
        license='MIT',
        classifiers=[
            'Development Status :: 2 - Pre-Alpha',
            'Intended Audience :: Science/Research',
            'Natural Language :: English',
            'Operating System :: POSIX',
            'Topic :: Scientific/Engineering :: Bio-Informatics'],
        packages=['asv_seq'],
        install_requires=[
            'numpy',
            'pandas',
            'matplotlib',
            'seaborn',
            'biopython',
            'progressbar2',
            'rpy2'],
        extras_require={
            'test': ['pytest']},
        scripts=[
            'bin/filter_reads.py',
            'bin/asv_pipeline.py'],
        python_requires='>=3.8',
        version='0.1',
        )
