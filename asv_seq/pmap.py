"""Parallel (multi-process) map functions for python.

Uses multiprocessing.Pool. There are two map functions:

1) pmap(function, iterable) -> rapid fork-based multi-process map function.

2) large_iter_pmap(function, iterable) -> chunked version with a status bar,
    intended for many short jobs (e.g. counting reads in every FASTQ file of a
    sequencing run).

CPUs is also the default thread count handed to DADA2's `multithread` option.
"""
import multiprocessing
from warnings import warn
from pickle import PicklingError
from progressbar import ProgressBar, Bar, Percentage
from time import sleep

CPUs = multiprocessing.cpu_count()
CHUNKS = 50*CPUs

def pmap(func, Iter, processes=CPUs):
    with multiprocessing.Pool(processes=processes) as P:
        return P.map(func, Iter)

def large_iter_pmap(func, Iter, processes=CPUs, status_bar=True, wait_interval=1):
    Iter = list(Iter)
    try:
        with multiprocessing.Pool(processes=processes) as P:
            size = max(1, int(round(len(Iter)/CHUNKS)))
            rs = P.map_async(func, Iter, chunksize=size)
            if status_bar:
                maxval = max(1, -(-len(Iter)//size))
                bar = ProgressBar(max_value=maxval, widgets=[Bar('=', '[', ']'), ' ', Percentage()])
                while not rs.ready():
                    sleep(wait_interval)
                    bar.update(maxval - rs._number_left)
                bar.finish()
            return rs.get()

    except PicklingError:
        warn("Lambda functions cannot be Pickled for Parallelization. Using single Process.", RuntimeWarning)
        return list(map(func, Iter))
