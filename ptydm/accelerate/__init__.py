"""
Array kernels of the difference-map iteration.

The kernels in :py:mod:`ptydm.accelerate.base` are written against the
numpy API and run unchanged on cupy arrays.
"""
