import numpy as np

FLOAT_TYPE = np.float64
COMPLEX_TYPE = np.complex128
