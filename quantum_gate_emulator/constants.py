"""
Global constants for the Quantum Gate Emulator.
"""

# Backend constants
BACKENDS = ['auto', 'cuda', 'host']
DISPATCH_ORDERS = ['sequential', 'reversed', 'shuffled']

# Amplitude precision
PRECISIONS = {
    'single': 'float32',
    'double': 'float64'
}
DEFAULT_PRECISION = 'double'

# Input layout: a b c d v0 ... v(N-1) t
GATE_TOKEN_COUNT = 4
TARGET_TOKEN_COUNT = 1
MIN_AMPLITUDES = 2

# Output constants
DEFAULT_OUTPUT_DECIMALS = 3

# Dense verification is O(N^2) in memory and time
MAX_VERIFY_QUBITS = 12

# Floating-point tolerance for verification and matrix inversion
DEFAULT_TOLERANCE = 1e-9

# Process exit statuses
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CODES = {
    'INPUT': 3,
    'PRECONDITION': 4,
    'ALLOCATION': 5,
    'TRANSFER': 6,
    'DISPATCH': 7,
    'RELEASE': 8,
    'CONFIGURATION': 9,
    'OUTPUT': 10,
}
