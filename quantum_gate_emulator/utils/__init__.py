"""
Utilities: error handling, configuration, performance instrumentation and I/O.
"""
