"""
Configuration data for supported accelerator backends.
"""

BACKEND_CONFIGS = {
    "cuda": {
        "description": "CUDA device via CuPy runtime memory and a raw kernel",
        "default_group_size": 256,  # threads per block
        "max_group_size": 1024,     # CUDA block limit
        "requires_gpu": True,
        "supports_lanes": False,
    },
    "host": {
        "description": "Host-emulated device memory with grouped dispatch over worker lanes",
        "default_group_size": 4096,
        "max_group_size": 1 << 24,
        "requires_gpu": False,
        "supports_lanes": True,
    },
}
