from setuptools import setup, find_packages

setup(
    name="quantum_gate_emulator",
    version="0.1.0",
    packages=find_packages(include=["quantum_gate_emulator", "quantum_gate_emulator.*"]),
    install_requires=[
        "numpy>=1.20.0",
        "psutil>=5.8.0",
        "pyyaml>=5.4.0",
    ],
    extras_require={
        "gpu": ["cupy>=10.0.0"],
        "test": ["pytest>=7.0.0", "qiskit>=0.45.0"],
    },
    entry_points={
        "console_scripts": [
            "quantum-gate-emulator=quantum_gate_emulator.main:main",
        ],
    },
    author="DoubleGate",
    author_email="parobek@gmail.com",
    description="Accelerated single-qubit gate application on real state vectors",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    url="https://github.com/doublegate/quantum_gate_emulator",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Topic :: Scientific/Engineering :: Physics",
    ],
    python_requires=">=3.9",
)
