"""
Main entry point for the Quantum Gate Emulator.

This module provides the main entry point for the Quantum Gate Emulator,
including argument parsing, configuration, and execution flow control.
"""

import argparse
import logging
import sys
from typing import List, Optional

from quantum_gate_emulator import __version__
from quantum_gate_emulator.analysis.gate_verifier import GateVerifier
from quantum_gate_emulator.backends.backend_factory import BackendFactory
from quantum_gate_emulator.common.orchestrator import GateOrchestrator
from quantum_gate_emulator.constants import BACKENDS, DISPATCH_ORDERS, PRECISIONS, EXIT_SUCCESS, EXIT_FAILURE
from quantum_gate_emulator.utils.config_manager import ConfigManager, LOG_LEVELS
from quantum_gate_emulator.utils.data_importer import DataImporter
from quantum_gate_emulator.utils.error_handler import (
    error_handler, fatal_step, ErrorCategory, ConfigurationError, GateEmulatorError, OutputUnavailable
)
from quantum_gate_emulator.utils.performance_optimizer import PerformanceOptimizer, memory_stats
from quantum_gate_emulator.utils.result_emitter import emit_result

logger = logging.getLogger("QuantumGateEmulator")


def build_parser() -> argparse.ArgumentParser:
    """
    Create the command-line argument parser.

    Returns:
        Argument parser
    """
    parser = argparse.ArgumentParser(
        prog="quantum-gate-emulator",
        description="Apply a single-qubit gate to one target bit of a real state vector",
        epilog="Input format: a b c d v0 v1 ... v(N-1) t  (whitespace separated)")

    parser.add_argument('input', help="Input file ('-' for standard input)")
    parser.add_argument('--config', type=str, help='Path to JSON or YAML configuration file')
    parser.add_argument('--backend', type=str, choices=BACKENDS, help='Accelerator backend')
    parser.add_argument('--device', type=int, help='CUDA device ordinal')
    parser.add_argument('--group-size', type=int, help='Units of work per dispatch group')
    parser.add_argument('--precision', type=str, choices=list(PRECISIONS), help='Amplitude precision')
    parser.add_argument('--lanes', type=int, help='Host backend worker lanes')
    parser.add_argument('--dispatch-order', type=str, choices=DISPATCH_ORDERS,
                        help='Host backend group dispatch order')
    parser.add_argument('--output', '-o', type=str, help='Write the output vector to a file instead of stdout')
    parser.add_argument('--decimals', type=int, help='Decimal places in the output')
    parser.add_argument('--no-validate', action='store_true', help='Skip the target bit range check')
    parser.add_argument('--verify', action='store_true', help='Cross-check the result against the dense operator')
    parser.add_argument('--stats', action='store_true', help='Log step timings and memory usage')
    parser.add_argument('--log-level', type=str, choices=LOG_LEVELS, help='Logging level')
    parser.add_argument('--log-file', type=str, help='Also write logs to this file')
    parser.add_argument('--error-report', type=str, help='Write a JSON report of recorded errors to this file')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")

    return parser


def build_config(args: argparse.Namespace) -> ConfigManager:
    """
    Load the configuration file and apply command-line overrides.

    Raises:
        ConfigurationError: If the file or an override is invalid
    """
    config = ConfigManager(args.config)

    overrides = {
        "backend": args.backend,
        "device.id": args.device,
        "group_size": args.group_size,
        "precision": args.precision,
        "performance.lanes": args.lanes,
        "performance.dispatch_order": args.dispatch_order,
        "output.decimals": args.decimals,
        "logging.level": "DEBUG" if args.debug else args.log_level,
        "logging.file": args.log_file,
    }
    for key, value in overrides.items():
        if value is not None:
            config.set(key, value)
    if args.no_validate:
        config.set("validate_inputs", False)

    if config.modified_keys:
        logger.debug(f"Configuration overrides: {', '.join(sorted(config.modified_keys))}")

    return config


def configure_logging(config: ConfigManager) -> None:
    level = getattr(logging, config.get("logging.level", "INFO"))
    error_handler.set_log_levels(level)
    error_handler.set_log_file(config.get("logging.file"))


def run(args: argparse.Namespace) -> int:
    """
    Execute one gate application.

    Returns:
        Process exit status
    """
    config = build_config(args)
    configure_logging(config)

    job = DataImporter(precision=config.get("precision")).import_file(args.input)

    with fatal_step("initialize backend", ConfigurationError):
        backend = BackendFactory.create_backend(config.get("backend"), config.as_dict())

    optimizer = PerformanceOptimizer(gpu_enabled=backend.name == "cuda",
                                     device_id=config.get("device.id", 0))
    orchestrator = GateOrchestrator(
        backend,
        group_size=config.get("group_size"),
        validate_inputs=config.get("validate_inputs", True),
        optimizer=optimizer
    )

    verifier = GateVerifier()
    if args.verify:
        verifier.check_supported(job)

    output = orchestrator.run(job)

    if args.verify:
        report = verifier.verify(job, output)
        if not report["passed"]:
            logger.error(f"Output deviates from dense reference by {report['max_error']:.3e}")
            return EXIT_FAILURE

    with fatal_step("emit output vector", OutputUnavailable, {"path": args.output or "<stdout>"}):
        emit_result(output, output_path=args.output, decimals=config.get("output.decimals"))

    if args.stats:
        metrics = optimizer.get_performance_metrics()
        for step, seconds in metrics["step_times"].items():
            logger.info(f"Step {step}: {seconds * 1000:.3f} ms")
        logger.info(f"Backend: {backend.describe()}")
        logger.info(f"Memory: {memory_stats()}")

    return EXIT_SUCCESS


def write_error_report(path: str) -> None:
    """Export the recorded errors; a failed export is logged and does not change the exit status."""
    try:
        error_handler.export_error_report(path)
    except OSError as e:
        error_handler.log_exception(e, message=f"Cannot write error report {path}: {e}",
                                    category=ErrorCategory.OUTPUT)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function to parse arguments and run the program.

    Args:
        argv: Command-line arguments (None for sys.argv)

    Returns:
        Process exit status: 0 on success, a category-specific status otherwise
    """
    args = build_parser().parse_args(argv)
    if args.error_report:
        error_handler.clear_error_history()

    try:
        return run(args)
    except GateEmulatorError as e:
        error_handler.log_exception(e, message=f"Fatal: {e}")
        return e.exit_code
    finally:
        if args.error_report:
            write_error_report(args.error_report)


if __name__ == "__main__":
    sys.exit(main())
