"""Binding-layer runtime modules."""

from glbridge.runtime.batch import MAX_BATCH, generate_handles, validate_batch_size
from glbridge.runtime.bootstrap import REQUIRED_EXTENSIONS, BootstrapReport, run_capability_bootstrap
from glbridge.runtime.config import BridgeConfig, load_bridge_config
from glbridge.runtime.context import GLContext
from glbridge.runtime.error_translation import ErrorChecker, translate_error_code
from glbridge.runtime.info_log import retrieve_info_log
from glbridge.runtime.logging import configure_bridge_logging, setup_bridge_logging, shutdown_bridge_logging
from glbridge.runtime.marshal import convert_argument, marshal_arguments
from glbridge.runtime.pointers import address_of, decode_address, extract_channel
from glbridge.runtime.scratch import ScratchArena

__all__ = [
    "BootstrapReport",
    "BridgeConfig",
    "ErrorChecker",
    "GLContext",
    "MAX_BATCH",
    "REQUIRED_EXTENSIONS",
    "ScratchArena",
    "address_of",
    "configure_bridge_logging",
    "convert_argument",
    "decode_address",
    "extract_channel",
    "generate_handles",
    "load_bridge_config",
    "marshal_arguments",
    "retrieve_info_log",
    "run_capability_bootstrap",
    "setup_bridge_logging",
    "shutdown_bridge_logging",
    "translate_error_code",
    "validate_batch_size",
]
