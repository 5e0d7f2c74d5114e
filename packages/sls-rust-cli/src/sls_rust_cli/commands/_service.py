"""Descriptor loading shared by sls-rust commands."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError as PydanticValidationError

from sls_rust_cli.errors import (
    handle_file_not_found,
    handle_permission_error,
    handle_sls_rust_error,
    handle_validation_error,
    handle_yaml_error,
)
from sls_rust_core.errors import SlsRustError
from sls_rust_core.schemas import ServiceDefinition


def load_service(path: Path) -> ServiceDefinition:
    """Load serverless.yml, turning every failure into a CLIError.

    Args:
        path: Path to the descriptor.

    Returns:
        Validated ServiceDefinition.

    Raises:
        CLIError: If the file is missing, unreadable or invalid.
    """
    try:
        return ServiceDefinition.from_yaml(path)
    except FileNotFoundError:
        handle_file_not_found(str(path))
    except PermissionError:
        handle_permission_error(str(path), "read")
    except yaml.YAMLError as e:
        handle_yaml_error(e, str(path))
    except PydanticValidationError as e:
        handle_validation_error(e, str(path))
    except SlsRustError as e:
        handle_sls_rust_error(e)
