"""JSON output helpers for CLI commands."""

import json
import sys
from dataclasses import asdict
from typing import Any, Dict, List, NoReturn, Optional

import click

from chatreview.core.responses import ToolResponse, error_response, success_response


def _print(response: ToolResponse) -> None:
    click.echo(json.dumps(asdict(response), indent=2, ensure_ascii=False, default=str))


def emit_success(data: Dict[str, Any], *, warnings: Optional[List[str]] = None) -> None:
    """Print a success envelope wrapping ``data``."""
    _print(success_response(data, warnings=warnings))


def emit_error(
    message: str,
    *,
    code: str = "INTERNAL_ERROR",
    error_type: str = "internal",
    remediation: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    exit_code: int = 1,
) -> NoReturn:
    """Print an error envelope and exit non-zero."""
    _print(
        error_response(
            message,
            error_code=code,
            error_type=error_type,
            remediation=remediation,
            details=details,
        )
    )
    sys.exit(exit_code)


def emit_response(response: ToolResponse) -> None:
    """Print an already-built envelope; exit 1 if it reports failure."""
    _print(response)
    if not response.success:
        sys.exit(1)
