"""Platform CLI (sfdx) executor."""

from sandboxctl.adapters.sfdx.cli import SfdxCliExecutor, parse_sfdx_command

__all__ = ["SfdxCliExecutor", "parse_sfdx_command"]
