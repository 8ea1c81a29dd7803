"""
Ignition CLI.

The `ign` command-line interface boots and inspects service graphs
described by YAML or JSON configuration files.

Usage:
    ign run services.yaml
    ign validate services.yaml
    ign graph services.yaml
"""

__version__ = "1.0.0"
__cli_name__ = "ign"


def main():
    """Wrapper to avoid eager import of __main__ which causes warnings with -m."""
    from .__main__ import main as _main
    return _main()
