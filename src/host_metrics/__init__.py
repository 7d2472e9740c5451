"""host_metrics – collect typed CPU, memory and load metrics from local or remote hosts."""

__version__ = "0.1.0"
