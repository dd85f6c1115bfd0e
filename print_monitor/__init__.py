from print_monitor.errors import ConfigurationError, PrintError, PrintMonitorError
from print_monitor.rewriter import rewrite

__version__ = "0.1.0"

__all__ = ["ConfigurationError", "PrintError", "PrintMonitorError", "rewrite", "__version__"]
