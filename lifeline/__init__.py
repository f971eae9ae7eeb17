"""LifeLine blood donation platform API."""

__version__ = '0.1.0'

# Load the app before any submodule so route modules always import in one order
from lifeline.app import app  # noqa: E402,F401
