"""Document acquisition from the BUDSTANDART portal.

Drives an externally started Chrome (remote debugging) to log in, list and
describe documents, and save them as PDF or HTML.
"""

from budstandart.acquire.adapters import BudstandartAdapter, PortalAdapter
from budstandart.acquire.pipeline import AcquisitionOrchestrator

__all__ = [
    "AcquisitionOrchestrator",
    "BudstandartAdapter",
    "PortalAdapter",
]
