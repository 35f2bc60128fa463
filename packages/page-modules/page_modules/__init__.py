"""Page Modules — page/module assignment for a modular webmail application.

Independently loaded module sets (an IMAP folder manager, an authentication
provider, ...) assign ordered handler (request processing) and output
(rendering) modules to pages without knowing each other's ordering needs.

Layers (bottom to top):
    1. Registry    — page tables, marker resolution, retry and broadcast queues
    2. Module sets — ModuleSet interface, registration context, discovery
    3. Dispatch    — which modules a request runs, by page and login state
    4. CLI         — build, inspect and snapshot the page tables
"""

__version__ = "0.1.0"
__author__ = "Page Modules Contributors"
__license__ = "Apache-2.0"

from page_modules.module_sets.setup import RegistrationContext
from page_modules.registry.models import Entry, Placement
from page_modules.registry.registry import ModuleRegistry

__all__ = [
    "__version__",
    "Entry",
    "ModuleRegistry",
    "Placement",
    "RegistrationContext",
]
