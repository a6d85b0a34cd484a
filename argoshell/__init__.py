__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'argoshell'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.1.0"

from .binder import *
from .cancellation import *
from .commands import *
from .conversions import *
from .dispatcher import *
from .faults import *
from .injection import *
from .parameters import *
from .ranking import *
from .shell import *
from .stack import *
from .tokenizer import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 1, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the binder
__all__ += binder.__all__  # type: ignore[attr-defined]
# Load the exposed API of the cancellation
__all__ += cancellation.__all__  # type: ignore[attr-defined]
# Load the exposed API of the commands
__all__ += commands.__all__  # type: ignore[attr-defined]
# Load the exposed API of the conversions
__all__ += conversions.__all__  # type: ignore[attr-defined]
# Load the exposed API of the dispatcher
__all__ += dispatcher.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the injection
__all__ += injection.__all__  # type: ignore[attr-defined]
# Load the exposed API of the parameters
__all__ += parameters.__all__  # type: ignore[attr-defined]
# Load the exposed API of the ranking
__all__ += ranking.__all__  # type: ignore[attr-defined]
# Load the exposed API of the shell
__all__ += shell.__all__  # type: ignore[attr-defined]
# Load the exposed API of the stack
__all__ += stack.__all__  # type: ignore[attr-defined]
# Load the exposed API of the tokenizer
__all__ += tokenizer.__all__  # type: ignore[attr-defined]
