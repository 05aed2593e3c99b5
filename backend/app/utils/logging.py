import logging
import sys

from app.config import settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_root = logging.getLogger("kioskpos")
if not _root.handlers:
    _h = logging.StreamHandler(sys.stdout)
    _h.setFormatter(logging.Formatter(_FORMAT))
    _root.addHandler(_h)
_root.setLevel(settings.LOG_LEVEL.upper())


def get_logger(name: str) -> logging.Logger:
    """
    Return a child of the "kioskpos" logger so every module shares the one
    stdout handler configured above.
    """
    if name.startswith("app."):
        name = name[len("app."):]
    return _root.getChild(name)
