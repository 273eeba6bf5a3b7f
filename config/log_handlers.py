from logging.handlers import RotatingFileHandler
from pathlib import Path


class LazyRotatingFileHandler(RotatingFileHandler):
    """RotatingFileHandler that creates its directory on the first write."""

    def __init__(self, filename, **kwargs):
        kwargs.setdefault("delay", True)
        super().__init__(filename, **kwargs)

    def _open(self):
        Path(self.baseFilename).parent.mkdir(parents=True, exist_ok=True)
        return super()._open()
