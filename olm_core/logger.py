import logging, json, sys, time, os

ROOT_LOGGER = "olm_core"


class JsonFormatter(logging.Formatter):
    """One JSON object per line: ts, level, name, msg."""

    converter = time.gmtime  # Use UTC timestamps

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%SZ")

    def format(self, record: logging.LogRecord) -> str:
        doc = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            doc["exc"] = self.formatException(record.exc_info)
        return json.dumps(doc, ensure_ascii=False)


def _add_file_handler(root: logging.Logger, to_file: str) -> None:
    path = os.path.abspath(to_file)
    if any(getattr(h, "baseFilename", None) == path for h in root.handlers):
        return
    # Ensure the directory exists before writing
    os.makedirs(os.path.dirname(path), exist_ok=True)
    file_handler = logging.FileHandler(path)
    file_handler.setFormatter(JsonFormatter())
    root.addHandler(file_handler)


def get_logger(name=ROOT_LOGGER, level=None, to_file=None):
    """
    Unified structured logger for all olm_core components.

    Handlers are attached once to the package root logger; module loggers
    ("olm_core.account", ...) propagate to it. The root level and optional
    file come from OLM_LOG_LEVEL / OLM_LOG_FILE on first use.
    """
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        from .config import load_log_settings

        env_level, env_file = load_log_settings()
        root.setLevel(env_level)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        root.addHandler(handler)
        if env_file:
            _add_file_handler(root, env_file)

    if to_file:
        _add_file_handler(root, to_file)

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger
