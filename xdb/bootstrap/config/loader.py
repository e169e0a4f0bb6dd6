import os
from pathlib import Path

CONFIG_ENV = "XDBCONFIG"

DEFAULT_FILENAME = "xdb.yaml"


def get_configfile() -> Path:
    """
    Resolve the YAML configuration file.

    Priority: XDBCONFIG environment variable > 'xdb.yaml' in the current
    working directory. The default file is optional, but a file named
    explicitly through XDBCONFIG must exist.
    """
    raw = os.getenv(CONFIG_ENV)

    if raw is None:
        return Path.cwd() / DEFAULT_FILENAME

    file = Path(raw).expanduser()
    if not file.is_file():
        raise FileNotFoundError(
            f"[config] Configuration file not found: '{file}'.\n"
            f"  - Fix or unset the {CONFIG_ENV} environment variable\n"
            f"  - Or place a '{DEFAULT_FILENAME}' file in the current working directory."
        )

    return file
