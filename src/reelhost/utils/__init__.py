import os
import re
from importlib import metadata
from pathlib import Path

root_dir = Path(__file__).resolve().parents[3]

data_dir_path = Path(os.environ.get("REELHOST_DATA_DIR", root_dir / "data"))


def get_version() -> str:
    pyproject = root_dir / "pyproject.toml"
    if not pyproject.exists():
        return metadata.version("reelhost")

    with open(pyproject) as file:
        pyproject_toml = file.read()

    match = re.search(r'version = "(.+)"', pyproject_toml)
    if match:
        version = match.group(1)
    else:
        raise ValueError("Could not find version in pyproject.toml")
    return version
