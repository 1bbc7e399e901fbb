"""Environment helpers."""
import os
from pathlib import Path

# backend/ and the repository root, in lookup order
ENV_DIRS = (Path(__file__).parent.parent.parent, Path(__file__).parent.parent.parent.parent)


def load_env(env_path: Path | str | None = None) -> Path | None:
    """Load a .env file into the environment without overriding existing values.

    With no path, the first .env found in ``ENV_DIRS`` is used. Returns the
    file that was read, or None.
    """
    if env_path is None:
        candidates = [d / ".env" for d in ENV_DIRS]
    else:
        candidates = [Path(env_path)]
    for path in candidates:
        if not path.exists():
            continue
        for line in path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            if line.startswith("export "):
                line = line[len("export "):]
            key, val = line.split("=", 1)
            os.environ.setdefault(key.strip(), val.strip().strip('"').strip("'"))
        return path
    return None


def env_str(name: str, default: str | None = None) -> str | None:
    """Read a string variable; blank values count as unset."""
    value = os.getenv(name, "").strip()
    return value or default


def env_int(name: str, default: int) -> int:
    value = env_str(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def env_float(name: str, default: float | None = None) -> float | None:
    value = env_str(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None
