import os
from pathlib import Path

APP_NAME = "Character Manager"


def _user_data_root() -> Path:
    app_data = os.getenv("LOCALAPPDATA") or os.getenv("APPDATA") or os.getenv("XDG_DATA_HOME")
    return Path(app_data or os.path.expanduser("~")) / APP_NAME


def get_writable_dir(sub_dir: str = "logs") -> Path:
    """Get a writable directory path, preferring the backend root and falling back to user data."""
    # Resolve relative to the backend root (parent of 'utils')
    target_dir = Path(__file__).parent.parent / sub_dir

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        # Test write access
        test_file = target_dir / ".write_test"
        test_file.touch()
        test_file.unlink()
        return target_dir
    except OSError:
        target_dir = _user_data_root() / sub_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        return target_dir
