"""MessagePack file storage for JSON-compatible records."""
import os
import msgpack
from loguru import logger
from pathlib import Path
from typing import Any, Union


class SafeCache:
    """Reads and writes plain data as .msgpack files (no pickle)."""

    SUFFIX = '.msgpack'

    @staticmethod
    def path_for(filepath: Union[str, Path]) -> Path:
        filepath = Path(filepath)
        return filepath.with_name(filepath.name + SafeCache.SUFFIX)

    @staticmethod
    def save(filepath: Union[str, Path], data: Any) -> None:
        """Save data atomically: write a temp file, then replace."""
        msgpack_file = SafeCache.path_for(filepath)
        msgpack_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = msgpack_file.with_name(msgpack_file.name + '.tmp')
        with open(tmp_file, 'wb') as f:
            f.write(msgpack.packb(data, use_bin_type=True))
        os.replace(tmp_file, msgpack_file)
        logger.debug(f"Saved {msgpack_file}")

    @staticmethod
    def load(filepath: Union[str, Path]) -> Any:
        """Load data; raises FileNotFoundError or a msgpack error."""
        msgpack_file = SafeCache.path_for(filepath)
        if not msgpack_file.exists():
            raise FileNotFoundError(f"Cache file not found: {msgpack_file}")
        with open(msgpack_file, 'rb') as f:
            return msgpack.unpackb(f.read(), raw=False)

    @staticmethod
    def exists(filepath: Union[str, Path]) -> bool:
        return SafeCache.path_for(filepath).exists()

    @staticmethod
    def delete(filepath: Union[str, Path]) -> bool:
        """Delete a cache file. Returns True if one was removed."""
        cache_file = SafeCache.path_for(filepath)
        if cache_file.exists():
            cache_file.unlink()
            logger.debug(f"Deleted cache file: {cache_file}")
            return True
        return False
