"""Final artifact directory: allocation of stored names and public URLs."""

from pathlib import Path
from typing import BinaryIO, Optional, Tuple

from common.logging_config import get_logger
from uploader import config
from uploader.utils import generate_filename

logger = get_logger(__name__)

MAX_NAME_ATTEMPTS = 5


class ArtifactStore:
    """
    Directory of completed files, served statically under the public prefix.
    """

    def __init__(self, root: Optional[Path] = None, public_url_prefix: Optional[str] = None):
        self.root = Path(root) if root is not None else Path(config.UPLOAD_DIR)
        prefix = public_url_prefix if public_url_prefix is not None else config.PUBLIC_URL_PREFIX
        self.public_url_prefix = prefix.rstrip("/")

    def open_new(self, original_name: str) -> Tuple[str, Path, BinaryIO]:
        """
        Create a new, empty artifact with a generated name.

        The file is created exclusively, so a name collision picks another
        name instead of overwriting an existing artifact.

        Returns:
            Tuple of (filename, path, open binary file for writing)

        Raises:
            OSError: If the directory or file cannot be created
        """
        self.root.mkdir(parents=True, exist_ok=True)
        for attempt in range(MAX_NAME_ATTEMPTS):
            filename = generate_filename(original_name)
            path = self.root / filename
            try:
                return filename, path, open(path, "xb")
            except FileExistsError:
                logger.warning(f"Artifact name collision on {filename} (attempt {attempt + 1})")
        raise FileExistsError(f"Could not allocate a unique artifact name for {original_name!r}")

    def public_url(self, filename: str) -> str:
        return f"{self.public_url_prefix}/{filename}"

    def remove(self, path: Path) -> bool:
        """
        Delete an artifact. Failures are logged, not raised.

        Returns:
            True if the file was removed
        """
        try:
            Path(path).unlink()
            logger.info(f"Removed artifact {path}")
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to remove artifact {path}: {e}")
            return False
