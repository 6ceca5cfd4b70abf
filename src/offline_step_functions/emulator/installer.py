"""Download and unpack the Step Functions Local distribution."""

from __future__ import annotations

import io
import logging
import zipfile
from pathlib import Path

import requests

from offline_step_functions.errors import EmulatorInstallError

logger = logging.getLogger(__name__)

DOWNLOAD_URL = "https://s3.amazonaws.com/stepfunctionslocal/StepFunctionsLocal.zip"
JAR_NAME = "StepFunctionsLocal.jar"


class EmulatorInstaller:
    """Ensure the emulator jar exists under `install_dir`."""

    def __init__(
        self,
        install_dir: Path,
        *,
        download_url: str = DOWNLOAD_URL,
        session: requests.Session | None = None,
        timeout_seconds: float = 120.0,
    ) -> None:
        self._install_dir = install_dir
        self._download_url = download_url
        self._session = session or requests.Session()
        self._timeout = timeout_seconds

    @property
    def jar_file(self) -> Path:
        return self._install_dir / JAR_NAME

    def is_installed(self) -> bool:
        return self.jar_file.is_file()

    def install(self) -> Path:
        """Download the distribution unless it is already present.

        Returns:
            Path to the emulator jar.

        Raises:
            EmulatorInstallError: on download or extraction failure.
        """

        if self.is_installed():
            logger.debug("Step Functions Local already installed", extra={"jar": str(self.jar_file)})
            return self.jar_file

        logger.info(
            "Downloading Step Functions Local",
            extra={"url": self._download_url, "install_dir": str(self._install_dir)},
        )
        try:
            resp = self._session.get(self._download_url, timeout=self._timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise EmulatorInstallError(f"Failed to download Step Functions Local: {e}") from e

        try:
            self._install_dir.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(io.BytesIO(resp.content)) as archive:
                archive.extractall(self._install_dir)
        except (zipfile.BadZipFile, OSError) as e:
            raise EmulatorInstallError(f"Failed to unpack Step Functions Local: {e}") from e

        if not self.is_installed():
            raise EmulatorInstallError(f"{JAR_NAME} missing from downloaded archive")

        logger.info("Step Functions Local installed", extra={"jar": str(self.jar_file)})
        return self.jar_file
